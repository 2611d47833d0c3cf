"""In-memory implementation of IdentityProviderPort for testing."""

import asyncio
from typing import Any
from urllib.parse import urlencode

from domain.model.errors import ExchangeError


class FakeIdentityProvider:
    """Fake provider that maps authorization codes to preconfigured claims."""

    name = "google"

    def __init__(self, profiles: dict[str, dict[str, Any]] | None = None, delay: float = 0.0):
        self.profiles = profiles or {}
        self.delay = delay
        self.redeemed: list[str] = []

    def authorize_url(self, state: str) -> str:
        return f"https://provider.test/consent?{urlencode({'scope': 'openid email profile', 'state': state})}"

    async def fetch_profile(self, code: str) -> dict[str, Any]:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.redeemed.append(code)
        if code not in self.profiles:
            raise ExchangeError("Unknown authorization code")
        return dict(self.profiles[code])
