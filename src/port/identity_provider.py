"""Identity provider port: outbound interface for the OAuth provider."""

from typing import Any, Protocol


class IdentityProviderPort(Protocol):
    """Port for the provider side of the authorization-code handshake.

    authorize_url() builds the consent screen URL.
    fetch_profile() redeems an authorization code and returns the raw
    profile claims (``email``, ``email_verified``, ``name``, ``picture``...).
    Transport and token-endpoint failures raise ExchangeError.
    """

    name: str

    def authorize_url(self, state: str) -> str: ...

    async def fetch_profile(self, code: str) -> dict[str, Any]: ...
