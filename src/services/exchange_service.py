"""Provider exchange service: the OAuth redirect/callback handshake.

Pipeline: state check → provider code redemption → profile validation →
reconciliation → credential issue.

The credential is minted last, so any failure earlier in the chain leaves
nothing usable behind.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from domain.model.errors import ConfigurationError, ExchangeError
from domain.model.user import User
from port.identity_provider import IdentityProviderPort
from port.user_repository import UserRepository
from services.credential_service import JWT_ALGORITHM, CredentialCodec
from services.identity_service import find_or_create, parse_external_profile

logger = logging.getLogger(__name__)

STATE_PURPOSE = "oauth_state"
STATE_TTL = timedelta(minutes=10)
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 15.0


class StateSigner:
    """Issues and checks the signed ``state`` round-tripped through the provider."""

    def __init__(self, secret: str | None, ttl: timedelta = STATE_TTL):
        if not secret:
            raise ConfigurationError("JWT_SECRET_KEY environment variable is required")
        self._secret = secret
        self.ttl = ttl

    def issue(self) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "purpose": STATE_PURPOSE,
            "nonce": secrets.token_urlsafe(16),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, state: str | None) -> None:
        """Raises ExchangeError unless state was issued here and is still fresh."""
        if not state:
            raise ExchangeError("Missing OAuth state")
        try:
            claims = jwt.decode(state, self._secret, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            raise ExchangeError("Invalid OAuth state") from e
        if claims.get("purpose") != STATE_PURPOSE:
            raise ExchangeError("Invalid OAuth state")


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of a completed provider exchange."""
    user: User
    credential: str
    is_new_user: bool


def begin_exchange(provider: IdentityProviderPort, signer: StateSigner) -> str:
    """Return the provider consent URL to redirect the browser to."""
    return provider.authorize_url(state=signer.issue())


async def complete_exchange(
    provider: IdentityProviderPort,
    repo: UserRepository,
    codec: CredentialCodec,
    signer: StateSigner,
    code: str | None,
    state: str | None,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
) -> ExchangeResult:
    """Finish the handshake and mint a credential for the reconciled user.

    Raises:
        ExchangeError: bad state, provider failure or provider timeout
        MissingEmail: provider profile has no usable email
        DomainError: user could not be stored
    """
    signer.verify(state)
    if not code:
        raise ExchangeError("Missing authorization code")

    try:
        claims = await asyncio.wait_for(provider.fetch_profile(code), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Provider exchange timed out", extra={"provider": provider.name, "timeout": timeout})
        raise ExchangeError("Identity provider did not respond in time") from e

    profile = parse_external_profile(claims)
    user, created = find_or_create(repo, profile)
    repo.update_last_login(user.id)
    credential = codec.issue(user.id)

    logger.info("Provider exchange completed", extra={
        "userId": user.id,
        "provider": provider.name,
        "isNewUser": created,
    })
    return ExchangeResult(user=user, credential=credential, is_new_user=created)
