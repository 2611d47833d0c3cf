from datetime import timedelta
from functools import lru_cache

from fastapi import HTTPException

from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from api import config
from port.identity_provider import IdentityProviderPort
from port.user_repository import UserRepository
from services.credential_service import CredentialCodec
from services.exchange_service import StateSigner


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


@lru_cache(maxsize=1)
def get_credential_codec() -> CredentialCodec:
    """Raises ConfigurationError when JWT_SECRET_KEY is unset; called at startup."""
    return CredentialCodec(
        secret=config.JWT_SECRET_KEY,
        expiration=timedelta(days=config.JWT_EXPIRATION_DAYS),
    )


@lru_cache(maxsize=1)
def get_state_signer() -> StateSigner:
    return StateSigner(secret=config.JWT_SECRET_KEY)


def get_identity_providers() -> dict[str, IdentityProviderPort]:
    google = GoogleOAuthAdapter(
        client_id=config.GOOGLE_CLIENT_ID,
        client_secret=config.GOOGLE_CLIENT_SECRET,
        redirect_uri=config.GOOGLE_CALLBACK_URL,
    )
    return {google.name: google}


def get_exchange_repo() -> UserRepository | None:
    """Like get_user_repo, but None instead of 503 so the callback can still redirect."""
    try:
        return MongoUserRepository(_get_db())
    except HTTPException:
        return None
