"""Bearer authentication dependencies."""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_credential_codec, get_user_repo
from domain.model.errors import CredentialError, NoCredential
from domain.model.user import User
from port.user_repository import UserRepository
from services.auth_service import authenticate
from services.credential_service import CredentialCodec

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_repo: UserRepository = Depends(get_user_repo),
    codec: CredentialCodec = Depends(get_credential_codec),
) -> User:
    """Get current authenticated user (required). Raises 401 if not authenticated.

    Every failure past a missing token gets the same response, so callers
    cannot tell a forged token from a deleted account.
    """
    token = credentials.credentials if credentials else None
    try:
        return authenticate(user_repo, codec, token)
    except NoCredential:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except CredentialError as e:
        logger.info("Rejected bearer credential", extra={"reason": type(e).__name__})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
