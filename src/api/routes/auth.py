"""Authentication routes (provider exchange, local accounts, own profile)."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from api import config
from api.dependencies import (
    get_credential_codec,
    get_exchange_repo,
    get_identity_providers,
    get_state_signer,
    get_user_repo,
)
from api.models import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UpdateProfileRequest,
)
from api.security import get_current_user_required
from domain.model.errors import (
    DomainError,
    DuplicateError,
    ExchangeError,
    MissingEmail,
    NotFoundError,
    ValidationError,
)
from domain.model.user import User
from port.identity_provider import IdentityProviderPort
from port.user_repository import UserRepository
from services import auth_service, profile_service
from services.credential_service import CredentialCodec
from services.exchange_service import StateSigner, begin_exchange, complete_exchange

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _success_redirect(credential: str, is_new_user: bool) -> RedirectResponse:
    query = urlencode({"token": credential, "isNewUser": "true" if is_new_user else "false"})
    return RedirectResponse(f"{config.FRONTEND_URL}/auth-callback?{query}", status_code=status.HTTP_302_FOUND)


def _failure_redirect(code: str) -> RedirectResponse:
    query = urlencode({"error": code})
    return RedirectResponse(f"{config.FRONTEND_URL}/login?{query}", status_code=status.HTTP_302_FOUND)


# ── Local accounts ───────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    repo: UserRepository = Depends(get_user_repo),
    codec: CredentialCodec = Depends(get_credential_codec),
):
    """Register a local account and return a credential.

    Raises:
        HTTPException: 409 if email already exists, 400 if the password is weak
    """
    try:
        user = auth_service.register(repo, request.email, request.password, request.name)
    except DuplicateError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user")

    logger.info("User registered", extra={"userId": user.id, "email": user.email})
    return AuthResponse(token=codec.issue(user.id), user=ProfileResponse.from_user(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    repo: UserRepository = Depends(get_user_repo),
    codec: CredentialCodec = Depends(get_credential_codec),
):
    """Login with email and password.

    Raises:
        HTTPException: 401 if credentials are invalid or the account belongs to the provider
    """
    try:
        user = auth_service.login(repo, request.email, request.password)
    except auth_service.ProviderAccountError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    logger.info("User logged in", extra={"userId": user.id, "email": user.email})
    return AuthResponse(token=codec.issue(user.id), user=ProfileResponse.from_user(user))


# ── Own profile (declared before /{provider} so the literal path wins) ──


@router.get("/profile", response_model=ProfileResponse)
async def read_profile(
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Get the authenticated user's profile."""
    try:
        user = profile_service.get_profile(repo, current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ProfileResponse.from_user(user)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Update display name and/or avatar. Email, provider and id are not editable."""
    try:
        user = profile_service.update_profile(
            repo, current_user.id, name=request.full_name, avatar=request.avatar,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ProfileResponse.from_user(user)


@router.post("/profile/complete", response_model=ProfileResponse)
async def complete_profile(
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Record that the user finished setting up their profile."""
    try:
        user = profile_service.complete_profile(repo, current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ProfileResponse.from_user(user)


# ── Provider exchange ────────────────────────────────────────


def _resolve_provider(
    provider: str,
    providers: dict[str, IdentityProviderPort] = Depends(get_identity_providers),
) -> IdentityProviderPort:
    adapter = providers.get(provider)
    if adapter is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown identity provider")
    return adapter


@router.get("/{provider}")
async def begin_provider_exchange(
    provider: IdentityProviderPort = Depends(_resolve_provider),
    signer: StateSigner = Depends(get_state_signer),
):
    """Redirect the browser to the provider's consent screen."""
    return RedirectResponse(begin_exchange(provider, signer), status_code=status.HTTP_302_FOUND)


@router.get("/{provider}/callback")
async def complete_provider_exchange(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    provider: IdentityProviderPort = Depends(_resolve_provider),
    repo: UserRepository | None = Depends(get_exchange_repo),
    codec: CredentialCodec = Depends(get_credential_codec),
    signer: StateSigner = Depends(get_state_signer),
):
    """Provider redirect target. Always answers with exactly one redirect:
    to the frontend with a credential, or to the failure page.
    """
    if error:
        logger.info("Provider reported an error", extra={"provider": provider.name, "error": error})
        return _failure_redirect("authentication_failed")
    if repo is None:
        return _failure_redirect("server_error")

    try:
        result = await complete_exchange(provider, repo, codec, signer, code=code, state=state,
                                         timeout=config.PROVIDER_TIMEOUT_SECONDS)
    except MissingEmail as e:
        logger.warning("Provider profile has no usable email", extra={"provider": provider.name, "error": str(e)})
        return _failure_redirect("missing_email")
    except ExchangeError as e:
        logger.warning("Provider exchange failed", extra={"provider": provider.name, "error": str(e)})
        return _failure_redirect(e.code)
    except DomainError as e:
        logger.error("Provider exchange failed", extra={"provider": provider.name, "error": str(e)})
        return _failure_redirect("server_error")

    return _success_redirect(result.credential, result.is_new_user)
