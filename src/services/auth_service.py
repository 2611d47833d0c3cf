"""Auth service: local accounts and bearer request authentication.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import re

import bcrypt

from domain.model.errors import (
    DomainError,
    DuplicateError,
    NoCredential,
    UnknownSubject,
    ValidationError,
)
from domain.model.user import PROVIDER_LOCAL, User
from port.user_repository import UserRepository
from services.credential_service import CredentialCodec

BCRYPT_ROUNDS = 12


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _validate_password(password: str) -> None:
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValidationError("Password must contain at least one number")


class ProviderAccountError(ValidationError):
    """Password login attempted on an account owned by the OAuth provider."""


def register(repo: UserRepository, email: str, password: str, name: str) -> User:
    """Register a new local user.

    Returns the created User domain object. New local accounts start
    onboarding the same way provider accounts do.

    Raises:
        DuplicateError: email already registered
        ValidationError: password does not meet strength requirements
    """
    if repo.get_by_email(email):
        raise DuplicateError("Email already registered")

    _validate_password(password)
    password_hash = _hash_password(password)

    # RaceLoss is a DuplicateError, so a concurrent registration maps to 409 too
    user = repo.create(email=email, name=name, provider=PROVIDER_LOCAL, password_hash=password_hash)
    if not user:
        raise DomainError("Failed to create user")
    return user


def login(repo: UserRepository, email: str, password: str) -> User:
    """Authenticate a local user by email and password.

    Doesn't reveal whether the email exists.

    Raises:
        ProviderAccountError: account was created through the OAuth provider
        ValidationError: invalid credentials (deliberately vague)
    """
    user = repo.get_by_email(email)
    if not user:
        raise ValidationError("Invalid email or password")
    if user.provider != PROVIDER_LOCAL or not user.password_hash:
        raise ProviderAccountError(
            "This account was created with Google. Please use Google Sign-in instead."
        )
    if not _verify_password(password, user.password_hash):
        raise ValidationError("Invalid email or password")

    repo.update_last_login(user.id)
    return user


def authenticate(repo: UserRepository, codec: CredentialCodec, token: str | None) -> User:
    """Resolve the user behind a bearer token. Fails closed, no retries.

    Raises:
        NoCredential: no token presented
        MalformedCredential / InvalidCredential / ExpiredCredential: from the codec
        UnknownSubject: token is valid but the user no longer exists
    """
    if not token:
        raise NoCredential("Not authenticated")

    user_id = codec.verify(token)
    user = repo.get_by_id(user_id)
    if not user:
        raise UnknownSubject("Credential subject does not exist")
    return user
