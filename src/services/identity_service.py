"""Identity reconciliation: maps a provider profile to exactly one local user.

Pure business logic with no HTTP dependencies.
"""

import logging
from typing import Any

from domain.model.errors import DomainError, MissingEmail, RaceLoss
from domain.model.identity import ExternalProfile, normalize_email
from domain.model.user import PROVIDER_GOOGLE, User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_external_profile(claims: dict[str, Any]) -> ExternalProfile:
    """Validate raw provider claims into an ExternalProfile.

    Providers may withhold the email (privacy settings) or report it
    unverified; neither can back an account.

    Raises:
        MissingEmail: no usable email in the claims
    """
    email = normalize_email(_clean(claims.get("email")))
    if not email or "@" not in email:
        raise MissingEmail("Identity provider did not return an email address")
    if claims.get("email_verified") is False:
        raise MissingEmail("Identity provider email address is not verified")

    name = _clean(claims.get("name"))
    if not name:
        name = " ".join(
            part for part in (_clean(claims.get("given_name")), _clean(claims.get("family_name"))) if part
        )
    if not name:
        name = email.split("@", 1)[0]

    avatar = _clean(claims.get("picture")) or None
    return ExternalProfile(email=email, display_name=name, avatar=avatar)


def find_or_create(repo: UserRepository, profile: ExternalProfile) -> tuple[User, bool]:
    """Find the user for profile.email or create one.

    Returns (user, created). An existing record is returned as stored;
    locally edited fields are never overwritten by provider data.

    Raises:
        DomainError: the store failed to create the user
    """
    existing = repo.get_by_email(profile.email)
    if existing:
        return existing, False

    try:
        user = repo.create(
            email=profile.email,
            name=profile.display_name,
            provider=PROVIDER_GOOGLE,
            avatar=profile.avatar,
        )
    except RaceLoss:
        winner = repo.get_by_email(profile.email)
        if winner is None:
            raise DomainError("User disappeared after concurrent creation")
        logger.info("Concurrent first login resolved to existing user", extra={
            "userId": winner.id,
            "email": profile.email,
        })
        return winner, False

    if not user:
        raise DomainError("Failed to create user")
    return user, True


def reconcile(repo: UserRepository, profile: ExternalProfile) -> User:
    """Return the canonical local user for a verified provider profile."""
    user, _ = find_or_create(repo, profile)
    return user
