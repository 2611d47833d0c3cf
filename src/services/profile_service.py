"""Profile service: the caller's own profile.

Only the display name and avatar are editable. Email, provider and id are
owned by reconciliation and never change here.
"""

import logging

from domain.model.errors import NotFoundError, ValidationError
from domain.model.user import User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


def get_profile(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(
    repo: UserRepository,
    user_id: str,
    name: str | None = None,
    avatar: str | None = None,
) -> User:
    """Update display name and/or avatar. A blank avatar removes it.

    Raises:
        ValidationError: blank or overlong name
        NotFoundError: user vanished since authentication
    """
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Full name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Full name must be at most {MAX_NAME_LENGTH} characters")
    if avatar is not None:
        avatar = avatar.strip()

    user = repo.update_profile(user_id, name=name, avatar=avatar)
    if not user:
        raise NotFoundError("User not found")

    logger.info("Profile updated", extra={"userId": user_id})
    return user


def complete_profile(repo: UserRepository, user_id: str) -> User:
    """Record the authoritative profile-completion event.

    After this the account is neither a first login nor incomplete, which
    clients treat as final.
    """
    user = repo.mark_profile_complete(user_id)
    if not user:
        raise NotFoundError("User not found")

    logger.info("Profile completed", extra={"userId": user_id})
    return user
