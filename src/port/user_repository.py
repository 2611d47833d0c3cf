from typing import Protocol
from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Email is the unique key. ``create`` raises ``RaceLoss`` when another
    writer already holds the email.
    """
    def create(
        self,
        email: str,
        name: str,
        provider: str,
        avatar: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        """Create a new user. Return User or None if creation failed."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by normalized email. Return User or None if not found."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def update_profile(
        self, user_id: str, name: str | None = None, avatar: str | None = None,
    ) -> User | None:
        """Update display name and/or avatar ("" clears it). Return updated User or None if not found."""
        ...

    def mark_profile_complete(self, user_id: str) -> User | None:
        """Record profile completion. Return updated User or None if not found."""
        ...

    def update_last_login(self, user_id: str) -> bool:
        """Update the last login timestamp for a user. Return True if successful."""
        ...
