"""In-memory implementation of UserRepository for testing."""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from domain.model.errors import RaceLoss
from domain.model.identity import normalize_email
from domain.model.user import User


class FakeUserRepository:
    """Thread-safe in-memory store; the lock plays the unique email index."""

    def __init__(self):
        self.store: dict[str, User] = {}
        self._lock = threading.Lock()

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        email: str,
        name: str,
        provider: str,
        avatar: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        email = normalize_email(email)
        with self._lock:
            if any(u.email == email for u in self.store.values()):
                raise RaceLoss(email)

            now = datetime.now(timezone.utc)
            user = User(
                id=uuid.uuid4().hex,
                name=name,
                email=email,
                created_at=now,
                updated_at=now,
                avatar=avatar,
                provider=provider,
                is_first_login=True,
                is_profile_complete=False,
                password_hash=password_hash,
            )
            self.store[user.id] = user
            return replace(user)

    def update_profile(
        self, user_id: str, name: str | None = None, avatar: str | None = None,
    ) -> User | None:
        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return None
            if name is not None:
                user.name = name
            if avatar is not None:
                user.avatar = avatar or None
            user.updated_at = datetime.now(timezone.utc)
            return replace(user)

    def mark_profile_complete(self, user_id: str) -> User | None:
        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return None
            user.is_first_login = False
            user.is_profile_complete = True
            user.updated_at = datetime.now(timezone.utc)
            return replace(user)

    def update_last_login(self, user_id: str) -> bool:
        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return False
            now = datetime.now(timezone.utc)
            user.last_login = now
            user.updated_at = now
            return True

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self.store.pop(user_id, None) is not None

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        email = normalize_email(email)
        for user in list(self.store.values()):
            if user.email == email:
                return replace(user)
        return None

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return replace(user) if user else None
