"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import RaceLoss
from domain.model.identity import normalize_email
from domain.model.user import PROVIDER_LOCAL, User

logger = getLogger(__name__)


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            name=doc['name'],
            email=doc['email'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            avatar=doc.get('avatar'),
            provider=doc.get('provider', PROVIDER_LOCAL),
            is_first_login=doc.get('is_first_login', False),
            is_profile_complete=doc.get('is_profile_complete', False),
            last_login=doc.get('last_login'),
            password_hash=doc.get('password_hash'),
        )

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        email: str,
        name: str,
        provider: str,
        avatar: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        """Create a new user and return the User object.

        Raises:
            RaceLoss: the unique email index rejected the insert
        """
        email = normalize_email(email)
        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': user_id,
            'email': email,
            'name': name,
            'avatar': avatar,
            'provider': provider,
            'is_first_login': True,
            'is_profile_complete': False,
            'created_at': now,
            'updated_at': now,
        }
        if password_hash:
            user_doc['password_hash'] = password_hash

        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.warning("User creation lost race: email already exists", extra={"email": email})
            raise RaceLoss(email)
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            return None

        logger.info("User created", extra={"userId": user_id, "email": email, "provider": provider})
        return self._to_domain(user_doc)

    def update_profile(
        self, user_id: str, name: str | None = None, avatar: str | None = None,
    ) -> User | None:
        """Update display name and/or avatar ("" clears it). Return updated User or None if not found."""
        changes = {}
        if name is not None:
            changes['name'] = name
        if avatar is not None:
            changes['avatar'] = avatar or None
        if not changes:
            return self.get_by_id(user_id)

        changes['updated_at'] = datetime.now(timezone.utc)
        return self._find_and_set(user_id, changes, "Failed to update profile")

    def mark_profile_complete(self, user_id: str) -> User | None:
        """Record profile completion. Return updated User or None if not found."""
        changes = {
            'is_first_login': False,
            'is_profile_complete': True,
            'updated_at': datetime.now(timezone.utc),
        }
        return self._find_and_set(user_id, changes, "Failed to mark profile complete")

    def update_last_login(self, user_id: str) -> bool:
        """Update the last login timestamp for a user. Return True if successful."""
        try:
            now = datetime.now(timezone.utc)
            result = self.collection.update_one(
                {'_id': user_id},
                {'$set': {'last_login': now, 'updated_at': now}}
            )
            if result.modified_count > 0:
                logger.debug("Updated last_login", extra={"userId": user_id})
                return True
            return False
        except PyMongoError as e:
            logger.error("Failed to update last_login", extra={"userId": user_id, "error": str(e)})
            return False

    def _find_and_set(self, user_id: str, changes: dict, failure_message: str) -> User | None:
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                {'$set': changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(failure_message, extra={"userId": user_id, "error": str(e)})
            return None
        return self._to_domain(doc) if doc else None

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        email = normalize_email(email)
        try:
            doc = self.collection.find_one({'email': email})
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": email, "error": str(e)})
            return None
        return self._to_domain(doc) if doc else None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            return None
        return self._to_domain(doc) if doc else None
