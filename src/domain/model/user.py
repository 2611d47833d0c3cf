from dataclasses import dataclass
from datetime import datetime

PROVIDER_LOCAL = 'local'
PROVIDER_GOOGLE = 'google'


@dataclass
class User:
    """Domain model representing a user."""
    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
    avatar: str | None = None
    provider: str = PROVIDER_LOCAL
    is_first_login: bool = True
    is_profile_complete: bool = False
    last_login: datetime | None = None
    password_hash: str | None = None
