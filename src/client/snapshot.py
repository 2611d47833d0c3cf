"""Client-side copy of the signed-in user.

Stored in the durable tier under ``user`` with camelCase keys so the layout
stays compatible with the browser client.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class UserSnapshot:
    user_id: str
    email: str
    full_name: str
    is_first_login: bool
    is_profile_complete: bool
    avatar: str | None = None
    auth_provider: str | None = None

    @classmethod
    def from_profile(cls, data: dict[str, Any]) -> "UserSnapshot":
        """Build from a ``/auth/profile`` response body.

        Raises:
            ValueError: required fields missing or of the wrong type
        """
        return cls._from_fields(data, id_key="id")

    @classmethod
    def from_json(cls, raw: str) -> "UserSnapshot":
        """Parse the stored form.

        Raises:
            ValueError: corrupt JSON or missing/mistyped fields
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("User snapshot must be a JSON object")
        return cls._from_fields(data, id_key="userId")

    @classmethod
    def _from_fields(cls, data: dict[str, Any], id_key: str) -> "UserSnapshot":
        user_id = data.get(id_key)
        if not isinstance(user_id, str) or not user_id:
            raise ValueError(f"User snapshot is missing '{id_key}'")
        is_first_login = data.get("isFirstLogin")
        is_profile_complete = data.get("isProfileComplete")
        if not isinstance(is_first_login, bool) or not isinstance(is_profile_complete, bool):
            raise ValueError("User snapshot onboarding flags must be booleans")
        return cls(
            user_id=user_id,
            email=str(data.get("email") or ""),
            full_name=str(data.get("fullName") or ""),
            is_first_login=is_first_login,
            is_profile_complete=is_profile_complete,
            avatar=data.get("avatar"),
            auth_provider=data.get("authProvider"),
        )

    def to_json(self) -> str:
        fields = asdict(self)
        return json.dumps({
            "userId": fields["user_id"],
            "email": fields["email"],
            "fullName": fields["full_name"],
            "avatar": fields["avatar"],
            "authProvider": fields["auth_provider"],
            "isFirstLogin": fields["is_first_login"],
            "isProfileComplete": fields["is_profile_complete"],
        })
