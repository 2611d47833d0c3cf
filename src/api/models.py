"""Pydantic models for API request/response."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from domain.model.user import User


class ProfileResponse(BaseModel):
    """Public view of a user; the shape clients cache as their snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="User ID")
    full_name: str = Field(..., alias="fullName")
    email: str
    avatar: Optional[str] = Field(None, description="Avatar URL")
    auth_provider: str = Field(..., alias="authProvider", description="local or google")
    is_first_login: bool = Field(..., alias="isFirstLogin")
    is_profile_complete: bool = Field(..., alias="isProfileComplete")

    @classmethod
    def from_user(cls, user: User) -> "ProfileResponse":
        return cls(
            id=user.id,
            full_name=user.name,
            email=user.email,
            avatar=user.avatar,
            auth_provider=user.provider,
            is_first_login=user.is_first_login,
            is_profile_complete=user.is_profile_complete,
        )


class UpdateProfileRequest(BaseModel):
    """Editable profile fields. Anything else in the body is ignored."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(None, alias="fullName", max_length=100)
    avatar: Optional[str] = Field(None, max_length=2048)


class RegisterRequest(BaseModel):
    """Request model for user registration."""
    email: EmailStr
    password: str
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    """Response model for password authentication."""
    token: str
    user: ProfileResponse
