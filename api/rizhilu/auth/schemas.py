"""Pydantic schemas for authentication.

Request and response models for:
- User registration and login
- Token responses
- User profile
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from rizhilu.auth.validators import validate_password, validate_username


if TYPE_CHECKING:
    from rizhilu.auth.models import User


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(..., description="Display name (3-20 chars)")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password (min 6 chars)")

    @field_validator("username")
    @classmethod
    def validate_username_format(cls, v: str) -> str:
        result = validate_username(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid username")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        result = validate_password(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid password")
        return v


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class UpdateProfileRequest(BaseModel):
    """Profile update request."""

    username: str | None = Field(None)
    bio: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        result = validate_username(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid username")
        return v.strip()


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """User response (public profile)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    avatar_url: str | None = None
    bio: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        """Create response from User model."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            avatar_url=user.avatar_url,
            bio=user.bio,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class TokenResponse(BaseModel):
    """Access token response, returned by register and login."""

    message: str
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: UserResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
