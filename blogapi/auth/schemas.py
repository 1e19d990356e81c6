"""Pydantic schemas for authentication.

Request and response models for:
- User registration and login
- Token responses
- Public user view
"""

from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from blogapi.auth.permissions import UserRole


if TYPE_CHECKING:
    from blogapi.auth.models import User


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=1, max_length=50, description="Username")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    role: UserRole | None = Field(None, description="Role (defaults to user)")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Username is required"
            raise ValueError(msg)
        return v


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """Public user view: no credential material."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    role: UserRole

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        """Create response from User model."""
        return cls(id=user.id, username=user.username, role=user.role)


class AuthResponse(BaseModel):
    """Token plus public user view, returned by register and login."""

    token: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    """Envelope for GET /api/auth/user."""

    user: UserResponse
