"""Pydantic schemas for registration, login and profiles."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from skillhub.auth.permissions import SELF_REGISTRABLE_ROLES, UserRole
from skillhub.config import get_settings


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """Account registration request.

    Students must give their registration number. Faculty may give a
    department; a default is applied by the service otherwise.
    """

    name: str = Field(..., min_length=1, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")
    confirm_password: str | None = Field(
        None, description="Repeated password; checked when sent"
    )
    role: UserRole = Field(..., description="student or faculty")
    registration_number: str | None = Field(None, max_length=50)
    department: str | None = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Name is required"
            raise ValueError(msg)
        return v

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        min_length = get_settings().auth_min_password_length
        if len(v) < min_length:
            msg = f"Password must be at least {min_length} characters long"
            raise ValueError(msg)
        return v

    @field_validator("registration_number", "department")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @model_validator(mode="after")
    def validate_role_fields(self) -> Self:
        if self.confirm_password is not None and self.confirm_password != self.password:
            msg = "Passwords do not match"
            raise ValueError(msg)
        if self.role not in SELF_REGISTRABLE_ROLES:
            msg = "Only student and faculty accounts can be registered"
            raise ValueError(msg)
        if self.role == UserRole.STUDENT and not self.registration_number:
            msg = "Registration number is required for students"
            raise ValueError(msg)
        return self


class LoginRequest(BaseModel):
    """Login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """Public user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
    registration_number: str | None = None
    department: str | None = None
    is_active: bool
    created_at: datetime


class AuthResponse(BaseModel):
    """Token plus the authenticated user, returned by login and register."""

    token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class TokenUser(BaseModel):
    """Identity carried by an access token."""

    id: UUID
    email: str
    role: str
    name: str = ""
