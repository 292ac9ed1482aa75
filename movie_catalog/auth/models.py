"""Pydantic models for authentication domain."""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from movie_catalog.api.contracts import UserProfileResponse

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

Role = Literal["user", "admin"]


class AuthUser(BaseModel):
    """Persisted auth user model."""

    user_id: str
    name: str
    email: str
    password_hash: str
    role: Role = "user"
    is_blocked: bool = False
    last_login: str | None = None
    password_reset_token_hash: str = ""
    password_reset_expires: int = 0
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def public_profile(self) -> UserProfileResponse:
        """Return the client-facing profile without credential fields."""
        return UserProfileResponse(
            id=self.user_id,
            name=self.name,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
        )


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    if len(value) < 3:
        raise ValueError("Name must be at least 3 characters long")
    if len(value) > 20:
        raise ValueError("Name cannot exceed 20 characters")
    if not NAME_RE.match(value):
        raise ValueError("Name can only contain letters and spaces")
    return value


def _check_email(value: str) -> str:
    value = normalize_email(value)
    if not value:
        raise ValueError("Email is required")
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email address")
    return value


def _check_password(value: str, label: str = "Password") -> str:
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) < 6:
        raise ValueError(f"{label} must be at least 6 characters long")
    if len(value) > 50:
        raise ValueError(f"{label} cannot exceed 50 characters")
    if not PASSWORD_RE.match(value):
        raise ValueError(
            f"{label} must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )
    return value


NameStr = Annotated[str, AfterValidator(_check_name)]
EmailStr = Annotated[str, AfterValidator(_check_email)]
PasswordStr = Annotated[str, AfterValidator(_check_password)]


class AuthRequest(BaseModel):
    """Base for auth request payloads accepting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(AuthRequest):
    """Registration payload."""

    name: NameStr = Field(default="", validate_default=True)
    email: EmailStr = Field(default="", validate_default=True)
    password: PasswordStr = Field(default="", validate_default=True)


class LoginRequest(AuthRequest):
    """Login request payload."""

    email: EmailStr = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)
    remember: bool = False

    @field_validator("password")
    @classmethod
    def _password_present(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class ForgotPasswordRequest(AuthRequest):
    """Forgot-password payload."""

    email: EmailStr = Field(default="", validate_default=True)


class ResetPasswordRequest(AuthRequest):
    """Reset-password payload."""

    token: str = Field(default="", validate_default=True)
    password: PasswordStr = Field(default="", validate_default=True)
    confirm_password: str = Field(default="", validate_default=True)

    @field_validator("token")
    @classmethod
    def _token_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Reset token is required")
        return value.strip()

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError("Confirm password is required")
        if value != info.data.get("password"):
            raise ValueError("Passwords do not match")
        return value


class ChangePasswordRequest(AuthRequest):
    """Change-password payload."""

    current_password: str = Field(default="", validate_default=True)
    new_password: str = Field(default="", validate_default=True)
    confirm_password: str = Field(default="", validate_default=True)

    @field_validator("current_password")
    @classmethod
    def _current_present(cls, value: str) -> str:
        if not value:
            raise ValueError("Current password is required")
        return value

    @field_validator("new_password")
    @classmethod
    def _new_password_policy(cls, value: str) -> str:
        return _check_password(value, label="New password")

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError("Confirm password is required")
        if value != info.data.get("new_password"):
            raise ValueError("Passwords do not match")
        return value


class UpdateProfileRequest(AuthRequest):
    """Profile update payload; both fields optional."""

    name: str | None = None
    email: str | None = None

    @field_validator("name")
    @classmethod
    def _name_policy(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return _check_name(value)

    @field_validator("email")
    @classmethod
    def _email_policy(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return _check_email(value)
