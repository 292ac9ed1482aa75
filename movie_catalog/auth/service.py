"""Authentication service for account lifecycle and credential checks."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol

from bson import ObjectId

from movie_catalog.api.errors import ApiError, ApiErrorCode, validation_error
from movie_catalog.auth.models import (
    AuthUser,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    normalize_email,
)
from movie_catalog.auth.repository import DuplicateEmailError
from movie_catalog.core.config import AuthConfig
from movie_catalog.core.security import (
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)

LOGGER = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class AuthRepositoryProtocol(Protocol):
    """Protocol describing repository methods used by the auth service."""

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        """Return user by id."""

    def get_user_by_email(self, email: str) -> AuthUser | None:
        """Return user by normalized email."""

    def get_user_by_reset_token_hash(self, token_hash: str) -> AuthUser | None:
        """Return user holding the given reset token hash."""

    def get_users_by_ids(self, user_ids: Iterable[str]) -> dict[str, AuthUser]:
        """Return users keyed by id."""

    def create_user(self, user: AuthUser) -> None:
        """Insert user, raising ``DuplicateEmailError`` on collision."""

    def save_user(self, user: AuthUser) -> None:
        """Replace user by id, raising ``DuplicateEmailError`` on collision."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _email_conflict(message: str = "User already exists with this email") -> ApiError:
    return ApiError(
        status_code=409,
        error_code=ApiErrorCode.USER_CONFLICT,
        message=message,
        field="email",
    )


def _user_not_found() -> ApiError:
    return ApiError(
        status_code=404,
        error_code=ApiErrorCode.USER_NOT_FOUND,
        message="User not found",
    )


class AuthService:
    """Account registration, login and password management."""

    def __init__(
        self,
        repo: AuthRepositoryProtocol,
        config: AuthConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._repo = repo
        self._config = config
        self._clock = clock

    def bootstrap_admin_user(self) -> AuthUser | None:
        """Ensure the configured admin account exists."""
        if not self._config.admin_email or not self._config.admin_password:
            return None
        existing = self._repo.get_user_by_email(self._config.admin_email)
        if existing is not None:
            return existing

        now = _now_iso()
        admin = AuthUser(
            user_id=str(ObjectId()),
            name=self._config.admin_name,
            email=normalize_email(self._config.admin_email),
            password_hash=hash_password(self._config.admin_password),
            role="admin",
            created_at=now,
            updated_at=now,
        )
        try:
            self._repo.create_user(admin)
        except DuplicateEmailError:
            return self._repo.get_user_by_email(admin.email)
        LOGGER.info("Bootstrap admin created", extra={"user_id": admin.user_id})
        return admin

    def register(self, req: RegisterRequest) -> AuthUser:
        """Create a new account; emails are unique case-insensitively."""
        if self._repo.get_user_by_email(req.email) is not None:
            raise _email_conflict()

        now = _now_iso()
        user = AuthUser(
            user_id=str(ObjectId()),
            name=req.name,
            email=req.email,
            password_hash=hash_password(req.password),
            role="user",
            created_at=now,
            updated_at=now,
        )
        try:
            self._repo.create_user(user)
        except DuplicateEmailError as exc:
            raise _email_conflict("Email already registered") from exc
        LOGGER.info("User registered", extra={"user_id": user.user_id})
        return user

    def login(self, req: LoginRequest) -> AuthUser:
        """Check credentials and record the login time.

        Unknown email and wrong password fail identically.
        """
        user = self._repo.get_user_by_email(req.email)
        if user is None or not verify_password(req.password, user.password_hash):
            raise ApiError(
                status_code=401,
                error_code=ApiErrorCode.AUTH_INVALID_CREDENTIALS,
                message=INVALID_CREDENTIALS_MESSAGE,
                field="credentials",
            )
        if user.is_blocked:
            raise ApiError(
                status_code=403,
                error_code=ApiErrorCode.AUTH_FORBIDDEN,
                message="Account has been suspended. Please contact support.",
            )

        now = _now_iso()
        user = user.model_copy(update={"last_login": now, "updated_at": now})
        self._repo.save_user(user)
        LOGGER.info("User logged in", extra={"user_id": user.user_id})
        return user

    def get_current_user(self, user_id: str) -> AuthUser:
        """Re-read the caller from storage so role/block changes apply immediately."""
        user = self._repo.get_user_by_id(user_id)
        if user is None:
            raise _user_not_found()
        return user

    def refresh(self, user_id: str) -> AuthUser:
        """Confirm the caller still exists and is not blocked."""
        user = self.get_current_user(user_id)
        if user.is_blocked:
            raise ApiError(
                status_code=403,
                error_code=ApiErrorCode.AUTH_FORBIDDEN,
                message="Account has been suspended",
            )
        return user

    def forgot_password(self, email: str) -> str:
        """Store a hashed single-use reset token and return the raw token."""
        user = self._repo.get_user_by_email(email)
        if user is None:
            raise ApiError(
                status_code=404,
                error_code=ApiErrorCode.USER_NOT_FOUND,
                message="No user found with this email address",
                field="email",
            )

        reset_token = generate_reset_token()
        user = user.model_copy(
            update={
                "password_reset_token_hash": hash_token(reset_token),
                "password_reset_expires": int(self._clock())
                + self._config.reset_token_ttl_seconds,
                "updated_at": _now_iso(),
            }
        )
        self._repo.save_user(user)
        LOGGER.info("Password reset token issued", extra={"user_id": user.user_id})
        return reset_token

    def reset_password(self, req: ResetPasswordRequest) -> AuthUser:
        """Consume a reset token and set the new password."""
        user = self._repo.get_user_by_reset_token_hash(hash_token(req.token))
        if user is None or user.password_reset_expires <= int(self._clock()):
            raise validation_error("Invalid or expired reset token", "token")

        user = user.model_copy(
            update={
                "password_hash": hash_password(req.password),
                "password_reset_token_hash": "",
                "password_reset_expires": 0,
                "updated_at": _now_iso(),
            }
        )
        self._repo.save_user(user)
        LOGGER.info("Password reset completed", extra={"user_id": user.user_id})
        return user

    def change_password(self, user_id: str, req: ChangePasswordRequest) -> None:
        user = self.get_current_user(user_id)
        if not verify_password(req.current_password, user.password_hash):
            raise validation_error("Current password is incorrect", "currentPassword")
        if req.current_password == req.new_password:
            raise validation_error(
                "New password must be different from current password", "newPassword"
            )

        self._repo.save_user(
            user.model_copy(
                update={
                    "password_hash": hash_password(req.new_password),
                    "updated_at": _now_iso(),
                }
            )
        )
        LOGGER.info("Password changed", extra={"user_id": user.user_id})

    def update_profile(self, user_id: str, req: UpdateProfileRequest) -> AuthUser:
        if not req.name and not req.email:
            raise validation_error(
                "At least one field (name or email) must be provided for update"
            )

        user = self.get_current_user(user_id)
        update: dict[str, str] = {}
        if req.email and req.email != user.email:
            if self._repo.get_user_by_email(req.email) is not None:
                raise _email_conflict("Email already exists")
            update["email"] = req.email
        if req.name and req.name != user.name:
            update["name"] = req.name
        if not update:
            return user

        update["updated_at"] = _now_iso()
        user = user.model_copy(update=update)
        try:
            self._repo.save_user(user)
        except DuplicateEmailError as exc:
            raise _email_conflict("Email already exists") from exc
        LOGGER.info("Profile updated", extra={"user_id": user.user_id})
        return user
