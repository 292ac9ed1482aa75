"""Shared API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping, Sequence

from fastapi import HTTPException

_CONTAINER_LOCS = {"body", "query", "path", "form", "header", "cookie"}


class ApiErrorCode(StrEnum):
    """Machine-readable API error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_FORBIDDEN = "AUTH_FORBIDDEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_CONFLICT = "USER_CONFLICT"
    MOVIE_NOT_FOUND = "MOVIE_NOT_FOUND"
    MOVIE_FORBIDDEN = "MOVIE_FORBIDDEN"
    MOVIE_CONFLICT = "MOVIE_CONFLICT"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(HTTPException):
    """HTTP exception carrying stable API error envelope."""

    def __init__(
        self,
        *,
        status_code: int,
        error_code: ApiErrorCode,
        message: str,
        field: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        detail: dict[str, str] = {"error_code": str(error_code), "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @property
    def error_code(self) -> str:
        return str(self.detail["error_code"])

    @property
    def field(self) -> str | None:
        return self.detail.get("field")


def validation_error(message: str, field: str | None = None) -> ApiError:
    """Build a 400 error for the first offending field."""
    return ApiError(
        status_code=400,
        error_code=ApiErrorCode.VALIDATION_ERROR,
        message=message,
        field=field,
    )


def to_error_payload(detail: Any, status_code: int) -> dict[str, Any]:
    """Normalize HTTP exception detail into stable error payload."""
    if isinstance(detail, dict):
        payload: dict[str, Any] = {
            "success": False,
            "error_code": str(detail.get("error_code") or f"HTTP_{status_code}"),
            "message": str(detail.get("message") or detail.get("detail") or "HTTP error"),
        }
        if detail.get("field"):
            payload["field"] = str(detail["field"])
        return payload
    return {
        "success": False,
        "error_code": f"HTTP_{status_code}",
        "message": str(detail or "HTTP error"),
    }


def first_validation_issue(errors: Sequence[Mapping[str, Any]]) -> tuple[str | None, str]:
    """Return ``(field, message)`` for the first pydantic validation error.

    Custom ``ValueError`` messages raised from validators are surfaced
    verbatim instead of pydantic's ``"Value error, ..."`` prefix.
    """
    if not errors:
        return None, "Invalid request"
    error = errors[0]
    loc = [part for part in error.get("loc", ()) if isinstance(part, str)]
    field_parts = [part for part in loc if part not in _CONTAINER_LOCS]
    field = field_parts[-1] if field_parts else (loc[-1] if loc else None)

    ctx = error.get("ctx") or {}
    if error.get("type") == "value_error" and ctx.get("error") is not None:
        message = str(ctx["error"])
    elif error.get("type") == "missing" and field:
        message = f"{field} is required"
    else:
        message = str(error.get("msg") or "Invalid value")
    return field, message


def raise_for_validation(errors: Sequence[Mapping[str, Any]]) -> None:
    """Raise ``ApiError`` describing the first validation error."""
    field, message = first_validation_issue(errors)
    raise validation_error(message, field)
