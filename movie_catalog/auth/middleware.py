"""HTTP middleware that enforces session-cookie auth on protected API routes."""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from movie_catalog.api.errors import ApiError, ApiErrorCode
from movie_catalog.api.http_setup import error_response
from movie_catalog.auth.tokens import SessionTokenService
from movie_catalog.core.security import TokenExpiredError, TokenInvalidError

PUBLIC_API_PATHS = frozenset(
    {
        "/api/health",
        "/api/auth/register",
        "/api/auth/login",
        "/api/auth/logout",
        "/api/auth/forgot-password",
        "/api/auth/reset-password",
    }
)


def is_protected_path(path: str) -> bool:
    return path.startswith("/api/") and path not in PUBLIC_API_PATHS


def create_auth_middleware(tokens: SessionTokenService) -> Callable:
    """Create middleware that verifies the session cookie ahead of handlers."""

    async def auth_middleware(request: Request, call_next: Callable):
        """Attach the caller's user id to request state or reject with 401."""
        if request.method == "OPTIONS" or not is_protected_path(request.url.path):
            return await call_next(request)

        token = request.cookies.get(tokens.cookie_name, "")
        if not token:
            return error_response(
                401,
                error_code=ApiErrorCode.AUTH_MISSING_TOKEN,
                message="User not authenticated",
            )

        try:
            user_id = tokens.verify(token)
        except TokenExpiredError:
            return error_response(
                401,
                error_code=ApiErrorCode.AUTH_TOKEN_EXPIRED,
                message="Session expired",
            )
        except TokenInvalidError:
            return error_response(
                401,
                error_code=ApiErrorCode.AUTH_TOKEN_INVALID,
                message="Invalid session token",
            )

        request.state.user_id = user_id
        return await call_next(request)

    return auth_middleware


def current_user_id(request: Request) -> str:
    """FastAPI dependency returning the id set by ``auth_middleware``."""
    user_id = getattr(request.state, "user_id", "")
    if not user_id:
        raise ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_MISSING_TOKEN,
            message="User not authenticated",
        )
    return str(user_id)
