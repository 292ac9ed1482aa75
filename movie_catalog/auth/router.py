"""Authentication API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from movie_catalog.api.contracts import (
    ApiErrorResponse,
    AuthUserResponse,
    ForgotPasswordResponse,
    MessageResponse,
)
from movie_catalog.api.errors import ApiError, ApiErrorCode
from movie_catalog.auth.middleware import current_user_id
from movie_catalog.auth.models import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
)
from movie_catalog.auth.service import AuthService
from movie_catalog.auth.tokens import SessionTokenService

_ERROR = {"model": ApiErrorResponse}


def create_auth_router(service: AuthService, tokens: SessionTokenService) -> APIRouter:
    """Build authentication router with session-cookie endpoints."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post(
        "/register",
        response_model=AuthUserResponse,
        status_code=201,
        responses={400: _ERROR, 409: _ERROR},
    )
    def register(req: RegisterRequest, response: Response) -> AuthUserResponse:
        """Create an account and start a session."""
        user = service.register(req)
        tokens.attach_to_response(response, tokens.issue(user.user_id))
        return AuthUserResponse(
            message="User registered successfully", user=user.public_profile()
        )

    @router.post(
        "/login",
        response_model=AuthUserResponse,
        responses={400: _ERROR, 401: _ERROR, 403: _ERROR, 429: _ERROR},
    )
    def login(req: LoginRequest, response: Response) -> AuthUserResponse:
        """Authenticate and set the session cookie; lifetime follows ``remember``."""
        user = service.login(req)
        tokens.attach_to_response(
            response, tokens.issue(user.user_id, req.remember), req.remember
        )
        return AuthUserResponse(message="Login successful", user=user.public_profile())

    @router.post("/logout", response_model=MessageResponse)
    def logout(response: Response) -> MessageResponse:
        """Clear the session cookie; succeeds without a session too."""
        tokens.clear(response)
        return MessageResponse(message="Logout successful")

    @router.get(
        "/me",
        response_model=AuthUserResponse,
        responses={401: _ERROR, 404: _ERROR},
    )
    def me(user_id: str = Depends(current_user_id)) -> AuthUserResponse:
        """Return the stored profile of the authenticated caller."""
        user = service.get_current_user(user_id)
        return AuthUserResponse(user=user.public_profile())

    @router.post(
        "/refresh",
        response_model=AuthUserResponse,
        responses={401: _ERROR, 403: _ERROR, 404: _ERROR},
    )
    def refresh(
        response: Response, user_id: str = Depends(current_user_id)
    ) -> AuthUserResponse:
        """Reissue the session token with the default lifetime."""
        try:
            user = service.refresh(user_id)
        except ApiError as exc:
            if exc.status_code != 403:
                raise
            raise ApiError(
                status_code=403,
                error_code=ApiErrorCode.AUTH_FORBIDDEN,
                message="Account has been suspended",
                headers=tokens.clearing_headers(),
            ) from exc
        tokens.attach_to_response(response, tokens.issue(user.user_id))
        return AuthUserResponse(
            message="Token refreshed successfully", user=user.public_profile()
        )

    @router.post(
        "/forgot-password",
        response_model=ForgotPasswordResponse,
        responses={400: _ERROR, 404: _ERROR},
    )
    def forgot_password(req: ForgotPasswordRequest) -> ForgotPasswordResponse:
        """Issue a password reset token for a known email."""
        reset_token = service.forgot_password(req.email)
        return ForgotPasswordResponse(
            message="Password reset token generated", reset_token=reset_token
        )

    @router.post(
        "/reset-password",
        response_model=AuthUserResponse,
        responses={400: _ERROR},
    )
    def reset_password(req: ResetPasswordRequest, response: Response) -> AuthUserResponse:
        """Consume a reset token, set the new password and start a session."""
        user = service.reset_password(req)
        tokens.attach_to_response(response, tokens.issue(user.user_id))
        return AuthUserResponse(
            message="Password reset successful", user=user.public_profile()
        )

    @router.post(
        "/change-password",
        response_model=MessageResponse,
        responses={400: _ERROR, 401: _ERROR, 404: _ERROR},
    )
    def change_password(
        req: ChangePasswordRequest, user_id: str = Depends(current_user_id)
    ) -> MessageResponse:
        service.change_password(user_id, req)
        return MessageResponse(message="Password changed successfully")

    @router.patch(
        "/profile",
        response_model=AuthUserResponse,
        responses={400: _ERROR, 401: _ERROR, 404: _ERROR, 409: _ERROR},
    )
    def update_profile(
        req: UpdateProfileRequest, user_id: str = Depends(current_user_id)
    ) -> AuthUserResponse:
        user = service.update_profile(user_id, req)
        return AuthUserResponse(
            message="Profile updated successfully", user=user.public_profile()
        )

    return router
