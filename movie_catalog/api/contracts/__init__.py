"""Public API response contracts."""

from movie_catalog.api.contracts.models import (
    ApiErrorResponse,
    AuthUserResponse,
    CamelModel,
    ForgotPasswordResponse,
    HealthResponse,
    MessageResponse,
    MovieEnvelopeResponse,
    MovieOwnerResponse,
    MovieResponse,
    MoviesListResponse,
    PaginationResponse,
    UserProfileResponse,
)

__all__ = [
    "ApiErrorResponse",
    "AuthUserResponse",
    "CamelModel",
    "ForgotPasswordResponse",
    "HealthResponse",
    "MessageResponse",
    "MovieEnvelopeResponse",
    "MovieOwnerResponse",
    "MovieResponse",
    "MoviesListResponse",
    "PaginationResponse",
    "UserProfileResponse",
]
