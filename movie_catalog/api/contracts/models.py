"""Pydantic API response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiErrorResponse(BaseModel):
    """Stable error envelope for API responses."""

    success: Literal[False] = False
    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    field: str | None = Field(default=None, description="First offending field")


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class MessageResponse(CamelModel):
    """Generic success envelope without a payload."""

    success: bool = True
    message: str


class UserProfileResponse(CamelModel):
    """Public user profile; never carries the password hash."""

    id: str
    name: str
    email: str
    role: str
    created_at: str = ""


class AuthUserResponse(CamelModel):
    """Auth endpoint envelope carrying the current user."""

    success: bool = True
    message: str = ""
    user: UserProfileResponse


class ForgotPasswordResponse(CamelModel):
    """Forgot-password response carrying the raw reset token."""

    success: bool = True
    message: str
    reset_token: str


class MovieOwnerResponse(CamelModel):
    """Owner summary embedded in movie payloads."""

    id: str
    name: str
    email: str


class MovieResponse(CamelModel):
    """Movie payload."""

    id: str
    title: str
    publishing_year: int
    poster: str
    poster_url: str
    created_by: MovieOwnerResponse | None = None
    owner_id: str
    created_at: str
    updated_at: str


class MovieEnvelopeResponse(CamelModel):
    """Single-movie envelope."""

    success: bool = True
    message: str = ""
    movie: MovieResponse


class PaginationResponse(CamelModel):
    """Pagination metadata for movie listings."""

    current_page: int
    total_pages: int
    total_movies: int
    has_next: bool
    has_prev: bool
    limit: int


class MoviesListResponse(CamelModel):
    """Movie listing envelope."""

    success: bool = True
    movies: list[MovieResponse]
    pagination: PaginationResponse
