"""FastAPI router for movie endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from movie_catalog.api.contracts import (
    ApiErrorResponse,
    MessageResponse,
    MovieEnvelopeResponse,
    MoviesListResponse,
)
from movie_catalog.auth.middleware import current_user_id
from movie_catalog.movies.service import MovieService, parse_list_query

_ERROR = {"model": ApiErrorResponse}

POSTER_PARAM = File(default=None)
TITLE_PARAM = Form(default=None)
YEAR_PARAM = Form(default=None, alias="publishingYear")


class MoviesRouter:
    """Factory wrapper that builds the movies API router from a service."""

    def __init__(self, service: MovieService) -> None:
        self._service = service

    def build(self) -> APIRouter:
        """Create and return configured movies router."""
        router = APIRouter(prefix="/api/movies", tags=["movies"])

        @router.post(
            "",
            response_model=MovieEnvelopeResponse,
            status_code=201,
            responses={400: _ERROR, 401: _ERROR, 409: _ERROR},
        )
        def create_movie(
            poster: UploadFile | None = POSTER_PARAM,
            title: str | None = TITLE_PARAM,
            publishing_year: str | None = YEAR_PARAM,
            user_id: str = Depends(current_user_id),
        ) -> MovieEnvelopeResponse:
            """Create a movie owned by the caller; a poster file is mandatory."""
            movie = self._service.create_movie(
                user_id=user_id,
                title=title,
                publishing_year=publishing_year,
                poster=poster,
            )
            return MovieEnvelopeResponse(
                message="Movie created successfully", movie=movie
            )

        @router.get(
            "",
            response_model=MoviesListResponse,
            responses={400: _ERROR, 401: _ERROR},
        )
        def list_movies(
            search: str | None = Query(default=None),
            publishing_year: str | None = Query(default=None, alias="publishingYear"),
            page: str | None = Query(default=None),
            limit: str | None = Query(default=None),
        ) -> MoviesListResponse:
            """List movies newest first with search, year filter and pagination."""
            query = parse_list_query(
                {
                    "search": search,
                    "publishingYear": publishing_year,
                    "page": page,
                    "limit": limit,
                }
            )
            return self._service.list_movies(query)

        @router.get(
            "/{movie_id}",
            response_model=MovieEnvelopeResponse,
            responses={400: _ERROR, 401: _ERROR, 404: _ERROR},
        )
        def get_movie(movie_id: str) -> MovieEnvelopeResponse:
            return MovieEnvelopeResponse(movie=self._service.get_movie(movie_id))

        @router.put(
            "/{movie_id}",
            response_model=MovieEnvelopeResponse,
            responses={400: _ERROR, 401: _ERROR, 403: _ERROR, 404: _ERROR, 409: _ERROR},
        )
        def update_movie(
            movie_id: str,
            poster: UploadFile | None = POSTER_PARAM,
            title: str | None = TITLE_PARAM,
            publishing_year: str | None = YEAR_PARAM,
            user_id: str = Depends(current_user_id),
        ) -> MovieEnvelopeResponse:
            """Update title and year; a new poster replaces the old file."""
            movie = self._service.update_movie(
                user_id=user_id,
                movie_id=movie_id,
                title=title,
                publishing_year=publishing_year,
                poster=poster,
            )
            return MovieEnvelopeResponse(
                message="Movie updated successfully", movie=movie
            )

        @router.delete(
            "/{movie_id}",
            response_model=MessageResponse,
            responses={400: _ERROR, 401: _ERROR, 403: _ERROR, 404: _ERROR},
        )
        def delete_movie(
            movie_id: str, user_id: str = Depends(current_user_id)
        ) -> MessageResponse:
            """Delete the movie record and its poster file."""
            self._service.delete_movie(user_id=user_id, movie_id=movie_id)
            return MessageResponse(message="Movie deleted successfully")

        return router
