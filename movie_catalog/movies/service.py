"""Business logic for ownership-scoped movie endpoints."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol

from bson import ObjectId
from fastapi import UploadFile
from pydantic import ValidationError

from movie_catalog.api.contracts import (
    MovieOwnerResponse,
    MovieResponse,
    MoviesListResponse,
    PaginationResponse,
)
from movie_catalog.api.errors import (
    ApiError,
    ApiErrorCode,
    raise_for_validation,
    validation_error,
)
from movie_catalog.auth.models import AuthUser
from movie_catalog.movies.models import MovieInput, MovieListQuery, MovieRecord
from movie_catalog.movies.storage import PosterStorage

LOGGER = logging.getLogger(__name__)


class MovieRepositoryProtocol(Protocol):
    """Protocol describing repository methods used by the movie service."""

    def get_movie(self, movie_id: str) -> MovieRecord | None:
        """Return movie by id."""

    def find_owner_title(
        self, owner_id: str, title: str, *, exclude_movie_id: str = ""
    ) -> MovieRecord | None:
        """Return the owner's movie with the given title."""

    def search_movies(
        self,
        *,
        search: str | None,
        publishing_year: int | None,
        skip: int,
        limit: int,
    ) -> tuple[list[MovieRecord], int]:
        """Return a page of movies and the total count."""

    def insert_movie(self, movie: MovieRecord) -> None:
        """Persist a new movie."""

    def update_movie(self, movie: MovieRecord) -> None:
        """Replace a movie by id."""

    def delete_movie(self, movie_id: str) -> bool:
        """Delete a movie by id."""


class UserLookupProtocol(Protocol):
    """User lookups needed for authorization and owner summaries."""

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        """Return user by id."""

    def get_users_by_ids(self, user_ids: Iterable[str]) -> dict[str, AuthUser]:
        """Return users keyed by id."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _movie_not_found() -> ApiError:
    return ApiError(
        status_code=404,
        error_code=ApiErrorCode.MOVIE_NOT_FOUND,
        message="Movie not found",
    )


def _duplicate_title() -> ApiError:
    return ApiError(
        status_code=409,
        error_code=ApiErrorCode.MOVIE_CONFLICT,
        message="Movie with this title already exists in your collection",
        field="title",
    )


def _parse_movie_input(title: Any, publishing_year: Any) -> MovieInput:
    try:
        return MovieInput.model_validate(
            {"title": title, "publishingYear": publishing_year}
        )
    except ValidationError as exc:
        raise_for_validation(exc.errors())
        raise


def parse_list_query(params: dict[str, Any]) -> MovieListQuery:
    """Validate raw query-string values, failing on the first bad field."""
    try:
        return MovieListQuery.model_validate(params)
    except ValidationError as exc:
        raise_for_validation(exc.errors())
        raise


def validate_movie_id(movie_id: str) -> str:
    if not ObjectId.is_valid(movie_id):
        raise validation_error("Invalid movie ID format", "id")
    return movie_id


class MovieService:
    """Movie CRUD where writes are limited to the owner or an admin.

    Every handler that accepts a poster stores it first and deletes it again
    when the request fails afterwards, so rejected uploads leave no files.
    """

    def __init__(
        self,
        *,
        repo: MovieRepositoryProtocol,
        users: UserLookupProtocol,
        storage: PosterStorage,
    ) -> None:
        self._repo = repo
        self._users = users
        self._storage = storage

    def _require_actor(self, user_id: str) -> AuthUser:
        actor = self._users.get_user_by_id(user_id)
        if actor is None:
            raise ApiError(
                status_code=401,
                error_code=ApiErrorCode.AUTH_MISSING_TOKEN,
                message="User authentication required",
            )
        if actor.is_blocked:
            raise ApiError(
                status_code=403,
                error_code=ApiErrorCode.AUTH_FORBIDDEN,
                message="Account has been suspended",
            )
        return actor

    @staticmethod
    def _ensure_can_modify(actor: AuthUser, movie: MovieRecord, action: str) -> None:
        if movie.owner_id != actor.user_id and not actor.is_admin:
            raise ApiError(
                status_code=403,
                error_code=ApiErrorCode.MOVIE_FORBIDDEN,
                message=f"Not authorized to {action} this movie",
            )

    def _load_movie(self, movie_id: str) -> MovieRecord:
        movie = self._repo.get_movie(validate_movie_id(movie_id))
        if movie is None:
            raise _movie_not_found()
        return movie

    def to_response(
        self, movie: MovieRecord, owners: dict[str, AuthUser] | None = None
    ) -> MovieResponse:
        if owners is None:
            owners = self._users.get_users_by_ids([movie.owner_id])
        owner = owners.get(movie.owner_id)
        return MovieResponse(
            id=movie.movie_id,
            title=movie.title,
            publishing_year=movie.publishing_year,
            poster=movie.poster,
            poster_url=self._storage.public_url(movie.poster),
            created_by=(
                MovieOwnerResponse(id=owner.user_id, name=owner.name, email=owner.email)
                if owner is not None
                else None
            ),
            owner_id=movie.owner_id,
            created_at=movie.created_at,
            updated_at=movie.updated_at,
        )

    def create_movie(
        self,
        *,
        user_id: str,
        title: Any,
        publishing_year: Any,
        poster: UploadFile | None,
    ) -> MovieResponse:
        stored = self._storage.save(poster) if self._storage.has_file(poster) else ""
        try:
            movie_input = _parse_movie_input(title, publishing_year)
            if not stored:
                raise validation_error("Poster image is required", "poster")
            actor = self._require_actor(user_id)
            if self._repo.find_owner_title(actor.user_id, movie_input.title) is not None:
                raise _duplicate_title()

            now = _now_iso()
            movie = MovieRecord(
                movie_id=str(ObjectId()),
                title=movie_input.title,
                publishing_year=movie_input.publishing_year,
                poster=stored,
                owner_id=actor.user_id,
                created_at=now,
                updated_at=now,
            )
            self._repo.insert_movie(movie)
        except Exception:
            self._storage.delete(stored)
            raise

        LOGGER.info(
            "Movie created",
            extra={"movie_id": movie.movie_id, "user_id": actor.user_id},
        )
        return self.to_response(movie, {actor.user_id: actor})

    def list_movies(self, query: MovieListQuery) -> MoviesListResponse:
        """List all movies (not scoped to the caller), newest first."""
        movies, total = self._repo.search_movies(
            search=query.search,
            publishing_year=query.publishing_year,
            skip=query.skip,
            limit=query.limit,
        )
        owners = self._users.get_users_by_ids(movie.owner_id for movie in movies)
        total_pages = math.ceil(total / query.limit) if total else 0
        return MoviesListResponse(
            movies=[self.to_response(movie, owners) for movie in movies],
            pagination=PaginationResponse(
                current_page=query.page,
                total_pages=total_pages,
                total_movies=total,
                has_next=query.page < total_pages,
                has_prev=query.page > 1,
                limit=query.limit,
            ),
        )

    def get_movie(self, movie_id: str) -> MovieResponse:
        return self.to_response(self._load_movie(movie_id))

    def update_movie(
        self,
        *,
        user_id: str,
        movie_id: str,
        title: Any,
        publishing_year: Any,
        poster: UploadFile | None,
    ) -> MovieResponse:
        stored = self._storage.save(poster) if self._storage.has_file(poster) else ""
        try:
            actor = self._require_actor(user_id)
            movie = self._load_movie(movie_id)
            self._ensure_can_modify(actor, movie, "update")
            movie_input = _parse_movie_input(title, publishing_year)
            if movie_input.title != movie.title and (
                self._repo.find_owner_title(
                    movie.owner_id, movie_input.title, exclude_movie_id=movie.movie_id
                )
                is not None
            ):
                raise _duplicate_title()

            old_poster = movie.poster
            movie = movie.model_copy(
                update={
                    "title": movie_input.title,
                    "publishing_year": movie_input.publishing_year,
                    "poster": stored or movie.poster,
                    "updated_at": _now_iso(),
                }
            )
            self._repo.update_movie(movie)
        except Exception:
            self._storage.delete(stored)
            raise

        if stored and old_poster and old_poster != stored:
            self._storage.delete(old_poster)
        LOGGER.info(
            "Movie updated",
            extra={"movie_id": movie.movie_id, "user_id": actor.user_id},
        )
        return self.to_response(movie)

    def delete_movie(self, *, user_id: str, movie_id: str) -> None:
        actor = self._require_actor(user_id)
        movie = self._load_movie(movie_id)
        self._ensure_can_modify(actor, movie, "delete")

        self._storage.delete(movie.poster)
        self._repo.delete_movie(movie.movie_id)
        LOGGER.info(
            "Movie deleted",
            extra={"movie_id": movie.movie_id, "user_id": actor.user_id},
        )
