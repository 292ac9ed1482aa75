"""Pydantic models for the movie catalog domain."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_PUBLISHING_YEAR = 1800
FUTURE_YEAR_ALLOWANCE = 5
MAX_TITLE_LENGTH = 200
MAX_SEARCH_LENGTH = 100
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def max_publishing_year() -> int:
    return datetime.now(timezone.utc).year + FUTURE_YEAR_ALLOWANCE


def _check_publishing_year(value: object, *, required: bool) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValueError("Publishing year is required")
        return None
    if isinstance(value, bool):
        raise ValueError("Publishing year must be a valid number")
    if isinstance(value, str):
        raw = value.strip()
        try:
            number = float(raw)
        except ValueError as exc:
            raise ValueError("Publishing year must be a valid number") from exc
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValueError("Publishing year must be a valid number")
    if not number.is_integer():
        raise ValueError("Publishing year must be an integer")
    year = int(number)
    if year < MIN_PUBLISHING_YEAR:
        raise ValueError(f"Publishing year cannot be before {MIN_PUBLISHING_YEAR}")
    upper = max_publishing_year()
    if year > upper:
        raise ValueError(f"Publishing year cannot be more than {upper}")
    return year


class MovieRecord(BaseModel):
    """Persisted movie model."""

    movie_id: str
    title: str
    publishing_year: int
    poster: str
    owner_id: str
    created_at: str
    updated_at: str


class MovieInput(BaseModel):
    """Validated title/year pair from a multipart create or update form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = Field(default=None, validate_default=True)
    publishing_year: int | None = Field(default=None, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def _title_policy(cls, value: object) -> str:
        if value is None:
            raise ValueError("Movie title is required")
        if not isinstance(value, str):
            raise ValueError("Movie title must be text")
        title = value.strip()
        if not title:
            raise ValueError("Movie title cannot be empty")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValueError(
                f"Movie title cannot exceed {MAX_TITLE_LENGTH} characters"
            )
        return title

    @field_validator("publishing_year", mode="before")
    @classmethod
    def _year_policy(cls, value: object) -> int | None:
        return _check_publishing_year(value, required=True)


class MovieListQuery(BaseModel):
    """Search, filter and pagination parameters for listings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search: str | None = None
    publishing_year: int | None = None
    page: int = Field(default=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE)

    @field_validator("search", mode="before")
    @classmethod
    def _search_policy(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if len(text) > MAX_SEARCH_LENGTH:
            raise ValueError(f"Search cannot exceed {MAX_SEARCH_LENGTH} characters")
        return text or None

    @field_validator("publishing_year", mode="before")
    @classmethod
    def _year_filter_policy(cls, value: object) -> int | None:
        return _check_publishing_year(value, required=False)

    @field_validator("page", mode="before")
    @classmethod
    def _page_policy(cls, value: object) -> int:
        if value is None or value == "":
            return 1
        try:
            page = int(str(value).strip())
        except ValueError as exc:
            raise ValueError("Page must be an integer") from exc
        if page < 1:
            raise ValueError("Page must be at least 1")
        return page

    @field_validator("limit", mode="before")
    @classmethod
    def _limit_policy(cls, value: object) -> int:
        if value is None or value == "":
            return DEFAULT_PAGE_SIZE
        try:
            limit = int(str(value).strip())
        except ValueError as exc:
            raise ValueError("Limit must be an integer") from exc
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        return limit

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit
