from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pytest

from movie_catalog.api.errors import ApiError
from movie_catalog.auth.models import AuthUser
from movie_catalog.movies.models import MovieListQuery, MovieRecord
from movie_catalog.movies.service import MovieService
from movie_catalog.movies.storage import PosterStorage
from tests.app_factory import upload_file

OWNER_ID = "64b000000000000000000001"
OTHER_ID = "64b000000000000000000002"
ADMIN_ID = "64b000000000000000000003"


class _MovieRepo:
    def __init__(self) -> None:
        self.movies: dict[str, MovieRecord] = {}
        self.fail_insert = False

    def get_movie(self, movie_id: str) -> MovieRecord | None:
        return self.movies.get(movie_id)

    def find_owner_title(
        self, owner_id: str, title: str, *, exclude_movie_id: str = ""
    ) -> MovieRecord | None:
        for movie in self.movies.values():
            if movie.owner_id == owner_id and movie.title == title and movie.movie_id != exclude_movie_id:
                return movie
        return None

    def search_movies(self, *, search, publishing_year, skip, limit):
        rows = [
            movie
            for movie in self.movies.values()
            if (not search or search.lower() in movie.title.lower())
            and (publishing_year is None or movie.publishing_year == publishing_year)
        ]
        rows.sort(key=lambda movie: movie.created_at, reverse=True)
        return rows[skip : skip + limit], len(rows)

    def insert_movie(self, movie: MovieRecord) -> None:
        if self.fail_insert:
            raise RuntimeError("database unavailable")
        self.movies[movie.movie_id] = movie

    def update_movie(self, movie: MovieRecord) -> None:
        self.movies[movie.movie_id] = movie

    def delete_movie(self, movie_id: str) -> bool:
        return self.movies.pop(movie_id, None) is not None


class _Users:
    def __init__(self) -> None:
        self.users = {
            OWNER_ID: AuthUser(user_id=OWNER_ID, name="Owner", email="owner@test.local", password_hash="h"),
            OTHER_ID: AuthUser(user_id=OTHER_ID, name="Other", email="other@test.local", password_hash="h"),
            ADMIN_ID: AuthUser(
                user_id=ADMIN_ID, name="Admin", email="admin@test.local", password_hash="h", role="admin"
            ),
        }

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        return self.users.get(user_id)

    def get_users_by_ids(self, user_ids: Iterable[str]) -> dict[str, AuthUser]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}


def _service(tmp_path: Path) -> tuple[MovieService, _MovieRepo, _Users, PosterStorage]:
    repo = _MovieRepo()
    users = _Users()
    storage = PosterStorage(tmp_path / "posters", max_bytes=1024, public_prefix="/uploads/posters")
    return MovieService(repo=repo, users=users, storage=storage), repo, users, storage


def _files(storage: PosterStorage) -> list[str]:
    return sorted(path.name for path in storage.posters_dir.iterdir())


def _create(service: MovieService, title: str = "Dune", year: object = 1984, user_id: str = OWNER_ID):
    return service.create_movie(
        user_id=user_id, title=title, publishing_year=year, poster=upload_file()
    )


def test_create_movie_persists_record_and_poster(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)

    movie = _create(service, title=" Dune ", year="1984")

    assert movie.title == "Dune"
    assert movie.publishing_year == 1984
    assert movie.owner_id == OWNER_ID
    assert movie.created_by is not None and movie.created_by.email == "owner@test.local"
    assert movie.poster_url == f"/uploads/posters/{movie.poster}"
    assert _files(storage) == [movie.poster]
    assert movie.id in repo.movies


def test_create_without_poster_fails_and_creates_nothing(tmp_path: Path) -> None:
    service, repo, _, _ = _service(tmp_path)

    with pytest.raises(ApiError) as exc:
        service.create_movie(user_id=OWNER_ID, title="Dune", publishing_year=1984, poster=None)

    assert exc.value.status_code == 400
    assert exc.value.field == "poster"
    assert repo.movies == {}


@pytest.mark.parametrize(
    ("title", "year", "field"),
    [("", 1984, "title"), ("Dune", 1700, "publishingYear"), ("Dune", "soon", "publishingYear")],
)
def test_create_validation_failure_removes_uploaded_file(
    tmp_path: Path, title: str, year: object, field: str
) -> None:
    service, repo, _, storage = _service(tmp_path)

    with pytest.raises(ApiError) as exc:
        _create(service, title=title, year=year)

    assert exc.value.field == field
    assert repo.movies == {}
    assert _files(storage) == []


def test_duplicate_title_is_scoped_per_owner(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)
    first = _create(service)

    with pytest.raises(ApiError) as exc:
        _create(service)
    second_owner = _create(service, user_id=OTHER_ID)

    assert exc.value.status_code == 409
    assert exc.value.field == "title"
    assert len(repo.movies) == 2
    assert _files(storage) == sorted([first.poster, second_owner.poster])


def test_create_for_vanished_user_is_unauthorized_and_cleans_up(tmp_path: Path) -> None:
    service, repo, users, storage = _service(tmp_path)
    del users.users[OWNER_ID]

    with pytest.raises(ApiError) as exc:
        _create(service)

    assert exc.value.status_code == 401
    assert repo.movies == {}
    assert _files(storage) == []


def test_create_storage_failure_after_upload_removes_file(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)
    repo.fail_insert = True

    with pytest.raises(RuntimeError):
        _create(service)

    assert _files(storage) == []


def test_update_by_non_owner_is_forbidden_and_keeps_state(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)
    movie = _create(service)

    with pytest.raises(ApiError) as exc:
        service.update_movie(
            user_id=OTHER_ID,
            movie_id=movie.id,
            title="Hacked",
            publishing_year=2000,
            poster=upload_file(),
        )

    assert exc.value.status_code == 403
    assert repo.movies[movie.id].title == "Dune"
    assert _files(storage) == [movie.poster]


def test_update_replaces_poster_and_deletes_old_file(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)
    movie = _create(service)

    updated = service.update_movie(
        user_id=OWNER_ID,
        movie_id=movie.id,
        title="Dune Part One",
        publishing_year=2021,
        poster=upload_file("new.jpg", content_type="image/jpeg"),
    )

    assert updated.title == "Dune Part One"
    assert updated.poster != movie.poster
    assert _files(storage) == [updated.poster]
    assert repo.movies[movie.id].poster == updated.poster


def test_update_without_poster_keeps_existing_file(tmp_path: Path) -> None:
    service, _, _, storage = _service(tmp_path)
    movie = _create(service)

    updated = service.update_movie(
        user_id=ADMIN_ID, movie_id=movie.id, title="Dune", publishing_year=1985, poster=None
    )

    assert updated.poster == movie.poster
    assert updated.publishing_year == 1985
    assert updated.owner_id == OWNER_ID
    assert _files(storage) == [movie.poster]


def test_update_duplicate_title_excludes_itself(tmp_path: Path) -> None:
    service, _, _, storage = _service(tmp_path)
    dune = _create(service)
    alien = _create(service, title="Alien", year=1979)

    service.update_movie(
        user_id=OWNER_ID, movie_id=dune.id, title="Dune", publishing_year=1984, poster=None
    )
    with pytest.raises(ApiError) as exc:
        service.update_movie(
            user_id=OWNER_ID,
            movie_id=alien.id,
            title="Dune",
            publishing_year=1979,
            poster=upload_file(),
        )

    assert exc.value.status_code == 409
    assert _files(storage) == sorted([dune.poster, alien.poster])


def test_update_missing_and_invalid_ids(tmp_path: Path) -> None:
    service, _, _, storage = _service(tmp_path)

    with pytest.raises(ApiError) as missing:
        service.update_movie(
            user_id=OWNER_ID,
            movie_id="64b0000000000000000000ff",
            title="Dune",
            publishing_year=1984,
            poster=upload_file(),
        )
    with pytest.raises(ApiError) as invalid:
        service.get_movie("not-an-id")

    assert missing.value.status_code == 404
    assert invalid.value.status_code == 400
    assert invalid.value.field == "id"
    assert _files(storage) == []


def test_delete_removes_record_and_poster(tmp_path: Path) -> None:
    service, repo, _, storage = _service(tmp_path)
    movie = _create(service)

    with pytest.raises(ApiError) as forbidden:
        service.delete_movie(user_id=OTHER_ID, movie_id=movie.id)
    service.delete_movie(user_id=OWNER_ID, movie_id=movie.id)

    assert forbidden.value.status_code == 403
    assert repo.movies == {}
    assert _files(storage) == []
    with pytest.raises(ApiError) as exc:
        service.get_movie(movie.id)
    assert exc.value.status_code == 404


def test_admin_may_delete_any_movie(tmp_path: Path) -> None:
    service, repo, _, _ = _service(tmp_path)
    movie = _create(service)

    service.delete_movie(user_id=ADMIN_ID, movie_id=movie.id)

    assert repo.movies == {}


def test_list_movies_paginates_all_owners(tmp_path: Path) -> None:
    service, _, _, _ = _service(tmp_path)
    for index in range(3):
        _create(service, title=f"Owner Movie {index}")
    _create(service, title="Other Movie", user_id=OTHER_ID)

    result = service.list_movies(MovieListQuery(page=2, limit=3))

    assert result.pagination.total_movies == 4
    assert result.pagination.total_pages == 2
    assert result.pagination.current_page == 2
    assert result.pagination.has_prev is True
    assert result.pagination.has_next is False
    assert len(result.movies) == 1


def test_list_movies_empty_has_zero_pages(tmp_path: Path) -> None:
    service, _, _, _ = _service(tmp_path)

    result = service.list_movies(MovieListQuery())

    assert result.movies == []
    assert result.pagination.total_pages == 0
    assert result.pagination.has_next is False
