from __future__ import annotations

from pathlib import Path

import pytest

from movie_catalog.api.errors import ApiError
from movie_catalog.movies.storage import PosterStorage
from tests.app_factory import upload_file


def _storage(tmp_path: Path, max_bytes: int = 1024) -> PosterStorage:
    return PosterStorage(tmp_path / "posters", max_bytes=max_bytes, public_prefix="/uploads/posters/")


def test_save_writes_generated_name_and_public_url(tmp_path: Path) -> None:
    storage = _storage(tmp_path)

    stored = storage.save(upload_file("My Poster.PNG"))

    assert stored.startswith("poster-")
    assert stored.endswith(".png")
    assert storage.path_for(stored).read_bytes().startswith(b"\x89PNG")
    assert storage.public_url(stored) == f"/uploads/posters/{stored}"
    assert storage.public_url("") == ""


@pytest.mark.parametrize(
    ("filename", "content_type"),
    [("notes.txt", "text/plain"), ("poster.png", "application/pdf"), ("script", "image/png")],
)
def test_save_rejects_non_images(tmp_path: Path, filename: str, content_type: str) -> None:
    storage = _storage(tmp_path)

    with pytest.raises(ApiError) as exc:
        storage.save(upload_file(filename, content_type=content_type))

    assert exc.value.status_code == 400
    assert exc.value.field == "poster"
    assert list(storage.posters_dir.iterdir()) == []


def test_save_rejects_oversized_file_without_leaving_it(tmp_path: Path) -> None:
    storage = _storage(tmp_path, max_bytes=10)

    with pytest.raises(ApiError) as exc:
        storage.save(upload_file(data=b"x" * 11))

    assert exc.value.field == "poster"
    assert list(storage.posters_dir.iterdir()) == []


def test_delete_is_best_effort(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    stored = storage.save(upload_file())

    assert storage.delete(stored) is True
    assert storage.delete(stored) is False
    assert storage.delete("") is False


def test_path_for_ignores_directory_components(tmp_path: Path) -> None:
    storage = _storage(tmp_path)

    assert storage.path_for("../../etc/passwd") == storage.posters_dir / "passwd"


def test_has_file_requires_filename() -> None:
    assert PosterStorage.has_file(upload_file("poster.png"))
    assert not PosterStorage.has_file(upload_file(""))
    assert not PosterStorage.has_file(None)
