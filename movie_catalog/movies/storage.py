"""Filesystem storage for uploaded movie posters."""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile

from movie_catalog.api.errors import validation_error

LOGGER = logging.getLogger(__name__)

ALLOWED_POSTER_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})


class PosterStorage:
    """Save, resolve and delete poster image files under one directory."""

    def __init__(self, posters_dir: Path, *, max_bytes: int, public_prefix: str) -> None:
        posters_dir.mkdir(parents=True, exist_ok=True)
        self._posters_dir = posters_dir
        self._max_bytes = max_bytes
        self._public_prefix = public_prefix.rstrip("/")

    @property
    def posters_dir(self) -> Path:
        return self._posters_dir

    @staticmethod
    def has_file(upload: UploadFile | None) -> bool:
        return upload is not None and bool(upload.filename)

    def path_for(self, filename: str) -> Path:
        # Stored names are generated, never client paths.
        return self._posters_dir / Path(filename).name

    def public_url(self, filename: str) -> str:
        if not filename:
            return ""
        return f"{self._public_prefix}/{Path(filename).name}"

    def save(self, upload: UploadFile) -> str:
        """Persist an uploaded image and return its stored filename."""
        suffix = Path(upload.filename or "").suffix.lower()
        content_type = (upload.content_type or "").lower()
        if suffix not in ALLOWED_POSTER_SUFFIXES or (
            content_type and not content_type.startswith("image/")
        ):
            raise validation_error(
                "Only image files (jpg, jpeg, png, gif, webp) are allowed", "poster"
            )

        stored_name = f"poster-{uuid.uuid4().hex}{suffix}"
        target = self.path_for(stored_name)
        with target.open("wb") as fh:
            shutil.copyfileobj(upload.file, fh)

        if target.stat().st_size > self._max_bytes:
            self.delete(stored_name)
            raise validation_error(
                f"Poster image cannot exceed {self._max_bytes} bytes", "poster"
            )
        LOGGER.info("Poster stored", extra={"file_name": stored_name})
        return stored_name

    def delete(self, filename: str) -> bool:
        """Best-effort removal; failures are logged, never raised."""
        if not filename:
            return False
        target = self.path_for(filename)
        try:
            if not target.exists():
                return False
            target.unlink()
        except OSError:
            LOGGER.exception("Failed deleting poster", extra={"file_name": filename})
            return False
        LOGGER.info("Poster deleted", extra={"file_name": filename})
        return True
