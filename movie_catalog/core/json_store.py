"""JSON-file document store used when MongoDB is not configured."""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Any, Iterator

LOGGER = logging.getLogger(__name__)


class JsonListStore:
    """A list of JSON documents persisted to a single file.

    ``transaction()`` holds a process-local lock across a read-modify-write
    cycle and persists the list on exit.
    """

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._lock = RLock()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> list[dict[str, Any]]:
        """Read list payload from JSON file with empty fallback."""
        with self._lock:
            if not self._path.exists():
                return []
            try:
                payload = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                LOGGER.exception("Failed reading JSON store: %s", self._path)
                return []
            if not isinstance(payload, list):
                return []
            return [row for row in payload if isinstance(row, dict)]

    def write(self, items: list[dict[str, Any]]) -> None:
        """Persist list payload atomically."""
        with self._lock:
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(
                json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            os.replace(tmp_path, self._path)

    @contextmanager
    def transaction(self) -> Iterator[list[dict[str, Any]]]:
        with self._lock:
            items = self.read()
            yield items
            self.write(items)
