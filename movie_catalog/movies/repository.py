"""Repository for movie records."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import pymongo

from movie_catalog.core.config import DatabaseConfig
from movie_catalog.core.json_store import JsonListStore
from movie_catalog.core.mongo import open_mongo_database
from movie_catalog.core.mongo_migrations import MOVIES_COLLECTION
from movie_catalog.movies.models import MovieRecord


def _matches(row: dict[str, Any], search: str | None, publishing_year: int | None) -> bool:
    if search and search.lower() not in str(row.get("title", "")).lower():
        return False
    if publishing_year is not None and row.get("publishing_year") != publishing_year:
        return False
    return True


class MovieRepository:
    """Movie repository with MongoDB primary and file-store fallback."""

    def __init__(self, runtime_dir: Path, database: DatabaseConfig) -> None:
        self._store = JsonListStore(runtime_dir / "store" / "movies.json")
        self._collection: Any | None = None

        db = open_mongo_database(database, owner="MovieRepository")
        if db is not None:
            self._collection = db[MOVIES_COLLECTION]
            self._collection.create_index("movie_id", unique=True)
            self._collection.create_index("owner_id")

    def get_movie(self, movie_id: str) -> MovieRecord | None:
        if self._collection is not None:
            doc = self._collection.find_one({"movie_id": movie_id}, {"_id": 0})
            return MovieRecord.model_validate(doc) if doc else None

        for row in self._store.read():
            if row.get("movie_id") == movie_id:
                return MovieRecord.model_validate(row)
        return None

    def find_owner_title(
        self, owner_id: str, title: str, *, exclude_movie_id: str = ""
    ) -> MovieRecord | None:
        """Return the owner's movie with exactly ``title``, if any."""
        if self._collection is not None:
            query: dict[str, Any] = {"owner_id": owner_id, "title": title}
            if exclude_movie_id:
                query["movie_id"] = {"$ne": exclude_movie_id}
            doc = self._collection.find_one(query, {"_id": 0})
            return MovieRecord.model_validate(doc) if doc else None

        for row in self._store.read():
            if (
                row.get("owner_id") == owner_id
                and row.get("title") == title
                and row.get("movie_id") != exclude_movie_id
            ):
                return MovieRecord.model_validate(row)
        return None

    def search_movies(
        self,
        *,
        search: str | None,
        publishing_year: int | None,
        skip: int,
        limit: int,
    ) -> tuple[list[MovieRecord], int]:
        """Return one page of movies, newest first, plus the total match count."""
        if self._collection is not None:
            query: dict[str, Any] = {}
            if search:
                query["title"] = {"$regex": re.escape(search), "$options": "i"}
            if publishing_year is not None:
                query["publishing_year"] = publishing_year
            cursor = (
                self._collection.find(query, {"_id": 0})
                .sort("created_at", pymongo.DESCENDING)
                .skip(skip)
                .limit(limit)
            )
            items = [MovieRecord.model_validate(doc) for doc in cursor]
            return items, int(self._collection.count_documents(query))

        rows = [row for row in self._store.read() if _matches(row, search, publishing_year)]
        # Stable sort keeps later inserts first among equal timestamps.
        rows = list(reversed(rows))
        rows.sort(key=lambda row: str(row.get("created_at") or ""), reverse=True)
        page = rows[skip : skip + limit]
        return [MovieRecord.model_validate(row) for row in page], len(rows)

    def insert_movie(self, movie: MovieRecord) -> None:
        doc = movie.model_dump()
        if self._collection is not None:
            self._collection.insert_one(dict(doc))
            return
        with self._store.transaction() as items:
            items.append(doc)

    def update_movie(self, movie: MovieRecord) -> None:
        doc = movie.model_dump()
        if self._collection is not None:
            self._collection.replace_one({"movie_id": movie.movie_id}, doc)
            return
        with self._store.transaction() as items:
            for index, row in enumerate(items):
                if row.get("movie_id") == movie.movie_id:
                    items[index] = doc
                    break

    def delete_movie(self, movie_id: str) -> bool:
        if self._collection is not None:
            result = self._collection.delete_one({"movie_id": movie_id})
            return bool(result.deleted_count)
        with self._store.transaction() as items:
            remaining = [row for row in items if row.get("movie_id") != movie_id]
            deleted = len(remaining) != len(items)
            items[:] = remaining
        return deleted
