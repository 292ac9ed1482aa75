"""Versioned MongoDB schema migrations for catalog collections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import pymongo
from pymongo.errors import PyMongoError

from movie_catalog.core.config import DatabaseConfig
from movie_catalog.core.logging import CORRELATION_ID_CTX

LOGGER = logging.getLogger(__name__)

MigrationFn = Callable[[Any], None]

USERS_COLLECTION = "users"
MOVIES_COLLECTION = "movies"


def _migration_0001_core_indexes(db: Any) -> None:
    db[USERS_COLLECTION].create_index("user_id", unique=True)
    db[USERS_COLLECTION].create_index("email", unique=True)
    db[USERS_COLLECTION].create_index("password_reset_token_hash", sparse=True)
    db[MOVIES_COLLECTION].create_index("movie_id", unique=True)
    db[MOVIES_COLLECTION].create_index("owner_id")
    db[MOVIES_COLLECTION].create_index(
        [("title", pymongo.ASCENDING), ("publishing_year", pymongo.ASCENDING)]
    )


def _migration_0002_movie_listing_order(db: Any) -> None:
    db[MOVIES_COLLECTION].create_index(
        [("created_at", pymongo.DESCENDING)],
        name="idx_movies_created_at_desc",
    )


def _migration_0003_owner_title_lookup(db: Any) -> None:
    db[MOVIES_COLLECTION].create_index(
        [("owner_id", pymongo.ASCENDING), ("title", pymongo.ASCENDING)],
        name="idx_movies_owner_title",
    )


MIGRATIONS: list[tuple[str, MigrationFn]] = [
    ("0001_core_indexes", _migration_0001_core_indexes),
    ("0002_movie_listing_order", _migration_0002_movie_listing_order),
    ("0003_owner_title_lookup", _migration_0003_owner_title_lookup),
]


def apply_mongo_migrations(config: DatabaseConfig) -> list[str]:
    """Apply pending MongoDB migrations and return the ids applied now."""
    if not config.mongo_uri:
        return []

    applied: list[str] = []
    client: Any = pymongo.MongoClient(config.mongo_uri, serverSelectionTimeoutMS=3000)
    try:
        try:
            client.admin.command("ping")
            db = client[config.mongo_db]
            migration_collection = db["schema_migrations"]
            migration_collection.create_index("migration_id", unique=True)

            for migration_id, migration_fn in MIGRATIONS:
                if migration_collection.find_one({"migration_id": migration_id}):
                    continue
                migration_fn(db)
                migration_collection.insert_one(
                    {
                        "migration_id": migration_id,
                        "applied_at": datetime.now(timezone.utc),
                        "correlation_id": CORRELATION_ID_CTX.get(),
                    }
                )
                applied.append(migration_id)
        except PyMongoError:
            LOGGER.exception("MongoDB migrations failed")
            return applied
    finally:
        client.close()
    if applied:
        LOGGER.info("Applied MongoDB migrations: %s", ", ".join(applied))
    return applied
