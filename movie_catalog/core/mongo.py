"""MongoDB connection helper shared by repositories."""

from __future__ import annotations

import logging
from typing import Any

import pymongo
from pymongo.errors import PyMongoError

from movie_catalog.core.config import DatabaseConfig

LOGGER = logging.getLogger(__name__)


def open_mongo_database(config: DatabaseConfig, *, owner: str) -> Any | None:
    """Return a pinged database handle, or ``None`` to use the file store."""
    if not config.mongo_uri:
        LOGGER.warning("MONGODB_URI is not set. %s uses local JSON store.", owner)
        return None
    try:
        client: Any = pymongo.MongoClient(
            config.mongo_uri, serverSelectionTimeoutMS=3000
        )
        client.admin.command("ping")
    except PyMongoError:
        LOGGER.exception(
            "MongoDB connection failed. %s falls back to local JSON store.", owner
        )
        return None
    LOGGER.info("%s using MongoDB: db=%s", owner, config.mongo_db)
    return client[config.mongo_db]
