"""Repository for persisted user accounts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from pymongo.errors import DuplicateKeyError

from movie_catalog.auth.models import AuthUser, normalize_email
from movie_catalog.core.config import DatabaseConfig
from movie_catalog.core.json_store import JsonListStore
from movie_catalog.core.mongo import open_mongo_database
from movie_catalog.core.mongo_migrations import USERS_COLLECTION


class DuplicateEmailError(Exception):
    """Raised when a write would give two users the same email."""


class AuthRepository:
    """User repository with MongoDB primary and file-store fallback."""

    def __init__(self, runtime_dir: Path, database: DatabaseConfig) -> None:
        self._store = JsonListStore(runtime_dir / "store" / "users.json")
        self._mongo_users: Any | None = None

        db = open_mongo_database(database, owner="AuthRepository")
        if db is not None:
            self._mongo_users = db[USERS_COLLECTION]
            self._mongo_users.create_index("user_id", unique=True)
            self._mongo_users.create_index("email", unique=True)

    def _find_one(self, query: dict[str, Any]) -> AuthUser | None:
        if self._mongo_users is not None:
            doc = self._mongo_users.find_one(query, {"_id": 0})
            return AuthUser.model_validate(doc) if doc else None

        for row in self._store.read():
            if all(row.get(key) == value for key, value in query.items()):
                return AuthUser.model_validate(row)
        return None

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        if not user_id:
            return None
        return self._find_one({"user_id": user_id})

    def get_user_by_email(self, email: str) -> AuthUser | None:
        key = normalize_email(email)
        if not key:
            return None
        return self._find_one({"email": key})

    def get_user_by_reset_token_hash(self, token_hash: str) -> AuthUser | None:
        if not token_hash:
            return None
        return self._find_one({"password_reset_token_hash": token_hash})

    def get_users_by_ids(self, user_ids: Iterable[str]) -> dict[str, AuthUser]:
        """Bulk lookup used to embed owner summaries in movie payloads."""
        wanted = {user_id for user_id in user_ids if user_id}
        if not wanted:
            return {}
        if self._mongo_users is not None:
            docs = self._mongo_users.find({"user_id": {"$in": sorted(wanted)}}, {"_id": 0})
            users = [AuthUser.model_validate(doc) for doc in docs]
        else:
            users = [
                AuthUser.model_validate(row)
                for row in self._store.read()
                if row.get("user_id") in wanted
            ]
        return {user.user_id: user for user in users}

    def create_user(self, user: AuthUser) -> None:
        """Insert a new user; raise ``DuplicateEmailError`` on email collision."""
        doc = user.model_dump()
        if self._mongo_users is not None:
            try:
                self._mongo_users.insert_one(dict(doc))
            except DuplicateKeyError as exc:
                raise DuplicateEmailError(user.email) from exc
            return

        with self._store.transaction() as items:
            if any(normalize_email(str(row.get("email", ""))) == user.email for row in items):
                raise DuplicateEmailError(user.email)
            items.append(doc)

    def save_user(self, user: AuthUser) -> None:
        """Replace an existing user by id; email must stay unique."""
        doc = user.model_dump()
        if self._mongo_users is not None:
            try:
                self._mongo_users.replace_one({"user_id": user.user_id}, doc)
            except DuplicateKeyError as exc:
                raise DuplicateEmailError(user.email) from exc
            return

        with self._store.transaction() as items:
            for row in items:
                if (
                    row.get("user_id") != user.user_id
                    and normalize_email(str(row.get("email", ""))) == user.email
                ):
                    raise DuplicateEmailError(user.email)
            for index, row in enumerate(items):
                if row.get("user_id") == user.user_id:
                    items[index] = doc
                    break
