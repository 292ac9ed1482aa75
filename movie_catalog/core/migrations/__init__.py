"""SQLite migrations for runtime infrastructure tables."""

from movie_catalog.core.migrations.runner import apply_migrations

__all__ = ["apply_migrations"]
