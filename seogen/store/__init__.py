"""Entity storage — Postgres (preferred) or file-based fallback."""

from __future__ import annotations

import logging

from seogen.config import get_settings
from seogen.store.base import EntityNotFoundError, EntityStore, require
from seogen.store.file_store import FileEntityStore
from seogen.store.postgres_store import PostgresEntityStore

logger = logging.getLogger(__name__)

_store: EntityStore | None = None


def get_store() -> EntityStore:
    """Return singleton entity store (Postgres if configured, else file-based)."""
    global _store
    if _store is not None:
        return _store
    settings = get_settings()
    if settings.seogen_database_url:
        try:
            _store = PostgresEntityStore(settings.seogen_database_url)
            logger.info("Using Postgres entity store")
        except Exception as e:
            logger.warning("Postgres entity store failed (%s), falling back to file store", e)
            _store = FileEntityStore(settings.data_dir)
    else:
        _store = FileEntityStore(settings.data_dir)
        logger.info("Using file-based entity store (SEOGEN_DATA_DIR/entities)")
    return _store


def set_store(store: EntityStore | None) -> None:
    """Replace the singleton (tests, CLI with an explicit data dir)."""
    global _store
    _store = store


__all__ = [
    "EntityNotFoundError",
    "EntityStore",
    "FileEntityStore",
    "PostgresEntityStore",
    "get_store",
    "require",
    "set_store",
]
