"""Postgres entity store: entities as JSONB documents in one table."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from typing import Any, TypeVar

from seogen.models import Entity
from seogen.store.base import parent_id_of

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class PostgresEntityStore:
    """Persist entities in Postgres. Survives restarts and is shared across workers."""

    def __init__(self, database_url: str):
        self._url = database_url
        self._lock = threading.Lock()
        self._conn = self._connect()

    def _connect(self):
        try:
            import psycopg
        except ImportError:
            raise ImportError(
                "psycopg required for Postgres entity store. pip install 'psycopg[binary]'"
            )
        conn = psycopg.connect(self._url, autocommit=True)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS seogen_entities (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                parent_id TEXT,
                data JSONB NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                PRIMARY KEY (collection, id)
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_seogen_entities_parent
            ON seogen_entities (collection, parent_id)
        """)
        return conn

    def get(self, model: type[E], entity_id: str) -> E | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT data FROM seogen_entities WHERE collection = %s AND id = %s",
                (model.collection, entity_id),
            ).fetchone()
        if not row:
            return None
        return self._row_to_entity(model, row[0])

    def save(self, entity: E) -> E:
        data = json.dumps(entity.model_dump(mode="json"), default=str)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO seogen_entities (collection, id, parent_id, data)
                VALUES (%s, %s, %s, %s::jsonb)
                ON CONFLICT (collection, id)
                DO UPDATE SET data = EXCLUDED.data, parent_id = EXCLUDED.parent_id,
                              updated_at = NOW()
                """,
                (type(entity).collection, entity.id, parent_id_of(entity), data),
            )
        return entity

    def delete(self, model: type[E], entity_id: str) -> bool:
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM seogen_entities WHERE collection = %s AND id = %s",
                (model.collection, entity_id),
            )
        return cur.rowcount > 0

    def list_children(self, model: type[E], parent_id: str) -> list[E]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT data FROM seogen_entities
                WHERE collection = %s AND parent_id = %s
                ORDER BY created_at
                """,
                (model.collection, parent_id),
            ).fetchall()
        return [self._row_to_entity(model, r[0]) for r in rows]

    def delete_children(self, model: type[E], parent_id: str) -> int:
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM seogen_entities WHERE collection = %s AND parent_id = %s",
                (model.collection, parent_id),
            )
        return cur.rowcount

    def transition(
        self,
        model: type[E],
        entity_id: str,
        expected: Iterable[str],
        new_status: str,
        **fields: Any,
    ) -> E | None:
        allowed = list(expected)
        with self._lock, self._conn.transaction():
            row = self._conn.execute(
                """
                SELECT data FROM seogen_entities
                WHERE collection = %s AND id = %s AND data->>'status' = ANY(%s)
                FOR UPDATE
                """,
                (model.collection, entity_id, allowed),
            ).fetchone()
            if not row:
                return None
            entity = self._row_to_entity(model, row[0])
            entity.status = model.coerce_status(new_status)
            for name, value in fields.items():
                setattr(entity, name, value)
            entity = model.model_validate(entity.model_dump())
            self._conn.execute(
                """
                UPDATE seogen_entities SET data = %s::jsonb, updated_at = NOW()
                WHERE collection = %s AND id = %s
                """,
                (json.dumps(entity.model_dump(mode="json"), default=str), model.collection, entity_id),
            )
        return entity

    def _row_to_entity(self, model: type[E], data: Any) -> E:
        return model.model_validate(data if isinstance(data, dict) else json.loads(data))
