"""File-based entity store: one JSON document per entity."""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeVar

from seogen.models import Entity
from seogen.store.base import parent_id_of

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class FileEntityStore:
    """Persist entities as JSON files under ``<data_dir>/entities/<collection>/``.

    Survives restarts within the same data dir. A single lock serialises writes,
    which is what makes ``transition`` a compare-and-swap inside one process.
    """

    def __init__(self, data_dir: Path):
        self._dir = Path(data_dir) / "entities"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _collection_dir(self, model: type[Entity]) -> Path:
        path = self._dir / model.collection
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _path(self, model: type[Entity], entity_id: str) -> Path:
        return self._collection_dir(model) / f"{entity_id}.json"

    def get(self, model: type[E], entity_id: str) -> E | None:
        path = self._path(model, entity_id)
        with self._lock:
            if not path.exists():
                return None
            return self._read(model, path)

    def save(self, entity: E) -> E:
        with self._lock:
            self._write(entity)
        return entity

    def delete(self, model: type[E], entity_id: str) -> bool:
        path = self._path(model, entity_id)
        with self._lock:
            if not path.exists():
                return False
            path.unlink()
            return True

    def list_children(self, model: type[E], parent_id: str) -> list[E]:
        field = getattr(model, "parent_field", None)
        results: list[E] = []
        with self._lock:
            for path in self._collection_dir(model).glob("*.json"):
                entity = self._read(model, path)
                if field and getattr(entity, field, None) == parent_id:
                    results.append(entity)
        results.sort(key=lambda e: e.created_at)
        return results

    def delete_children(self, model: type[E], parent_id: str) -> int:
        with self._lock:
            children = self.list_children(model, parent_id)
            for child in children:
                self.delete(model, child.id)
        return len(children)

    def transition(
        self,
        model: type[E],
        entity_id: str,
        expected: Iterable[str],
        new_status: str,
        **fields: Any,
    ) -> E | None:
        allowed = set(expected)
        with self._lock:
            entity = self.get(model, entity_id)
            if entity is None or entity.status_value not in allowed:
                return None
            entity.status = model.coerce_status(new_status)
            for name, value in fields.items():
                setattr(entity, name, value)
            entity = model.model_validate(entity.model_dump())
            self._write(entity)
            return entity

    def _write(self, entity: Entity) -> None:
        path = self._path(type(entity), entity.id)
        data = entity.model_dump(mode="json")
        data["_parent_id"] = parent_id_of(entity)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp, path)

    def _read(self, model: type[E], path: Path) -> E:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data.pop("_parent_id", None)
        return model.model_validate(data)
