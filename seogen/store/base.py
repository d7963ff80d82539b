"""Entity store protocol."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

from seogen.models import Entity

E = TypeVar("E", bound=Entity)


class EntityNotFoundError(LookupError):
    """Raised when a required entity does not exist."""

    def __init__(self, model: type[Entity], entity_id: str):
        super().__init__(f"{model.__name__} not found: {entity_id}")
        self.model = model
        self.entity_id = entity_id


class EntityStore(Protocol):
    def get(self, model: type[E], entity_id: str) -> E | None: ...
    def save(self, entity: E) -> E: ...
    def delete(self, model: type[E], entity_id: str) -> bool: ...
    def list_children(self, model: type[E], parent_id: str) -> list[E]: ...
    def delete_children(self, model: type[E], parent_id: str) -> int: ...
    def transition(
        self,
        model: type[E],
        entity_id: str,
        expected: Iterable[str],
        new_status: str,
        **fields: Any,
    ) -> E | None:
        """Set status (and fields) only if the stored status is one of ``expected``.

        Returns the updated entity, or None when the entity is missing or its
        status did not match.
        """
        ...


def require(store: EntityStore, model: type[E], entity_id: str) -> E:
    entity = store.get(model, entity_id)
    if entity is None:
        raise EntityNotFoundError(model, entity_id)
    return entity


def parent_id_of(entity: Entity) -> str | None:
    field = getattr(type(entity), "parent_field", None)
    return getattr(entity, field, None) if field else None
