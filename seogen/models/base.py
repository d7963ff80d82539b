"""Shared shape of persisted entities and generation targets."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import ClassVar

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class Entity(BaseModel):
    """A document persisted by the entity store under ``collection``."""

    collection: ClassVar[str] = ""
    id_prefix: ClassVar[str] = "ent"

    id: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    def model_post_init(self, __context) -> None:
        if not self.id:
            self.id = new_id(self.id_prefix)


class GenerationTarget(Entity):
    """Entity a pipeline run operates on.

    Subclasses declare their status enum and the name of their in-progress state.
    """

    in_progress_status: ClassVar[str] = ""
    parent_field: ClassVar[str] = "project_id"

    status: str = "pending"
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def coerce_status(cls, value: str):
        """Status value as the subclass enum member."""
        enum_cls = cls.model_fields["status"].annotation
        return value if isinstance(value, enum_cls) else enum_cls(value)

    @property
    def status_value(self) -> str:
        return getattr(self.status, "value", self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_value in ("completed", "failed")
