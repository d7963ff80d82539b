"""Keyword research target and the keywords it produces."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field

from seogen.models.base import Entity, GenerationTarget, utcnow


class KeywordResearchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressEntry(BaseModel):
    time: datetime = Field(default_factory=utcnow)
    message: str
    indent: int = 0


class KeywordResearch(GenerationTarget):
    collection = "keyword_researches"
    id_prefix = "kwr"
    in_progress_status = KeywordResearchStatus.PROCESSING.value

    status: KeywordResearchStatus = KeywordResearchStatus.PENDING
    project_id: str = ""
    seed_keywords: list[str] = Field(default_factory=list)
    total_keywords_found: int | None = None
    progress_log: list[ProgressEntry] = Field(default_factory=list)

    def add_progress_log(self, message: str, indent: int = 0) -> ProgressEntry:
        entry = ProgressEntry(message=message, indent=indent)
        self.progress_log.append(entry)
        return entry


class Keyword(Entity):
    collection = "keywords"
    id_prefix = "kw"
    parent_field: ClassVar[str] = "keyword_research_id"

    keyword_research_id: str = ""
    keyword: str
    volume: int | None = None
    difficulty: int | None = None
    opportunity: int | None = None
    cpc: float | None = None
    intent: str | None = None
    sources: list[str] = Field(default_factory=list)

    # User-driven flags; the pipeline never touches them after creation
    published: bool = False
    starred: bool = False

    @property
    def easy_win(self) -> bool:
        return (self.opportunity or 0) >= 70

    @property
    def difficulty_level(self) -> str:
        d = self.difficulty or 0
        if d < 33:
            return "Low"
        if d < 66:
            return "Medium"
        return "High"
