"""Project, owner and voice profile."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from seogen.models.base import Entity


class VoiceProfile(BaseModel):
    name: str
    description: str
    sample_text: str | None = None

    def to_prompt_instruction(self) -> str:
        parts = [self.description]
        if self.sample_text:
            parts.append(f"\n\nExample writing style:\n{self.sample_text}")
        return "".join(parts)


class User(Entity):
    collection = "users"
    id_prefix = "usr"

    email: str = ""
    voice_profile: VoiceProfile | None = None


class Competitor(BaseModel):
    domain: str
    title: str | None = None
    source: str = "manual"  # manual | discovered


class Project(Entity):
    collection = "projects"
    id_prefix = "prj"

    user_id: str = ""
    name: str = ""
    domain: str = ""
    niche: str | None = None
    description: str | None = None
    seed_keywords: list[str] = Field(default_factory=list)
    competitors: list[Competitor] = Field(default_factory=list)
    domain_analysis: dict[str, Any] | None = None
