"""Outline generation from SERP research."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from seogen.llm import LLMProvider
from seogen.models import VoiceProfile
from seogen.stages.base import StageResult

logger = logging.getLogger(__name__)

OUTLINE_COST = Decimal("0.01")

_PROMPT = """Create a detailed outline for an SEO article targeting "{keyword}".
Target length: about {target_word_count} words in total.

Competitor research:
{serp_json}
{voice}
Return a JSON object:
{{
  "title": "SEO title under 60 characters",
  "meta_description": "under 155 characters",
  "sections": [
    {{"heading": "...", "key_points": ["..."], "target_word_count": 300}}
  ]
}}
The section word counts must add up to roughly the target length.
"""


def target_words(outline: dict[str, Any], default: int = 2000) -> int:
    """Sum of per-section targets; ``default`` when the outline has no sections."""
    sections = outline.get("sections")
    if sections is None:
        return default
    return sum(int(s.get("target_word_count") or 0) for s in sections)


class OutlineStage:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(
        self,
        keyword: str,
        serp_data: dict[str, Any],
        target_word_count: int = 2000,
        voice_profile: VoiceProfile | None = None,
    ) -> StageResult[dict[str, Any]]:
        voice = ""
        if voice_profile is not None:
            voice = f"\nWrite headings in this voice:\n{voice_profile.to_prompt_instruction()}\n"
        prompt = _PROMPT.format(
            keyword=keyword,
            target_word_count=target_word_count,
            serp_json=json.dumps(serp_data, ensure_ascii=False)[:8000],
            voice=voice,
        )
        try:
            outline = self._llm.complete_json(prompt)
        except json.JSONDecodeError as e:
            logger.warning("Outline for %r was not valid JSON: %s", keyword, e)
            return StageResult.failure(OUTLINE_COST)
        if not isinstance(outline, dict) or not outline.get("sections"):
            return StageResult.failure(OUTLINE_COST)
        return StageResult.success(outline, OUTLINE_COST)
