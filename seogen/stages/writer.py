"""Draft writing: intro, one call per outline section, conclusion."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from seogen.llm import LLMProvider
from seogen.models import VoiceProfile
from seogen.stages.base import StageResult

logger = logging.getLogger(__name__)

WRITING_COST = Decimal("0.15")

_SYSTEM = "You write clear, specific, well-structured SEO articles in Markdown."


class ArticleWriterStage:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(
        self,
        keyword: str,
        outline: dict[str, Any],
        serp_data: dict[str, Any],
        voice_profile: VoiceProfile | None = None,
    ) -> StageResult[str]:
        system = _SYSTEM
        if voice_profile is not None:
            system = f"{_SYSTEM}\n\nVoice and style:\n{voice_profile.to_prompt_instruction()}"
        research = json.dumps(
            {k: serp_data.get(k) for k in ("content_gaps", "questions", "examples")},
            ensure_ascii=False,
        )

        intro = self._write(
            f'Write a 100-150 word introduction for an article titled "{outline.get("title", keyword)}" '
            f'about "{keyword}". Hook the reader and state what they will learn. No heading.',
            system,
        )
        if intro is None:
            return StageResult.failure(WRITING_COST)

        parts = [f"# {outline.get('title') or keyword}", intro]
        for section in outline.get("sections") or []:
            heading = section.get("heading", "")
            body = self._write(
                f'Write the section "{heading}" of an article about "{keyword}".\n'
                f"Cover: {', '.join(section.get('key_points') or [])}\n"
                f"Length: about {section.get('target_word_count', 300)} words.\n"
                f"Use this research where relevant: {research}\n"
                "Do not repeat the heading.",
                system,
            )
            if body is None:
                logger.warning("Section %r came back empty for %r", heading, keyword)
                continue
            parts.append(f"## {heading}\n\n{body}")

        conclusion = self._write(
            f'Write a short conclusion (80-120 words) for the article about "{keyword}" '
            "with a clear next step for the reader. No heading.",
            system,
        )
        if conclusion is None:
            return StageResult.failure(WRITING_COST)
        parts.append(f"## Conclusion\n\n{conclusion}")

        return StageResult.success("\n\n".join(parts), WRITING_COST)

    def _write(self, prompt: str, system: str) -> str | None:
        text = self._llm.complete(prompt, system=system).strip()
        return text or None
