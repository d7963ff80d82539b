"""Quality improvement: three rewrite passes over a finished draft."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from seogen.llm import LLMProvider
from seogen.stages.base import StageResult

logger = logging.getLogger(__name__)

IMPROVEMENT_COST = Decimal("0.05")

PASSES = (
    (
        "specificity",
        "Replace vague claims with concrete examples, numbers and named tools. "
        "Use this research for facts: {research}",
    ),
    (
        "readability",
        "Shorten long sentences, break up walls of text, add lists where they help scanning.",
    ),
    (
        "seo",
        "Make sure the article answers these questions and keeps headings descriptive: {questions}",
    ),
)


class ArticleImprovementStage:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(self, markdown: str, serp_data: dict[str, Any]) -> StageResult[str]:
        if not markdown or not markdown.strip():
            return StageResult.failure(IMPROVEMENT_COST)
        research = json.dumps(serp_data.get("examples") or [], ensure_ascii=False)
        questions = "; ".join(serp_data.get("questions") or [])

        current = markdown
        for name, instruction in PASSES:
            prompt = (
                f"{instruction.format(research=research, questions=questions)}\n\n"
                "Return the full revised article in Markdown and nothing else.\n\n"
                f"{current}"
            )
            revised = self._llm.complete(prompt).strip()
            if not revised:
                logger.warning("Improvement pass %r returned nothing", name)
                return StageResult.failure(IMPROVEMENT_COST)
            current = revised
        return StageResult.success(current, IMPROVEMENT_COST)
