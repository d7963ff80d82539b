"""SERP research: what the current top results for a keyword cover."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from seogen.llm import LLMProvider
from seogen.stages.base import StageResult

logger = logging.getLogger(__name__)

SERP_RESEARCH_COST = Decimal("0.24")

_SYSTEM = (
    "You are an SEO analyst. You know what the top ten Google results for a "
    "query typically cover and where they fall short."
)

_PROMPT = """Analyse the top 10 Google results for the search query "{keyword}".

Return a JSON object with these keys:
- "common_topics": list of topics most top-ranking pages cover
- "content_gaps": list of angles the top pages miss
- "questions": list of questions searchers ask about this query
- "average_word_count": integer estimate of the typical ranking article length
- "search_intent": one of informational | commercial | transactional | navigational
- "examples": list of concrete examples, tools or data points worth citing
"""


class SerpResearchStage:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(self, keyword: str) -> StageResult[dict[str, Any]]:
        if not keyword or not keyword.strip():
            return StageResult.failure(0)
        try:
            data = self._llm.complete_json(_PROMPT.format(keyword=keyword.strip()), system=_SYSTEM)
        except json.JSONDecodeError as e:
            logger.warning("SERP research returned invalid JSON for %r: %s", keyword, e)
            return StageResult.failure(SERP_RESEARCH_COST)
        if not isinstance(data, dict):
            return StageResult.failure(SERP_RESEARCH_COST)
        if not isinstance(data.get("common_topics"), list):
            data["common_topics"] = []
        data.setdefault("keyword", keyword.strip())
        return StageResult.success(data, SERP_RESEARCH_COST)
