"""Seed keyword generation."""

from __future__ import annotations

import logging
from typing import Any

from seogen.llm import LLMProvider
from seogen.models import Project
from seogen.stages.domain_analysis import build_domain_context

logger = logging.getLogger(__name__)

_PROMPT = """Suggest 15-25 seed keywords a content marketer should target for this business.

Business: {context}
Competitors: {competitors}

Prefer 2-5 word phrases real people search for: problems, how-tos, comparisons and
tool searches. Skip brand names.
Return a JSON array of strings.
"""


class SeedKeywordGenerator:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(
        self,
        project: Project,
        competitor_data: list[dict[str, Any]],
    ) -> list[str]:
        context = build_domain_context(project, project.domain_analysis)
        competitors = ", ".join(
            c.get("title") or c.get("url", "") for c in competitor_data[:10]
        ) or "unknown"
        data = self._llm.complete_json(_PROMPT.format(context=context, competitors=competitors))
        if isinstance(data, dict):
            data = data.get("keywords") or data.get("seeds") or []
        seeds: list[str] = []
        for item in data:
            seed = str(item).strip().lower()
            if seed and seed not in seeds:
                seeds.append(seed)
        logger.info("Generated %d seed keywords for %s", len(seeds), project.name)
        return seeds
