"""Keyword expansion (search autocomplete) and AI relevance rating."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from seogen.llm import LLMProvider
from seogen.models import Project
from seogen.stages.domain_analysis import USER_AGENT, build_domain_context

logger = logging.getLogger(__name__)

SUGGEST_URL = "https://suggestqueries.google.com/complete/search"
CONFIDENCE_LEVELS = ("high", "medium", "low")
RATING_BATCH = 60


def parse_suggestions(payload: Any) -> list[str]:
    """Autocomplete replies look like ``[query, [suggestion, ...], ...]``."""
    if isinstance(payload, list) and len(payload) > 1 and isinstance(payload[1], list):
        return [str(s).strip() for s in payload[1] if str(s).strip()]
    return []


def fetch_suggestions(seed: str, timeout: float = 10.0) -> list[str]:
    """Google autocomplete suggestions for one seed. Network errors yield []."""
    params = {"client": "firefox", "q": seed}
    try:
        with httpx.Client(timeout=timeout, headers={"User-Agent": USER_AGENT}) as client:
            response = client.get(SUGGEST_URL, params=params)
            response.raise_for_status()
            return parse_suggestions(response.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Autocomplete failed for %r: %s", seed, e)
        return []


_RATE_PROMPT = """Business: {context}

Rate how relevant each keyword is for this business's blog:
- "high": squarely about what the business does
- "medium": adjacent topic the audience cares about
- "low": unrelated or a different meaning of the words

Keywords:
{keywords}

Return a JSON object mapping each keyword to "high", "medium" or "low".
"""


class KeywordRelevanceFilter:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(self, project: Project, keywords: list[str]) -> dict[str, str]:
        """Confidence per keyword. Keywords the model skips are rated "medium"."""
        context = build_domain_context(project, project.domain_analysis)
        ratings: dict[str, str] = {}
        for start in range(0, len(keywords), RATING_BATCH):
            batch = keywords[start:start + RATING_BATCH]
            try:
                data = self._llm.complete_json(
                    _RATE_PROMPT.format(context=context, keywords="\n".join(batch))
                )
            except json.JSONDecodeError as e:
                logger.warning("Relevance rating batch returned invalid JSON: %s", e)
                data = {}
            if not isinstance(data, dict):
                data = {}
            lowered = {str(k).strip().lower(): str(v).strip().lower() for k, v in data.items()}
            for kw in batch:
                level = lowered.get(kw.strip().lower(), "medium")
                ratings[kw] = level if level in CONFIDENCE_LEVELS else "medium"
        return ratings
