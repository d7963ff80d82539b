"""Competitor discovery through grounded (search-augmented) LLM calls."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from seogen.llm import LLMProvider
from seogen.models import Project
from seogen.stages.domain_analysis import build_domain_context

logger = logging.getLogger(__name__)

MIN_RELEVANCE = 7
MAX_COMPETITORS = 30

_PROMPT = """Find up to 30 competitor websites for this business:
{description}

Website: {domain}

Only include websites where this service is their PRIMARY FOCUS or a CORE OFFERING.
Rate each competitor's relevance from 1-10 (10 = direct competitor, below 5 = omit).

Return a JSON array:
[{{"domain": "competitor1.com", "relevance_score": 9, "reason": "under 100 characters"}}]
"""


def normalize_domain(value: Any) -> str | None:
    """Bare lower-case host for a domain, URL or ``{"domain": ...}`` object."""
    if isinstance(value, dict):
        value = value.get("domain") or value.get("url")
    if not value:
        return None
    domain = str(value).strip()
    domain = re.sub(r"^https?://", "", domain)
    domain = re.sub(r"^www\.", "", domain)
    domain = domain.rstrip("/").split("/")[0]
    if not domain or "." not in domain:
        return None
    return domain.lower()


def parse_competitor_domains(data: Any) -> list[str]:
    """Accepts scored objects, plain strings or a ``{"competitors": [...]}`` object."""
    if isinstance(data, list):
        if data and isinstance(data[0], dict) and "domain" in data[0]:
            scored = [c for c in data if _score(c) >= MIN_RELEVANCE]
            scored.sort(key=_score, reverse=True)
            candidates = [normalize_domain(c.get("domain")) for c in scored]
        else:
            candidates = [normalize_domain(c) for c in data]
    elif isinstance(data, dict):
        candidates = [normalize_domain(c) for c in (data.get("competitors") or data.get("domains") or [])]
    else:
        candidates = []

    seen: list[str] = []
    for domain in candidates:
        if domain and domain not in seen:
            seen.append(domain)
    return seen[:MAX_COMPETITORS]


def _score(item: dict[str, Any]) -> int:
    try:
        return int(item.get("relevance_score") or 0)
    except (TypeError, ValueError):
        return 0


class CompetitorDiscovery:
    def __init__(self, llm: LLMProvider):
        self._llm = llm

    def __call__(self, project: Project, domain_data: dict[str, Any] | None) -> list[str]:
        own = normalize_domain(project.domain)
        description = project.description or build_domain_context(project, domain_data)
        if "Description:" in description:
            description = description.split("Description:")[-1].strip()
        prompt = _PROMPT.format(description=description, domain=project.domain)
        try:
            data = self._llm.complete_json(prompt)
        except json.JSONDecodeError as e:
            logger.warning("Competitor discovery returned invalid JSON: %s", e)
            return []
        return [d for d in parse_competitor_domains(data) if d != own]
