"""Keyword metrics: Google Ads keyword planner data or heuristic estimates.

Both sources return the same shape per keyword::

    {"volume": int, "difficulty": int, "cpc": float, "intent": str}

``calculate_opportunity`` turns that into the 0-100 ranking score used to pick
which keywords are saved.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import httpx

from seogen.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_ADS_BATCH = 500


def _round(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _has(keyword: str, *terms: str) -> bool:
    return any(t in keyword for t in terms)


def estimate_volume(keyword: str) -> int:
    words = len(keyword.split())
    base = 100
    if words <= 5:
        base += 50 - words * 10
    if _has(keyword, "seo", "marketing"):
        base += 200
    if _has(keyword, "startup", "business"):
        base += 150
    if _has(keyword, "content", "article"):
        base += 100
    if keyword.startswith(("how to", "what is", "why", "when")):
        base += 50
    if words > 4:
        base -= words * 20
    if _has(keyword, "tool", "software", "generator"):
        base += 100
    if "free" in keyword:
        base += 80
    if _has(keyword, "template", "checklist"):
        base += 60
    return max(base, 10)


def estimate_difficulty(keyword: str) -> int:
    """0 = easy to rank, 100 = out of reach."""
    words = len(keyword.split())
    difficulty = 50
    if words < 5:
        difficulty += (5 - words) * 10
    if "best" in keyword:
        difficulty += 20
    if words <= 2:
        difficulty += 15
    if words >= 5:
        difficulty -= 15
    if keyword.startswith(("how to", "what is", "why")):
        difficulty -= 10
    if _has(keyword, "tool", "software"):
        difficulty += 10
    if "free" in keyword:
        difficulty -= 5
    if _has(keyword, "template", "checklist"):
        difficulty -= 10
    if words >= 6:
        difficulty -= 15
    return min(max(difficulty, 0), 100)


def estimate_cpc(keyword: str) -> float:
    cpc = 1.50
    if _has(keyword, "startup", "business", "marketing"):
        cpc += 1.0
    if _has(keyword, "tool", "software"):
        cpc += 0.50
    if "free" in keyword:
        cpc -= 0.75
    if "best" in keyword:
        cpc += 0.25
    if "seo" in keyword:
        cpc += 0.50
    return round(max(cpc, 0.10), 2)


def determine_intent(keyword: str) -> str:
    if _has(keyword, "login", "sign up"):
        return "navigational"
    if _has(keyword, "tool", "software", "best"):
        return "commercial"
    if _has(keyword, "free", "online", "template"):
        return "transactional"
    if keyword.startswith(("how to", "what is", "why", "when")):
        return "informational"
    if _has(keyword, "guide", "tutorial", "framework"):
        return "educational"
    return "mixed"


def heuristic_metrics(keyword: str) -> dict[str, Any]:
    kw = keyword.lower().strip()
    return {
        "volume": estimate_volume(kw),
        "difficulty": estimate_difficulty(kw),
        "cpc": estimate_cpc(kw),
        "intent": determine_intent(kw),
    }


def calculate_opportunity(metrics: dict[str, Any]) -> int:
    """Higher volume and lower difficulty score higher; intent nudges the result."""
    volume = metrics.get("volume") or 0
    difficulty = metrics.get("difficulty") or 0
    volume_score = _round(volume / 500 * 100)
    opportunity = volume_score * 0.6 + (100 - difficulty) * 0.4
    intent = metrics.get("intent")
    if intent in ("informational", "educational"):
        opportunity += 5
    if intent == "commercial":
        opportunity += 10
    if volume < 50:
        opportunity -= 20
    return _round(min(max(opportunity, 0), 100))


class MetricsSource(Protocol):
    label: str

    def calculate_batch(self, keywords: list[str]) -> dict[str, dict[str, Any]]: ...


class HeuristicMetrics:
    label = "heuristic estimates"

    def calculate_batch(self, keywords: list[str]) -> dict[str, dict[str, Any]]:
        return {kw: heuristic_metrics(kw) for kw in keywords}


class GoogleAdsMetrics:
    """Historical keyword metrics from the Google Ads API (REST).

    Keywords the API has no row for, or every keyword when a request fails,
    fall back to heuristic estimates.
    """

    label = "Google Ads API"

    def __init__(
        self,
        developer_token: str,
        customer_id: str | None,
        access_token: str | None,
        api_version: str = "v17",
        timeout: float = 30.0,
    ):
        self._developer_token = developer_token
        self._customer_id = (customer_id or "").replace("-", "")
        self._access_token = access_token
        self._api_version = api_version
        self._timeout = timeout

    def calculate_batch(self, keywords: list[str]) -> dict[str, dict[str, Any]]:
        results: dict[str, dict[str, Any]] = {}
        real: dict[str, dict[str, Any]] = {}
        try:
            for start in range(0, len(keywords), GOOGLE_ADS_BATCH):
                real.update(self._fetch(keywords[start:start + GOOGLE_ADS_BATCH]))
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Google Ads API error, using heuristics: %s", e)
            real = {}
        for kw in keywords:
            key = kw.lower().strip()
            if key in real:
                results[kw] = {**real[key], "intent": determine_intent(key)}
            else:
                results[kw] = heuristic_metrics(kw)
        return results

    def _fetch(self, keywords: list[str]) -> dict[str, dict[str, Any]]:
        if not self._customer_id or not self._access_token:
            raise ValueError("GOOGLE_ADS_CUSTOMER_ID and GOOGLE_ADS_ACCESS_TOKEN are required")
        url = (
            f"https://googleads.googleapis.com/{self._api_version}/customers/"
            f"{self._customer_id}:generateKeywordHistoricalMetrics"
        )
        headers = {
            "developer-token": self._developer_token,
            "Authorization": f"Bearer {self._access_token}",
        }
        body = {"keywords": keywords, "keywordPlanNetwork": "GOOGLE_SEARCH"}
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(url, headers=headers, json=body)
            response.raise_for_status()
            return parse_historical_metrics(response.json())


def parse_historical_metrics(payload: dict[str, Any]) -> dict[str, dict[str, Any]]:
    metrics: dict[str, dict[str, Any]] = {}
    for row in payload.get("results") or []:
        text = str(row.get("text") or "").lower().strip()
        data = row.get("keywordMetrics") or {}
        if not text or not data:
            continue
        low = int(data.get("lowTopOfPageBidMicros") or 0)
        high = int(data.get("highTopOfPageBidMicros") or 0)
        metrics[text] = {
            "volume": int(data.get("avgMonthlySearches") or 0),
            "difficulty": int(data.get("competitionIndex") or 0),
            "cpc": round((low + high) / 2 / 1_000_000, 2),
        }
    return metrics


def get_metrics_source(settings: Settings) -> MetricsSource:
    if settings.use_google_ads:
        return GoogleAdsMetrics(
            developer_token=settings.google_ads_developer_token,
            customer_id=settings.google_ads_customer_id,
            access_token=settings.google_ads_access_token,
            api_version=settings.google_ads_api_version,
        )
    return HeuristicMetrics()
