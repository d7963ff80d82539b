"""Domain analysis: fetch a site's home page and pull out what it is about."""

from __future__ import annotations

import logging
from typing import Any

import httpx
import trafilatura
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; seogen/0.1)"
MAX_TEXT_CHARS = 4000


def normalize_url(domain: str) -> str:
    domain = domain.strip()
    if not domain.startswith(("http://", "https://")):
        domain = f"https://{domain}"
    return domain


def analyze_domain(domain: str, timeout: float = 15.0) -> dict[str, Any]:
    """Return title, meta description, headings and main text for ``domain``.

    Network failures come back as ``{"error": ...}`` rather than raising; callers
    treat a failed scrape as missing context, not as a failed run.
    """
    url = normalize_url(domain)
    try:
        with httpx.Client(
            follow_redirects=True, timeout=timeout, headers={"User-Agent": USER_AGENT}
        ) as client:
            response = client.get(url)
            response.raise_for_status()
            html = response.text
    except httpx.HTTPError as e:
        logger.warning("Could not fetch %s: %s", url, e)
        return {"url": url, "error": str(e)}

    soup = BeautifulSoup(html, "html.parser")
    meta = soup.find("meta", attrs={"name": "description"})
    text = trafilatura.extract(html) or ""
    return {
        "url": url,
        "title": soup.title.get_text(strip=True) if soup.title else None,
        "meta_description": meta.get("content") if meta else None,
        "h1s": [h.get_text(strip=True) for h in soup.find_all("h1")][:10],
        "h2s": [h.get_text(strip=True) for h in soup.find_all("h2")][:20],
        "text": text[:MAX_TEXT_CHARS],
    }


def build_domain_context(project, domain_data: dict[str, Any] | None) -> str:
    """Compact description of a business used to steer keyword prompts."""
    if not domain_data or domain_data.get("error"):
        return ". ".join(p for p in (project.name, project.niche, project.description) if p)

    parts: list[str] = []
    for key in ("title", "meta_description"):
        if domain_data.get(key):
            parts.append(domain_data[key])
    if project.description:
        parts.append(f"This business: {project.description}")
    if project.niche:
        parts.append(f"Industry: {project.niche}")
    if domain_data.get("h1s"):
        parts.append(f"Main topics: {', '.join(domain_data['h1s'][:3])}")
    if domain_data.get("h2s"):
        parts.append(f"Content areas: {', '.join(domain_data['h2s'][:5])}")
    if len(parts) < 3:
        parts.append(project.name)
    return ". ".join(p for p in parts if p)
