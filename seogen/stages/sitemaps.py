"""Competitor sitemap mining: page slugs become keyword candidates."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from urllib.parse import urlparse

import httpx

from seogen.stages.domain_analysis import USER_AGENT

logger = logging.getLogger(__name__)

_SITEMAP_PATHS = (
    "https://{domain}/sitemap.xml",
    "https://{domain}/sitemap_index.xml",
    "https://www.{domain}/sitemap.xml",
)


def keywords_from_sitemap(xml_text: str) -> list[str]:
    """Turn every ``<loc>`` path segment into a phrase: ``/validate-idea`` → ``validate idea``."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        return []
    keywords: list[str] = []
    for el in root.iter():
        if not el.tag.endswith("loc") or not el.text:
            continue
        for segment in urlparse(el.text.strip()).path.split("/"):
            phrase = segment.replace("-", " ").replace("_", " ").strip().lower()
            if 5 < len(phrase) < 100 and phrase not in keywords:
                keywords.append(phrase)
    return keywords


class SitemapMiner:
    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout

    def __call__(self, domains: list[str]) -> list[tuple[str, str]]:
        """(keyword, source domain) pairs from the first sitemap each domain serves."""
        results: list[tuple[str, str]] = []
        with httpx.Client(
            follow_redirects=True, timeout=self._timeout, headers={"User-Agent": USER_AGENT}
        ) as client:
            for domain in domains:
                keywords = self._mine_domain(client, domain)
                if not keywords:
                    logger.warning("No sitemap found for %s", domain)
                results.extend((kw, domain) for kw in keywords)
        return results

    def _mine_domain(self, client: httpx.Client, domain: str) -> list[str]:
        for template in _SITEMAP_PATHS:
            url = template.format(domain=domain)
            try:
                response = client.get(url)
            except httpx.HTTPError:
                continue
            if response.status_code != 200:
                continue
            keywords = keywords_from_sitemap(response.text)
            if keywords:
                logger.info("Found %d sitemap phrases for %s", len(keywords), domain)
                return keywords
        return []
