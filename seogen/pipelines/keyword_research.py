"""Keyword research pipeline.

    domain → competitors → seeds → expansion → sitemaps → metrics → save

Each step announces its progress into the research's durable log. Unlike the
article pipeline there is no per-stage failure handling: any exception marks
the research as failed and is re-raised so the caller (worker pool, CLI) sees it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from seogen.config import Settings, get_settings
from seogen.models import Keyword, KeywordResearch, Project
from seogen.pipelines import state
from seogen.progress import ProgressBroadcaster, get_broadcaster
from seogen.stages import call_stage
from seogen.stages.metrics import MetricsSource, calculate_opportunity
from seogen.store import EntityStore, get_store, require

logger = logging.getLogger(__name__)

PIPELINE_NAME = "keyword_research"

SEED_PREVIEW = 10
EXPANSION_PREVIEW = 5
MAX_COMPETITORS_SCRAPED = 10
MIN_VOLUME = 10
OPPORTUNITY_THRESHOLD_FOR_MEDIUM = 70


@dataclass
class KeywordToolkit:
    """The external calls the research pipeline sequences."""

    analyze_domain: Callable[[str], dict[str, Any]]
    discover_competitors: Callable[[Project, dict[str, Any] | None], list[str]]
    generate_seeds: Callable[[Project, list[dict[str, Any]]], list[str]]
    expand_seed: Callable[[str], list[str]]
    rate_relevance: Callable[[Project, list[str]], dict[str, str]]
    mine_sitemaps: Callable[[list[str]], list[tuple[str, str]]]
    metrics: MetricsSource


def build_default_toolkit(settings: Settings | None = None) -> KeywordToolkit:
    from seogen.llm import resolve_provider
    from seogen.stages.competitors import CompetitorDiscovery
    from seogen.stages.domain_analysis import analyze_domain
    from seogen.stages.expansion import KeywordRelevanceFilter, fetch_suggestions
    from seogen.stages.metrics import get_metrics_source
    from seogen.stages.seeds import SeedKeywordGenerator
    from seogen.stages.sitemaps import SitemapMiner

    settings = settings or get_settings()
    llm = resolve_provider(settings)
    return KeywordToolkit(
        analyze_domain=analyze_domain,
        discover_competitors=CompetitorDiscovery(llm),
        generate_seeds=SeedKeywordGenerator(llm),
        expand_seed=fetch_suggestions,
        rate_relevance=KeywordRelevanceFilter(llm),
        mine_sitemaps=SitemapMiner(),
        metrics=get_metrics_source(settings),
    )


@dataclass
class KeywordCandidate:
    keyword: str
    sources: list[str] = field(default_factory=list)
    # "high" | "medium"; None for seeds and competitor keywords, which are trusted
    confidence: str | None = None
    volume: int | None = None
    difficulty: int | None = None
    cpc: float | None = None
    intent: str | None = None
    opportunity: int | None = None


class KeywordPool:
    """Every keyword found during one run, keyed by its normalized text."""

    def __init__(self) -> None:
        self._items: dict[str, KeywordCandidate] = {}

    def add(self, keyword: str, source: str = "unknown", confidence: str | None = None) -> bool:
        kw = keyword.lower().strip()
        if len(kw) < 3 or len(kw) > 100:
            return False
        candidate = self._items.setdefault(kw, KeywordCandidate(keyword=kw))
        if source not in candidate.sources:
            candidate.sources.append(source)
        if confidence:
            candidate.confidence = confidence
        return True

    def keys(self) -> list[str]:
        return list(self._items)

    def values(self) -> list[KeywordCandidate]:
        return list(self._items.values())

    def get(self, keyword: str) -> KeywordCandidate | None:
        return self._items.get(keyword)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, keyword: str) -> bool:
        return keyword in self._items


def select_top_keywords(candidates: Iterable[KeywordCandidate], limit: int) -> list[KeywordCandidate]:
    """Keywords worth saving, best opportunity first.

    Volume must be at least 10. High-confidence and unrated keywords are kept;
    medium-confidence ones only with an opportunity above 70.
    """
    kept: list[KeywordCandidate] = []
    for kw in candidates:
        if kw.volume is None or kw.volume < MIN_VOLUME:
            continue
        if kw.confidence in (None, "high"):
            kept.append(kw)
        elif kw.confidence == "medium" and (kw.opportunity or 0) > OPPORTUNITY_THRESHOLD_FOR_MEDIUM:
            kept.append(kw)
        else:
            logger.debug("Filtered %s keyword %r (opp: %s)", kw.confidence, kw.keyword, kw.opportunity)
    kept.sort(key=lambda kw: -(kw.opportunity or 0))
    return kept[:limit]


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def run_keyword_research(
    research_id: str,
    *,
    store: EntityStore | None = None,
    broadcaster: ProgressBroadcaster | None = None,
    toolkit: KeywordToolkit | None = None,
    settings: Settings | None = None,
) -> KeywordResearch:
    """Run one keyword research. Raises on any failure after recording it."""
    store = store or get_store()
    broadcaster = broadcaster or get_broadcaster(store)
    settings = settings or get_settings()
    timeout = settings.seogen_stage_timeout_seconds

    research = require(store, KeywordResearch, research_id)
    claimed = state.begin_run(store, KeywordResearch, research_id)
    if claimed is None:
        logger.warning("Keyword research %s is %s, not pending; skipping run", research_id, research.status_value)
        return research
    research = claimed

    logger.info("Starting keyword research for %s", research_id)

    def announce(message: str, indent: int = 0) -> None:
        broadcaster.announce(research, message, indent=indent)

    def call(name: str, fn: Callable[..., Any], *args: Any) -> Any:
        return call_stage(fn, *args, timeout=timeout, name=name)

    try:
        toolkit = toolkit or build_default_toolkit(settings)
        project = require(store, Project, research.project_id)
        pool = KeywordPool()

        announce("Starting keyword research...")

        # 1. The project's own domain (cached on the project once it succeeds)
        announce(f"🌐 Analyzing {project.domain}...")
        domain_data = project.domain_analysis
        if not domain_data:
            domain_data = call("analyze_domain", toolkit.analyze_domain, project.domain)
            if domain_data and not domain_data.get("error"):
                project.domain_analysis = domain_data
                store.save(project)
            else:
                logger.warning("Failed to analyze %s, continuing with project metadata", project.domain)
                domain_data = None

        # 2. Competitors: registered ones win over discovery
        announce("🔎 Discovering competitors...")
        if project.competitors:
            competitor_domains = [c.domain for c in project.competitors]
        else:
            competitor_domains = call("discover_competitors", toolkit.discover_competitors, project, domain_data)
        competitor_data: list[dict[str, Any]] = []
        for domain in competitor_domains[:MAX_COMPETITORS_SCRAPED]:
            data = call("analyze_competitor", toolkit.analyze_domain, domain)
            if data and not data.get("error"):
                competitor_data.append(data)
        announce(f"✅ Discovered {_plural(len(competitor_domains), 'competitor')}")

        # 3. Seeds
        announce("🌱 Generating seed keywords from your domain...")
        seeds = list(project.seed_keywords) or call("generate_seeds", toolkit.generate_seeds, project, competitor_data)
        research.seed_keywords = seeds
        store.save(research)
        for seed in seeds:
            pool.add(seed, source="seed")
        for seed in seeds[:SEED_PREVIEW]:
            announce(f"→ {seed}", indent=1)
        if len(seeds) > SEED_PREVIEW:
            announce(f"→ ... and {len(seeds) - SEED_PREVIEW} more", indent=1)
        announce(f"✅ Generated {len(seeds)} seed keywords")

        # 4. Expansion
        announce("🔍 Expanding keywords via Google autocomplete...")
        for seed in seeds[:EXPANSION_PREVIEW]:
            announce(f"→ Expanding: {seed}", indent=1)
        if len(seeds) > EXPANSION_PREVIEW:
            announce(f"→ ... expanding {len(seeds) - EXPANSION_PREVIEW} more seeds", indent=1)
        expanded: list[str] = []
        for seed in seeds:
            for suggestion in call("expand_seed", toolkit.expand_seed, seed):
                if suggestion not in expanded:
                    expanded.append(suggestion)
        ratings = call("rate_relevance", toolkit.rate_relevance, project, expanded) if expanded else {}
        for kw in expanded:
            confidence = ratings.get(kw, "medium")
            if confidence == "low":
                continue
            pool.add(kw, source="expansion", confidence=confidence)
        announce(f"✅ Found {len(pool)} total keywords after expansion")

        # 5. Registered competitors' sitemaps
        if project.competitors:
            count = len(project.competitors)
            announce(f"🗺️ Mining sitemaps of {_plural(count, 'competitor')}...")
            mined = call("mine_sitemaps", toolkit.mine_sitemaps, [c.domain for c in project.competitors])
            for kw, source in mined:
                pool.add(kw, source=source)
            announce("✅ Mined competitor sitemaps")

        # 6. Metrics
        announce(f"📊 Calculating metrics for {len(pool)} keywords...")
        if toolkit.metrics.label == "Google Ads API":
            announce("→ Using Google Ads API for accurate data", indent=1)
        else:
            announce("→ Using heuristic estimates", indent=1)
        metrics = call("calculate_metrics", toolkit.metrics.calculate_batch, pool.keys())
        for kw, values in metrics.items():
            candidate = pool.get(kw.lower().strip())
            if candidate is None:
                continue
            candidate.volume = values.get("volume")
            candidate.difficulty = values.get("difficulty")
            candidate.cpc = values.get("cpc")
            candidate.intent = values.get("intent")
            candidate.opportunity = calculate_opportunity(values)
        announce("✅ Metrics calculated (volume, difficulty, CPC, opportunity)")

        # 7. Save
        announce("💾 Saving top keywords...")
        top = select_top_keywords(pool.values(), limit=settings.seogen_max_saved_keywords)
        for candidate in top:
            store.save(Keyword(
                keyword_research_id=research.id,
                keyword=candidate.keyword,
                volume=candidate.volume,
                difficulty=candidate.difficulty,
                opportunity=candidate.opportunity,
                cpc=candidate.cpc,
                intent=candidate.intent,
                sources=candidate.sources,
            ))
        logger.info("Saved %d of %d keywords for %s", len(top), len(pool), research_id)

        state.complete(store, research, total_keywords_found=len(pool))
        saved = len(store.list_children(Keyword, research.id))
        announce(f"🎉 Research complete! Found {saved} opportunities")
        logger.info("Keyword research completed for %s", research_id)

    except Exception as e:
        logger.exception("Keyword research failed for %s", research_id)
        if state.is_running(store, research):
            state.fail(store, research, str(e))
            announce(f"❌ Research failed: {e}")
        raise

    return research
