"""Tests for the keyword research pipeline."""

import pytest

from conftest import FixedMetrics, LostCompletionStore, StageStub
from seogen.models import Keyword, KeywordResearch, KeywordResearchStatus, Project
from seogen.pipelines.keyword_research import (
    KeywordCandidate,
    KeywordPool,
    run_keyword_research,
    select_top_keywords,
)
from seogen.store import EntityNotFoundError

TWELVE_SEEDS = [f"seed keyword {i:02d}" for i in range(1, 13)]


def _run(store, broadcaster, research, toolkit, settings):
    return run_keyword_research(
        research.id, store=store, broadcaster=broadcaster, toolkit=toolkit, settings=settings
    )


def _log(store, research):
    return store.get(KeywordResearch, research.id).progress_log


def test_twelve_seeds_log_ten_then_a_remainder(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project(seeds=TWELVE_SEEDS))
    _run(store, broadcaster, research, toolkit(), settings)

    log = _log(store, research)
    start = [e.message for e in log].index("🌱 Generating seed keywords from your domain...")
    seed_entries = log[start + 1:start + 12]
    assert [e.message for e in seed_entries] == [f"→ {s}" for s in TWELVE_SEEDS[:10]] + ["→ ... and 2 more"]
    assert all(e.indent == 1 for e in seed_entries)
    assert log[start + 12].message == "✅ Generated 12 seed keywords"


def test_progress_log_follows_stage_order(store, broadcaster, make, toolkit, settings):
    project = make.project(seeds=TWELVE_SEEDS, competitors=["rival.com"])
    research = make.research(project)
    rate = StageStub(lambda p, kws: {kw: ("low" if kw == "seed keyword 12 tips" else "high") for kw in kws})

    _run(store, broadcaster, research, toolkit(rate_relevance=rate), settings)

    messages = [e.message for e in _log(store, research)]
    assert messages == [
        "Starting keyword research...",
        "🌐 Analyzing example.com...",
        "🔎 Discovering competitors...",
        "✅ Discovered 1 competitor",
        "🌱 Generating seed keywords from your domain...",
        *[f"→ {s}" for s in TWELVE_SEEDS[:10]],
        "→ ... and 2 more",
        "✅ Generated 12 seed keywords",
        "🔍 Expanding keywords via Google autocomplete...",
        *[f"→ Expanding: {s}" for s in TWELVE_SEEDS[:5]],
        "→ ... expanding 7 more seeds",
        "✅ Found 23 total keywords after expansion",
        "🗺️ Mining sitemaps of 1 competitor...",
        "✅ Mined competitor sitemaps",
        "📊 Calculating metrics for 24 keywords...",
        "→ Using heuristic estimates",
        "✅ Metrics calculated (volume, difficulty, CPC, opportunity)",
        "💾 Saving top keywords...",
        "🎉 Research complete! Found 24 opportunities",
    ]

    saved = store.get(KeywordResearch, research.id)
    assert saved.status == KeywordResearchStatus.COMPLETED
    assert saved.total_keywords_found == 24
    assert saved.completed_at is not None
    keywords = {k.keyword: k for k in store.list_children(Keyword, research.id)}
    assert "seed keyword 12 tips" not in keywords
    assert keywords["pricing guide"].sources == ["rival.com"]
    assert keywords["seed keyword 01"].sources == ["seed"]


def test_progress_log_timestamps_never_go_backwards(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project())
    _run(store, broadcaster, research, toolkit(), settings)

    times = [e.time for e in _log(store, research)]
    assert times == sorted(times)


def test_sitemaps_skipped_without_competitors(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project())
    kit = toolkit()
    _run(store, broadcaster, research, kit, settings)

    assert kit.mine_sitemaps.calls == []
    assert len(kit.discover_competitors.calls) == 1
    assert not any("sitemap" in e.message for e in _log(store, research))


def test_sitemaps_mined_for_registered_competitors(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project(competitors=["rival.com", "other.com"]))
    kit = toolkit()
    _run(store, broadcaster, research, kit, settings)

    assert kit.discover_competitors.calls == []
    assert kit.mine_sitemaps.calls == [((["rival.com", "other.com"],), {})]
    messages = [e.message for e in _log(store, research)]
    assert "🗺️ Mining sitemaps of 2 competitors..." in messages


def test_google_ads_source_is_announced(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project())
    _run(store, broadcaster, research, toolkit(metrics=FixedMetrics(label="Google Ads API")), settings)

    entry = next(e for e in _log(store, research) if e.message.startswith("→ Using"))
    assert entry.message == "→ Using Google Ads API for accurate data"
    assert entry.indent == 1


def test_generated_seeds_are_persisted(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project())
    kit = toolkit()
    _run(store, broadcaster, research, kit, settings)

    saved = store.get(KeywordResearch, research.id)
    assert saved.seed_keywords == ["trail running shoes", "marathon training"]
    (args, _), = kit.generate_seeds.calls
    # Both discovered competitors were scraped and handed to seed generation
    assert [d["title"] for d in args[1]] == ["rival.com", "other.com"]


def test_domain_analysis_is_cached_on_project(store, broadcaster, make, toolkit, settings):
    project = make.project()
    first = toolkit()
    _run(store, broadcaster, make.research(project), first, settings)
    assert store.get(Project, project.id).domain_analysis == {"url": "https://example.com", "title": "example.com"}

    second = toolkit()
    _run(store, broadcaster, make.research(project), second, settings)
    scraped = [args[0] for args, _ in second.analyze_domain.calls]
    assert "example.com" not in scraped


def test_failed_domain_scrape_is_not_cached(store, broadcaster, make, toolkit, settings):
    project = make.project()
    kit = toolkit(analyze_domain=StageStub({"url": "https://example.com", "error": "timeout"}))
    research = make.research(project)
    _run(store, broadcaster, research, kit, settings)

    assert store.get(Project, project.id).domain_analysis is None
    assert store.get(KeywordResearch, research.id).status == KeywordResearchStatus.COMPLETED


def test_saved_keywords_capped_by_setting(store, broadcaster, make, toolkit, settings):
    settings.seogen_max_saved_keywords = 3
    research = make.research(make.project(seeds=TWELVE_SEEDS))
    _run(store, broadcaster, research, toolkit(), settings)

    saved = store.get(KeywordResearch, research.id)
    assert len(store.list_children(Keyword, research.id)) == 3
    assert saved.total_keywords_found == 24
    assert saved.progress_log[-1].message == "🎉 Research complete! Found 3 opportunities"


def test_discovery_error_fails_and_reraises(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project())
    kit = toolkit(discover_competitors=StageStub(RuntimeError("search quota exhausted")))

    with pytest.raises(RuntimeError, match="search quota exhausted"):
        _run(store, broadcaster, research, kit, settings)

    saved = store.get(KeywordResearch, research.id)
    assert saved.status == KeywordResearchStatus.FAILED
    assert saved.error_message == "search quota exhausted"
    assert saved.completed_at is not None
    assert saved.progress_log[-1].message == "❌ Research failed: search quota exhausted"
    assert kit.generate_seeds.calls == []


def test_lost_completion_write_fails_research_and_allows_retry(store, broadcaster, make, toolkit, settings, recording_queue):
    from seogen.pipelines.state import retry_keyword_research

    research = make.research(make.project())
    flaky = LostCompletionStore(store)

    with pytest.raises(ConnectionError, match="database went away"):
        _run(flaky, broadcaster, research, toolkit(), settings)

    saved = store.get(KeywordResearch, research.id)
    assert saved.status == KeywordResearchStatus.FAILED
    assert saved.error_message == "database went away"
    assert saved.progress_log[-1].message == "❌ Research failed: database went away"
    retried = retry_keyword_research(research.id, store=store, job_queue=recording_queue)
    assert retried.status == KeywordResearchStatus.PENDING
    assert store.list_children(Keyword, research.id) == []


def test_missing_research_raises(store, broadcaster, toolkit, settings):
    with pytest.raises(EntityNotFoundError):
        run_keyword_research("kwr_missing", store=store, broadcaster=broadcaster, toolkit=toolkit(), settings=settings)


def test_research_already_processing_is_skipped(store, broadcaster, make, toolkit, settings):
    research = make.research(make.project(), status=KeywordResearchStatus.PROCESSING)
    kit = toolkit()
    _run(store, broadcaster, research, kit, settings)

    saved = store.get(KeywordResearch, research.id)
    assert saved.status == KeywordResearchStatus.PROCESSING
    assert saved.progress_log == []
    assert kit.analyze_domain.calls == []


def test_live_events_mirror_the_log(store, broadcaster, registry, make, toolkit, settings):
    research = make.research(make.project())
    sub = registry.subscribe(f"keyword_researches:{research.id}")
    _run(store, broadcaster, research, toolkit(), settings)

    events = []
    while (event := sub.get(timeout=0)) is not None:
        events.append(event)
    assert [e["progress_message"] for e in events] == [e.message for e in _log(store, research)]
    assert events[-1]["status"] == "completed"
    assert len(events[-1]["progress_log"]) == len(events)


def test_pool_normalizes_and_merges_sources():
    pool = KeywordPool()
    assert pool.add("  Running Shoes ", source="seed")
    assert pool.add("running shoes", source="expansion", confidence="high")
    assert pool.add("running shoes", source="seed")
    assert not pool.add("ab")
    assert not pool.add("x" * 101)

    assert len(pool) == 1
    candidate = pool.get("running shoes")
    assert candidate.sources == ["seed", "expansion"]
    assert candidate.confidence == "high"


def test_select_top_keywords_filters_and_ranks():
    candidates = [
        KeywordCandidate("low volume", volume=5, opportunity=90),
        KeywordCandidate("trusted", volume=100, opportunity=40),
        KeywordCandidate("high confidence", volume=100, confidence="high", opportunity=60),
        KeywordCandidate("medium at threshold", volume=100, confidence="medium", opportunity=70),
        KeywordCandidate("medium above threshold", volume=100, confidence="medium", opportunity=71),
        KeywordCandidate("no metrics"),
    ]

    top = select_top_keywords(candidates, limit=10)
    assert [c.keyword for c in top] == ["medium above threshold", "high confidence", "trusted"]
    assert [c.keyword for c in select_top_keywords(candidates, limit=2)] == [
        "medium above threshold",
        "high confidence",
    ]
