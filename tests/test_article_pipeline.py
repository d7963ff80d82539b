"""Tests for the article generation pipeline."""

from decimal import Decimal

import pytest

from conftest import OUTLINE, SERP_DATA, STAGE_COSTS, LostCompletionStore, drain, words
from seogen.models import Article, ArticleStatus, VoiceProfile
from seogen.pipelines.article import run_article_generation
from seogen.stages import StageResult, StageTimeoutError


def _run(store, broadcaster, article, stages, **kwargs):
    return run_article_generation(article.id, store=store, broadcaster=broadcaster, stages=stages, **kwargs)


def test_full_run_completes_with_summed_cost(store, broadcaster, make, article_stages):
    """Five topics, 1800-word outline, 1850-word draft, 1900-word final article."""
    article = make.article()
    _run(store, broadcaster, article, article_stages())

    saved = store.get(Article, article.id)
    assert saved.status == ArticleStatus.COMPLETED
    assert saved.word_count == 1900
    assert saved.generation_cost == sum(STAGE_COSTS.values())
    assert saved.title == OUTLINE["title"]
    assert saved.meta_description == OUTLINE["meta_description"]
    assert saved.serp_data == SERP_DATA
    assert saved.outline == OUTLINE
    assert saved.started_at is not None
    assert saved.completed_at is not None
    assert saved.error_message is None


def test_full_run_announces_each_stage_in_order(store, broadcaster, registry, make, article_stages):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    _run(store, broadcaster, article, article_stages())

    messages = [e["progress_message"] for e in drain(sub)]
    assert messages[:-1] == [
        "Starting article generation...",
        "🔍 Researching top 10 Google results...",
        "✅ Found 5 common topics from competitors",
        "📝 Generating article outline...",
        "✅ Outline created (targeting 1800 words)",
        "✍️ Writing article sections...",
        "✅ Draft complete (1850 words)",
        "✨ Improving article quality (3 passes)...",
    ]
    assert messages[-1].startswith("🎉 Article complete! 1900 words • $0.45 • ")


def test_events_carry_running_cost(store, broadcaster, registry, make, article_stages):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    _run(store, broadcaster, article, article_stages())

    events = drain(sub)
    by_message = {e["progress_message"]: e for e in events}
    assert by_message["Starting article generation..."]["generation_cost"] == 0.0
    assert by_message["✅ Found 5 common topics from competitors"]["generation_cost"] == pytest.approx(0.24)
    assert events[-1]["status"] == "completed"
    assert events[-1]["word_count"] == 1900


def test_outline_failure_keeps_serp_cost_only(store, broadcaster, make, article_stages):
    article = make.article()
    stages = article_stages(generate_outline=StageResult.failure(0))
    _run(store, broadcaster, article, stages)

    saved = store.get(Article, article.id)
    assert saved.status == ArticleStatus.FAILED
    assert saved.error_message == "Outline generation failed"
    assert saved.generation_cost == Decimal("0.24")
    assert saved.outline is None
    assert saved.content is None
    assert saved.completed_at is not None
    assert stages.write_article.calls == []
    assert stages.improve_article.calls == []


@pytest.mark.parametrize(
    "failing, message, expected_cost",
    [
        ("serp_research", "SERP research failed", Decimal("0.24")),
        ("generate_outline", "Outline generation failed", Decimal("0.25")),
        ("write_article", "Article writing failed", Decimal("0.40")),
        ("improve_article", "Article improvement failed", Decimal("0.45")),
    ],
)
def test_cost_includes_failing_stage(store, broadcaster, registry, make, article_stages, failing, message, expected_cost):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    stages = article_stages(**{failing: StageResult.failure(STAGE_COSTS[failing])})
    _run(store, broadcaster, article, stages)

    saved = store.get(Article, article.id)
    assert saved.status == ArticleStatus.FAILED
    assert saved.error_message == message
    assert saved.generation_cost == expected_cost
    last = drain(sub)[-1]
    assert last["progress_message"] == f"❌ {message}"
    assert last["status"] == "failed"


def test_unexpected_error_is_recorded_and_swallowed(store, broadcaster, registry, make, article_stages):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    stages = article_stages(write_article=RuntimeError("model overloaded"))

    result = _run(store, broadcaster, article, stages)

    saved = store.get(Article, article.id)
    assert result is not None
    assert saved.status == ArticleStatus.FAILED
    assert saved.error_message == "Job error: model overloaded"
    assert saved.generation_cost == Decimal("0.25")
    assert drain(sub)[-1]["progress_message"] == "❌ Generation failed: model overloaded"


def test_stage_timeout_fails_article(store, broadcaster, make, article_stages):
    import time

    def slow(*args, **kwargs):
        time.sleep(1)
        return StageResult.success(SERP_DATA, "0.24")

    article = make.article()
    stages = article_stages(serp_research=slow)
    _run(store, broadcaster, article, stages, stage_timeout=0.05)

    saved = store.get(Article, article.id)
    assert saved.status == ArticleStatus.FAILED
    assert saved.error_message.startswith("Job error: Stage 'serp_research' timed out")
    assert issubclass(StageTimeoutError, TimeoutError)


def test_missing_article_is_a_silent_no_op(store, broadcaster, article_stages):
    stages = article_stages()
    assert run_article_generation("art_missing", store=store, broadcaster=broadcaster, stages=stages) is None
    assert stages.serp_research.calls == []


def test_article_not_pending_is_skipped(store, broadcaster, make, article_stages):
    article = make.article(status=ArticleStatus.GENERATING)
    stages = article_stages()
    _run(store, broadcaster, article, stages)

    saved = store.get(Article, article.id)
    assert saved.status == ArticleStatus.GENERATING
    assert stages.serp_research.calls == []


def test_voice_applies_to_writing_not_outline(store, broadcaster, make, article_stages):
    voice = VoiceProfile(name="Coach", description="Friendly and direct.")
    user = make.user(voice=voice)
    project = make.project(user=user)
    keyword = make.keyword(make.research(project))
    article = make.article(keyword)
    stages = article_stages()

    _run(store, broadcaster, article, stages)

    (_, outline_kwargs), = stages.generate_outline.calls
    (_, write_kwargs), = stages.write_article.calls
    assert outline_kwargs["voice_profile"] is None
    assert outline_kwargs["target_word_count"] == 2000
    assert write_kwargs["voice_profile"] == voice


def test_outline_without_sections_reports_default_target(store, broadcaster, registry, make, article_stages):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    outline = {"title": "T", "meta_description": "M"}
    _run(store, broadcaster, article, article_stages(generate_outline=StageResult.success(outline, "0.01")))

    assert "✅ Outline created (targeting 2000 words)" in [e["progress_message"] for e in drain(sub)]


def test_retry_starts_a_fresh_run(store, broadcaster, make, article_stages, recording_queue):
    from seogen.pipelines.state import retry_article

    article = make.article()
    _run(store, broadcaster, article, article_stages(serp_research=StageResult.failure("0.24")))
    first = store.get(Article, article.id)

    retry_article(article.id, store=store, job_queue=recording_queue)
    _run(store, broadcaster, article, article_stages())

    second = store.get(Article, article.id)
    assert second.status == ArticleStatus.COMPLETED
    assert second.started_at > first.started_at
    assert second.content == words(1900)


def test_lost_completion_write_fails_article_and_allows_retry(store, broadcaster, registry, make, article_stages, recording_queue):
    from seogen.pipelines.state import retry_article

    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    flaky = LostCompletionStore(store)

    _run(flaky, broadcaster, article, article_stages())

    saved = store.get(Article, article.id)
    assert flaky.dropped == 1
    assert saved.status == ArticleStatus.FAILED
    assert saved.error_message == "Job error: database went away"
    assert saved.generation_cost == sum(STAGE_COSTS.values())
    assert drain(sub)[-1]["progress_message"] == "❌ Generation failed: database went away"
    assert retry_article(article.id, store=store, job_queue=recording_queue).status == ArticleStatus.PENDING


def test_serp_without_topics_reports_zero(store, broadcaster, registry, make, article_stages):
    article = make.article()
    sub = registry.subscribe(f"articles:{article.id}")
    _run(store, broadcaster, article, article_stages(serp_research=StageResult.success({"common_topics": []}, "0.24")))

    assert "✅ Found 0 common topics from competitors" in [e["progress_message"] for e in drain(sub)]
    assert store.get(Article, article.id).status == ArticleStatus.COMPLETED
