"""Article generation pipeline.

    SERP research → outline → draft → improvement → finalize

Every stage returns a ``StageResult``; its cost is added to the running total
whether or not it produced data. A stage without data ends the run as failed
with a stage-specific message. Unexpected errors are recorded on the article
and swallowed: a failed article is final until someone retries it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from seogen.config import get_settings
from seogen.models import Article, Keyword, KeywordResearch, Project, User, utcnow
from seogen.pipelines import state
from seogen.progress import ProgressBroadcaster, format_cost, get_broadcaster
from seogen.stages import StageResult, call_stage
from seogen.stages.outline import target_words
from seogen.store import EntityStore, get_store, require

logger = logging.getLogger(__name__)

PIPELINE_NAME = "article_generation"


@dataclass
class ArticleStages:
    serp_research: Callable[..., StageResult]
    generate_outline: Callable[..., StageResult]
    write_article: Callable[..., StageResult]
    improve_article: Callable[..., StageResult]


def build_default_stages() -> ArticleStages:
    from seogen.llm import resolve_provider
    from seogen.stages.improver import ArticleImprovementStage
    from seogen.stages.outline import OutlineStage
    from seogen.stages.serp_research import SerpResearchStage
    from seogen.stages.writer import ArticleWriterStage

    llm = resolve_provider()
    return ArticleStages(
        serp_research=SerpResearchStage(llm),
        generate_outline=OutlineStage(llm),
        write_article=ArticleWriterStage(llm),
        improve_article=ArticleImprovementStage(llm),
    )


class _StageFailed(Exception):
    """Internal: a stage returned no data."""


class DuplicateArticleError(ValueError):
    def __init__(self, keyword_id: str, article_id: str):
        super().__init__(f"Keyword {keyword_id} already has article {article_id}")
        self.keyword_id = keyword_id
        self.article_id = article_id


_create_lock = threading.Lock()


def create_article(store: EntityStore, keyword_id: str, target_word_count: int = 2000) -> Article:
    """Create the pending article for a keyword. A keyword gets at most one article."""
    keyword = require(store, Keyword, keyword_id)
    research = require(store, KeywordResearch, keyword.keyword_research_id)
    with _create_lock:
        for existing in store.list_children(Article, research.project_id):
            if existing.keyword_id == keyword.id:
                raise DuplicateArticleError(keyword.id, existing.id)
        return store.save(Article(
            project_id=research.project_id,
            keyword_id=keyword.id,
            target_word_count=target_word_count,
        ))


def run_article_generation(
    article_id: str,
    *,
    store: EntityStore | None = None,
    broadcaster: ProgressBroadcaster | None = None,
    stages: ArticleStages | None = None,
    stage_timeout: float | None = None,
) -> Article | None:
    """Generate one article. Returns the article as left by the run, or None if it is gone."""
    store = store or get_store()
    broadcaster = broadcaster or get_broadcaster(store)
    if stage_timeout is None:
        stage_timeout = get_settings().seogen_stage_timeout_seconds

    if store.get(Article, article_id) is None:
        logger.error("Article %s not found", article_id)
        return None

    article = state.begin_run(store, Article, article_id)
    if article is None:
        current = store.get(Article, article_id)
        logger.warning(
            "Article %s is %s, not pending; skipping run",
            article_id, current.status_value if current else "missing",
        )
        return current

    logger.info("Starting article generation for %s", article_id)
    total = Decimal("0")

    def announce(message: str) -> None:
        broadcaster.announce(article, message, generation_cost=total)

    def run_stage(name: str, fn: Callable[..., StageResult], *args: Any, failure: str, **kwargs: Any) -> Any:
        nonlocal total
        result = call_stage(fn, *args, timeout=stage_timeout, name=name, **kwargs)
        total += result.cost
        if result.data is None:
            state.fail(store, article, failure, generation_cost=total)
            announce(f"❌ {failure}")
            logger.warning("Article %s failed at %s (cost so far %s)", article_id, name, total)
            raise _StageFailed(failure)
        return result.data

    try:
        stages = stages or build_default_stages()
        keyword = require(store, Keyword, article.keyword_id)
        project = require(store, Project, article.project_id)
        user = require(store, User, project.user_id)

        announce("Starting article generation...")

        announce("🔍 Researching top 10 Google results...")
        serp_data = run_stage(
            "serp_research", stages.serp_research, keyword.keyword,
            failure="SERP research failed",
        )
        article.serp_data = serp_data
        store.save(article)
        announce(f"✅ Found {len(serp_data.get('common_topics') or [])} common topics from competitors")

        announce("📝 Generating article outline...")
        # Outlines are voice-agnostic; the voice profile only applies when writing
        outline = run_stage(
            "outline", stages.generate_outline, keyword.keyword, serp_data,
            target_word_count=article.target_word_count, voice_profile=None,
            failure="Outline generation failed",
        )
        article.outline = outline
        store.save(article)
        announce(f"✅ Outline created (targeting {target_words(outline)} words)")

        announce("✍️ Writing article sections...")
        draft = run_stage(
            "write", stages.write_article, keyword.keyword, outline, serp_data,
            voice_profile=user.voice_profile,
            failure="Article writing failed",
        )
        article.content = draft
        store.save(article)
        announce(f"✅ Draft complete ({len(draft.split())} words)")

        announce("✨ Improving article quality (3 passes)...")
        improved = run_stage(
            "improve", stages.improve_article, draft, serp_data,
            failure="Article improvement failed",
        )
        article.content = improved
        store.save(article)

        final_word_count = len(improved.split())
        state.complete(
            store,
            article,
            title=outline.get("title"),
            meta_description=outline.get("meta_description"),
            word_count=final_word_count,
            generation_cost=total,
        )
        duration = round((utcnow() - article.started_at).total_seconds(), 1)
        announce(f"🎉 Article complete! {final_word_count} words • {format_cost(total)} • {duration}s")
        logger.info("Article generation completed for %s", article_id)

    except _StageFailed:
        pass
    except Exception as e:
        logger.exception("Article generation failed for %s", article_id)
        if state.is_running(store, article):
            state.fail(store, article, f"Job error: {e}", generation_cost=total)
            announce(f"❌ Generation failed: {e}")

    return article
