"""Status transitions for generation targets.

    pending ──> in progress ──> completed
                     │
                     └────────> failed

``completed`` and ``failed`` go back to ``pending`` only through the retry
operations below, which also re-enqueue the pipeline. Starting a run is a
compare-and-swap in the store, so a second worker picking up the same entity
finds it already claimed and backs off.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from seogen.models import (
    Article,
    GenerationTarget,
    Keyword,
    KeywordResearch,
    utcnow,
)
from seogen.store import EntityStore, require

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=GenerationTarget)

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
TERMINAL = frozenset({COMPLETED, FAILED})


class InvalidTransitionError(ValueError):
    def __init__(self, target: GenerationTarget | type[GenerationTarget], current: str, new: str):
        name = target.__name__ if isinstance(target, type) else type(target).__name__
        super().__init__(f"{name} cannot move from {current} to {new}")
        self.current = current
        self.new = new


def allowed_transitions(model: type[GenerationTarget]) -> dict[str, frozenset[str]]:
    running = model.in_progress_status
    return {
        PENDING: frozenset({running}),
        running: TERMINAL,
        COMPLETED: frozenset({PENDING}),
        FAILED: frozenset({PENDING}),
    }


def check_transition(model: type[GenerationTarget], current: str, new: str) -> None:
    if new not in allowed_transitions(model).get(current, frozenset()):
        raise InvalidTransitionError(model, current, new)


def begin_run(store: EntityStore, model: type[T], entity_id: str) -> T | None:
    """Claim a pending target for a run. None when it is missing or not pending."""
    return store.transition(
        model,
        entity_id,
        expected={PENDING},
        new_status=model.in_progress_status,
        started_at=utcnow(),
        completed_at=None,
        error_message=None,
    )


def _finish(store: EntityStore, target: T, new_status: str, fields: dict[str, Any]) -> T:
    """Swap a running target to ``new_status`` in the store, then mirror the row onto ``target``.

    ``target`` is left untouched when the write fails, so callers can still see
    the run as in progress and record the failure.
    """
    model = type(target)
    check_transition(model, target.status_value, new_status)
    fields = {**fields, "completed_at": utcnow()}
    updated = store.transition(
        model, target.id, expected={model.in_progress_status}, new_status=new_status, **fields
    )
    if updated is None:
        current = store.get(model, target.id)
        raise InvalidTransitionError(model, current.status_value if current else "missing", new_status)
    target.status = updated.status
    for name in fields:
        setattr(target, name, getattr(updated, name))
    return target


def is_running(store: EntityStore, target: GenerationTarget) -> bool:
    """Whether the stored row of ``target`` is still in its in-progress status."""
    current = store.get(type(target), target.id)
    return current is not None and current.status_value == type(target).in_progress_status


def complete(store: EntityStore, target: T, **fields: Any) -> T:
    return _finish(store, target, COMPLETED, fields)


def fail(store: EntityStore, target: T, message: str, **fields: Any) -> T:
    return _finish(store, target, FAILED, {"error_message": message, **fields})


def reset(store: EntityStore, model: type[T], entity_id: str, **fields: Any) -> T:
    """Move a finished target back to pending, clearing ``error_message``."""
    target = require(store, model, entity_id)
    if target.status_value not in TERMINAL:
        raise InvalidTransitionError(model, target.status_value, PENDING)
    updated = store.transition(
        model, entity_id, expected=TERMINAL, new_status=PENDING, error_message=None, **fields
    )
    if updated is None:
        # Someone else moved it between the read and the swap
        current = require(store, model, entity_id)
        raise InvalidTransitionError(model, current.status_value, PENDING)
    return updated


def _queue(job_queue):
    if job_queue is not None:
        return job_queue
    from seogen.pipelines.queue import get_queue

    return get_queue()


def retry_article(article_id: str, *, store: EntityStore, job_queue=None) -> Article:
    from seogen.pipelines.article import PIPELINE_NAME

    article = reset(store, Article, article_id, started_at=None, completed_at=None)
    _queue(job_queue).enqueue(PIPELINE_NAME, article.id)
    logger.info("Article %s reset for retry", article.id)
    return article


def regenerate_article(article_id: str, *, store: EntityStore, job_queue=None) -> Article:
    """Retry from scratch: every stage output and the recorded cost are cleared too."""
    from seogen.pipelines.article import PIPELINE_NAME

    article = reset(
        store,
        Article,
        article_id,
        content=None,
        title=None,
        meta_description=None,
        word_count=None,
        outline=None,
        serp_data=None,
        generation_cost=None,
        started_at=None,
        completed_at=None,
    )
    _queue(job_queue).enqueue(PIPELINE_NAME, article.id)
    logger.info("Article %s reset for regeneration", article.id)
    return article


def retry_keyword_research(research_id: str, *, store: EntityStore, job_queue=None) -> KeywordResearch:
    """Reset to pending with an empty progress log; keywords saved by the last run are removed."""
    from seogen.pipelines.keyword_research import PIPELINE_NAME

    research = reset(store, KeywordResearch, research_id, progress_log=[])
    removed = store.delete_children(Keyword, research.id)
    _queue(job_queue).enqueue(PIPELINE_NAME, research.id)
    logger.info("Keyword research %s reset for retry (%d keywords removed)", research.id, removed)
    return research
