"""Worker pool that runs pipelines in the background."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from seogen.config import get_settings

logger = logging.getLogger(__name__)


class UnknownPipelineError(KeyError):
    pass


class JobQueue:
    """Fire-and-forget handoff of ``(pipeline_name, entity_id)`` to a thread pool.

    Exceptions escaping a pipeline are logged here and kept on the returned
    future; they never take down the pool.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="seogen-worker")
        self._handlers: dict[str, Callable[[str], Any]] = {}

    def register(self, name: str, handler: Callable[[str], Any]) -> None:
        self._handlers[name] = handler

    def enqueue(self, name: str, entity_id: str) -> Future:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownPipelineError(name)
        logger.info("Enqueued %s for %s", name, entity_id)
        future = self._executor.submit(handler, entity_id)
        future.add_done_callback(lambda f: self._log_outcome(name, entity_id, f))
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_outcome(name: str, entity_id: str, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("%s failed for %s: %s", name, entity_id, exc, exc_info=exc)


_queue: JobQueue | None = None
_queue_lock = threading.Lock()


def get_queue() -> JobQueue:
    """Singleton queue with both pipelines registered."""
    global _queue
    with _queue_lock:
        if _queue is None:
            from seogen.pipelines import article, keyword_research

            q = JobQueue(max_workers=get_settings().seogen_worker_count)
            q.register(article.PIPELINE_NAME, article.run_article_generation)
            q.register(keyword_research.PIPELINE_NAME, keyword_research.run_keyword_research)
            _queue = q
    return _queue
