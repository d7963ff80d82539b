"""Progress broadcasting for pipeline runs.

``ProgressBroadcaster.announce`` is the one entry point both pipelines use:

- KeywordResearch: the message is appended to ``progress_log`` and saved before
  anything is published, so a client that reconnects can replay the history.
- Article: no durable log; only the live event goes out.

Live events go through a ``SubscriberRegistry`` keyed by entity topic. Publishing
is best effort: a broken subscriber never fails a run.
"""

from __future__ import annotations

import logging
import queue
import threading
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from seogen.models import Article, GenerationTarget, KeywordResearch
from seogen.store import EntityStore, get_store

logger = logging.getLogger(__name__)


def topic_for(target: GenerationTarget) -> str:
    return f"{type(target).collection}:{target.id}"


class Subscription:
    """One live listener on a topic. Events are delivered in publish order."""

    def __init__(self, topic: str, maxsize: int = 1000):
        self.topic = topic
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=maxsize)

    def put(self, event: dict[str, Any]) -> None:
        self._queue.put_nowait(event)

    def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class SubscriberRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._topics: dict[str, list[Subscription]] = {}

    def subscribe(self, topic: str) -> Subscription:
        sub = Subscription(topic)
        with self._lock:
            self._topics.setdefault(topic, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._topics.get(sub.topic, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._topics.pop(sub.topic, None)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._topics.get(topic, []))

    def publish(self, topic: str, event: dict[str, Any]) -> int:
        """Deliver to every subscriber of ``topic``; returns how many received it."""
        with self._lock:
            subs = list(self._topics.get(topic, []))
        delivered = 0
        for sub in subs:
            try:
                sub.put(event)
                delivered += 1
            except queue.Full:
                logger.warning("Dropping progress event for slow subscriber on %s", topic)
        return delivered


def build_event(target: GenerationTarget, message: str | None = None, **metrics: Any) -> dict[str, Any]:
    """Snapshot of a target as sent to live subscribers."""
    base = target.model_dump(
        mode="json",
        include={"id", "status", "started_at", "completed_at", "error_message"},
    )
    base["progress_message"] = message
    if isinstance(target, Article):
        cost = metrics.get("generation_cost", target.generation_cost)
        base["word_count"] = target.word_count
        base["generation_cost"] = float(cost) if cost is not None else None
    elif isinstance(target, KeywordResearch):
        base["total_keywords_found"] = target.total_keywords_found
        base["progress_log"] = [e.model_dump(mode="json") for e in target.progress_log]
    return base


class ProgressBroadcaster:
    def __init__(self, store: EntityStore, registry: SubscriberRegistry):
        self._store = store
        self._registry = registry

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    def announce(
        self,
        target: GenerationTarget,
        message: str,
        indent: int = 0,
        **metrics: Any,
    ) -> dict[str, Any]:
        if isinstance(target, KeywordResearch):
            target.add_progress_log(message, indent=indent)
            self._store.save(target)

        event = build_event(target, message, **metrics)
        event["indent"] = indent
        try:
            self._registry.publish(topic_for(target), event)
        except Exception as e:
            logger.warning("Progress publish failed for %s: %s", topic_for(target), e)
        logger.debug("%s %s%s", topic_for(target), "  " * indent, message)
        return event


def format_cost(cost: Decimal) -> str:
    return f"${cost.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


_registry: SubscriberRegistry | None = None


def get_registry() -> SubscriberRegistry:
    global _registry
    if _registry is None:
        _registry = SubscriberRegistry()
    return _registry


def get_broadcaster(store: EntityStore | None = None) -> ProgressBroadcaster:
    return ProgressBroadcaster(store or get_store(), get_registry())
