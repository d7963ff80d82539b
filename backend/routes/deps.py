"""Shared route dependencies; tests override these through ``app.dependency_overrides``."""

from seogen.pipelines.queue import JobQueue, get_queue
from seogen.progress import SubscriberRegistry, get_registry
from seogen.store import EntityStore, get_store


def store_dependency() -> EntityStore:
    return get_store()


def queue_dependency() -> JobQueue:
    return get_queue()


def registry_dependency() -> SubscriberRegistry:
    return get_registry()
