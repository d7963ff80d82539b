"""Tests for progress broadcasting."""

from decimal import Decimal

from seogen.models import KeywordResearch
from seogen.progress import (
    ProgressBroadcaster,
    SubscriberRegistry,
    build_event,
    format_cost,
    topic_for,
)


class ExplodingRegistry(SubscriberRegistry):
    def publish(self, topic, event):
        raise ConnectionError("socket closed")


class CheckingRegistry(SubscriberRegistry):
    """Asserts that the log entry is already durable when the event goes out."""

    def __init__(self, store):
        super().__init__()
        self.store = store
        self.persisted_lengths = []

    def publish(self, topic, event):
        research_id = topic.split(":", 1)[1]
        self.persisted_lengths.append(len(self.store.get(KeywordResearch, research_id).progress_log))
        return super().publish(topic, event)


def test_research_log_is_saved_before_publish(store, make):
    research = make.research()
    registry = CheckingRegistry(store)
    broadcaster = ProgressBroadcaster(store, registry)

    broadcaster.announce(research, "first")
    broadcaster.announce(research, "→ nested", indent=1)

    assert registry.persisted_lengths == [1, 2]
    log = store.get(KeywordResearch, research.id).progress_log
    assert [(e.message, e.indent) for e in log] == [("first", 0), ("→ nested", 1)]


def test_publish_failure_does_not_raise(store, make):
    research = make.research()
    broadcaster = ProgressBroadcaster(store, ExplodingRegistry())

    event = broadcaster.announce(research, "still recorded")

    assert event["progress_message"] == "still recorded"
    assert store.get(KeywordResearch, research.id).progress_log[0].message == "still recorded"


def test_article_announce_leaves_no_durable_log(store, make, registry):
    article = make.article()
    sub = registry.subscribe(topic_for(article))
    ProgressBroadcaster(store, registry).announce(article, "working", generation_cost=Decimal("0.25"))

    event = sub.get(timeout=0)
    assert event["progress_message"] == "working"
    assert event["generation_cost"] == 0.25
    assert event["status"] == "pending"
    assert "progress_log" not in event


def test_research_event_fields(make):
    research = make.research(total_keywords_found=7)
    research.add_progress_log("hello")
    event = build_event(research, "hello")

    assert set(event) >= {
        "id", "status", "started_at", "completed_at", "error_message",
        "progress_message", "total_keywords_found", "progress_log",
    }
    assert event["total_keywords_found"] == 7
    assert event["progress_log"][0]["message"] == "hello"


def test_events_only_reach_their_topic(registry):
    a = registry.subscribe("articles:art_a")
    b = registry.subscribe("articles:art_b")

    assert registry.publish("articles:art_a", {"n": 1}) == 1
    assert a.get(timeout=0) == {"n": 1}
    assert b.get(timeout=0) is None


def test_unsubscribe_stops_delivery(registry):
    sub = registry.subscribe("articles:art_a")
    registry.unsubscribe(sub)

    assert registry.subscriber_count("articles:art_a") == 0
    assert registry.publish("articles:art_a", {"n": 1}) == 0


def test_format_cost_rounds_half_up():
    assert format_cost(Decimal("0.125")) == "$0.13"
    assert format_cost(Decimal("0.45")) == "$0.45"
    assert format_cost(Decimal("0")) == "$0.00"
