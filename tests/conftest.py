"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Any

import pytest

from seogen.config import Settings
from seogen.models import (
    Article,
    Competitor,
    Keyword,
    KeywordResearch,
    Project,
    User,
    VoiceProfile,
)
from seogen.pipelines.article import ArticleStages
from seogen.pipelines.keyword_research import KeywordToolkit
from seogen.progress import ProgressBroadcaster, SubscriberRegistry
from seogen.stages import StageResult
from seogen.store import FileEntityStore, set_store


class StageStub:
    """Callable test double: records calls, returns (or raises) a fixed result."""

    def __init__(self, result: Any = None):
        self.result = result
        self.calls: list[tuple[tuple, dict]] = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        if callable(self.result):
            return self.result(*args, **kwargs)
        return self.result


class RecordingQueue:
    """Stands in for the worker pool; remembers what was enqueued."""

    def __init__(self):
        self.jobs: list[tuple[str, str]] = []

    def enqueue(self, name: str, entity_id: str):
        self.jobs.append((name, entity_id))


class FixedMetrics:
    def __init__(self, metrics: dict[str, Any] | None = None, label: str = "heuristic estimates"):
        self.label = label
        self.metrics = metrics or {"volume": 1000, "difficulty": 10, "cpc": 1.5, "intent": "commercial"}
        self.calls: list[list[str]] = []

    def calculate_batch(self, keywords):
        self.calls.append(list(keywords))
        return {kw: dict(self.metrics) for kw in keywords}


class LostCompletionStore:
    """Wraps a real store; the first write that would leave a target completed raises."""

    def __init__(self, inner):
        self.inner = inner
        self.dropped = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def _check(self, status):
        if status == "completed" and not self.dropped:
            self.dropped += 1
            raise ConnectionError("database went away")

    def save(self, entity):
        self._check(getattr(entity, "status_value", None))
        return self.inner.save(entity)

    def transition(self, model, entity_id, expected, new_status, **fields):
        self._check(new_status)
        return self.inner.transition(model, entity_id, expected, new_status, **fields)


def drain(sub) -> list[dict[str, Any]]:
    events = []
    while (event := sub.get(timeout=0)) is not None:
        events.append(event)
    return events


def words(n: int, word: str = "word") -> str:
    return " ".join([word] * n)


@pytest.fixture
def store(tmp_path):
    s = FileEntityStore(tmp_path / "data")
    set_store(s)
    yield s
    set_store(None)


@pytest.fixture
def registry():
    return SubscriberRegistry()


@pytest.fixture
def broadcaster(store, registry):
    return ProgressBroadcaster(store, registry)


@pytest.fixture
def recording_queue():
    return RecordingQueue()


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, seogen_data_dir=str(tmp_path / "data"))


class Factory:
    def __init__(self, store):
        self.store = store

    def user(self, voice: VoiceProfile | None = None) -> User:
        return self.store.save(User(email="writer@example.com", voice_profile=voice))

    def project(self, user: User | None = None, competitors: list[str] = (), seeds: list[str] = ()) -> Project:
        user = user or self.user()
        return self.store.save(Project(
            user_id=user.id,
            name="Example",
            domain="example.com",
            niche="running gear",
            seed_keywords=list(seeds),
            competitors=[Competitor(domain=d) for d in competitors],
        ))

    def research(self, project: Project | None = None, **fields) -> KeywordResearch:
        project = project or self.project()
        return self.store.save(KeywordResearch(project_id=project.id, **fields))

    def keyword(self, research: KeywordResearch | None = None, text: str = "best running shoes") -> Keyword:
        research = research or self.research()
        return self.store.save(Keyword(keyword_research_id=research.id, keyword=text, volume=900, opportunity=80))

    def article(self, keyword: Keyword | None = None, **fields) -> Article:
        keyword = keyword or self.keyword()
        research = self.store.get(KeywordResearch, keyword.keyword_research_id)
        return self.store.save(Article(project_id=research.project_id, keyword_id=keyword.id, **fields))


@pytest.fixture
def make(store):
    return Factory(store)


SERP_DATA = {
    "common_topics": ["cushioning", "fit", "durability", "price", "terrain"],
    "questions": ["which shoes last longest?"],
}

OUTLINE = {
    "title": "Best Running Shoes of the Year",
    "meta_description": "Our picks for every runner.",
    "sections": [
        {"heading": "Cushioning", "target_word_count": 600},
        {"heading": "Fit", "target_word_count": 600},
        {"heading": "Durability", "target_word_count": 600},
    ],
}

STAGE_COSTS = {
    "serp_research": Decimal("0.24"),
    "generate_outline": Decimal("0.01"),
    "write_article": Decimal("0.15"),
    "improve_article": Decimal("0.05"),
}


@pytest.fixture
def article_stages():
    """Stages that succeed unless a result is overridden by keyword."""

    def build(**overrides) -> ArticleStages:
        results = {
            "serp_research": StageResult.success(SERP_DATA, STAGE_COSTS["serp_research"]),
            "generate_outline": StageResult.success(OUTLINE, STAGE_COSTS["generate_outline"]),
            "write_article": StageResult.success(words(1850), STAGE_COSTS["write_article"]),
            "improve_article": StageResult.success(words(1900), STAGE_COSTS["improve_article"]),
        }
        results.update(overrides)
        return ArticleStages(**{name: StageStub(result) for name, result in results.items()})

    return build


@pytest.fixture
def toolkit():
    """Keyword toolkit where every call succeeds with small, predictable data."""

    def build(**overrides) -> KeywordToolkit:
        parts = {
            "analyze_domain": StageStub(lambda domain: {"url": f"https://{domain}", "title": domain}),
            "discover_competitors": StageStub(["rival.com", "other.com"]),
            "generate_seeds": StageStub(["trail running shoes", "marathon training"]),
            "expand_seed": StageStub(lambda seed: [f"{seed} tips"]),
            "rate_relevance": StageStub(lambda project, kws: {kw: "high" for kw in kws}),
            "mine_sitemaps": StageStub([("pricing guide", "rival.com")]),
            "metrics": FixedMetrics(),
        }
        parts.update(overrides)
        return KeywordToolkit(**parts)

    return build
