"""Persisted entities: projects, generation targets and keywords."""

from seogen.models.article import Article, ArticleStatus
from seogen.models.base import Entity, GenerationTarget, new_id, utcnow
from seogen.models.keyword_research import (
    Keyword,
    KeywordResearch,
    KeywordResearchStatus,
    ProgressEntry,
)
from seogen.models.project import Competitor, Project, User, VoiceProfile

__all__ = [
    "Article",
    "ArticleStatus",
    "Competitor",
    "Entity",
    "GenerationTarget",
    "Keyword",
    "KeywordResearch",
    "KeywordResearchStatus",
    "ProgressEntry",
    "Project",
    "User",
    "VoiceProfile",
    "new_id",
    "utcnow",
]
