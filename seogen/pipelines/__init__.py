"""Background pipelines (article generation, keyword research) and their worker pool."""

from seogen.pipelines.state import (
    InvalidTransitionError,
    regenerate_article,
    retry_article,
    retry_keyword_research,
)

__all__ = [
    "InvalidTransitionError",
    "regenerate_article",
    "retry_article",
    "retry_keyword_research",
]
