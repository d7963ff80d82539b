"""Article generation target."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from seogen.models.base import GenerationTarget


class ArticleStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class Article(GenerationTarget):
    collection = "articles"
    id_prefix = "art"
    in_progress_status = ArticleStatus.GENERATING.value

    status: ArticleStatus = ArticleStatus.PENDING
    project_id: str = ""
    keyword_id: str = ""
    target_word_count: int = 2000

    serp_data: dict[str, Any] | None = None
    outline: dict[str, Any] | None = None
    content: str | None = None
    title: str | None = None
    meta_description: str | None = None
    word_count: int | None = None
    generation_cost: Decimal | None = None

    def export_markdown(self) -> str | None:
        return self.content

    def export_html(self) -> str:
        import markdown

        return markdown.markdown(self.content or "", extensions=["tables", "fenced_code"])
