"""Article endpoints.

POST /api/keywords/{keyword_id}/articles
  → Creates the pending article for the keyword and enqueues generation.
    409 when the keyword already has an article.

GET  /api/articles/{article_id}
POST /api/articles/{article_id}/retry
POST /api/articles/{article_id}/regenerate
GET  /api/articles/{article_id}/export?format=markdown|html
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel, Field

from backend.routes.deps import queue_dependency, store_dependency
from seogen.models import Article
from seogen.pipelines import article as article_pipeline
from seogen.pipelines import state
from seogen.pipelines.queue import JobQueue
from seogen.store import EntityStore, require

logger = logging.getLogger(__name__)
router = APIRouter()


class CreateArticleRequest(BaseModel):
    target_word_count: int = Field(default=2000, ge=300, le=10000)


@router.post(
    "/keywords/{keyword_id}/articles",
    response_model=Article,
    status_code=status.HTTP_201_CREATED,
    summary="Start article generation (async)",
)
async def create_article(
    keyword_id: str,
    request: CreateArticleRequest | None = None,
    store: EntityStore = Depends(store_dependency),
    queue: JobQueue = Depends(queue_dependency),
):
    try:
        article = article_pipeline.create_article(
            store, keyword_id, target_word_count=request.target_word_count if request else 2000
        )
    except article_pipeline.DuplicateArticleError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    queue.enqueue(article_pipeline.PIPELINE_NAME, article.id)
    logger.info("Queued article %s for keyword %s", article.id, keyword_id)
    return article


@router.get("/articles/{article_id}", response_model=Article)
async def get_article(article_id: str, store: EntityStore = Depends(store_dependency)):
    return require(store, Article, article_id)


@router.post("/articles/{article_id}/retry", response_model=Article)
async def retry_article(
    article_id: str,
    store: EntityStore = Depends(store_dependency),
    queue: JobQueue = Depends(queue_dependency),
):
    return state.retry_article(article_id, store=store, job_queue=queue)


@router.post("/articles/{article_id}/regenerate", response_model=Article)
async def regenerate_article(
    article_id: str,
    store: EntityStore = Depends(store_dependency),
    queue: JobQueue = Depends(queue_dependency),
):
    return state.regenerate_article(article_id, store=store, job_queue=queue)


@router.get("/articles/{article_id}/export")
async def export_article(
    article_id: str,
    format: str = Query("markdown", pattern="^(markdown|html)$"),
    store: EntityStore = Depends(store_dependency),
):
    article = require(store, Article, article_id)
    if not article.content:
        raise HTTPException(status_code=409, detail=f"Article has no content yet: {article_id}")
    if format == "html":
        return HTMLResponse(article.export_html())
    return PlainTextResponse(article.export_markdown(), media_type="text/markdown")
