"""Keyword research endpoints.

POST /api/projects/{project_id}/keyword-researches
  → Creates a pending research, enqueues the pipeline, returns immediately.

GET /api/keyword-researches/{research_id}
  → Status, durable progress log and the saved keywords.

POST /api/keyword-researches/{research_id}/retry
"""

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from backend.routes.deps import queue_dependency, store_dependency
from seogen.models import Keyword, KeywordResearch, Project
from seogen.pipelines import keyword_research, state
from seogen.pipelines.queue import JobQueue
from seogen.store import EntityStore, require

logger = logging.getLogger(__name__)
router = APIRouter()


class StartResearchRequest(BaseModel):
    seed_keywords: list[str] = Field(default_factory=list)


class KeywordOut(BaseModel):
    id: str
    keyword: str
    volume: int | None = None
    difficulty: int | None = None
    difficulty_level: str
    opportunity: int | None = None
    easy_win: bool
    cpc: float | None = None
    intent: str | None = None
    sources: list[str] = Field(default_factory=list)

    @classmethod
    def from_keyword(cls, kw: Keyword) -> "KeywordOut":
        return cls(
            **kw.model_dump(include={"id", "keyword", "volume", "difficulty", "opportunity", "cpc", "intent", "sources"}),
            difficulty_level=kw.difficulty_level,
            easy_win=kw.easy_win,
        )


class KeywordResearchDetail(BaseModel):
    research: KeywordResearch
    keywords: list[KeywordOut] = Field(default_factory=list)


@router.post(
    "/projects/{project_id}/keyword-researches",
    response_model=KeywordResearch,
    status_code=status.HTTP_201_CREATED,
    summary="Start keyword research (async)",
)
async def start_keyword_research(
    project_id: str,
    request: StartResearchRequest | None = None,
    store: EntityStore = Depends(store_dependency),
    queue: JobQueue = Depends(queue_dependency),
):
    project = require(store, Project, project_id)
    seeds = [s.strip() for s in (request.seed_keywords if request else []) if s.strip()]
    research = store.save(KeywordResearch(project_id=project.id, seed_keywords=seeds))
    if seeds and not project.seed_keywords:
        project.seed_keywords = seeds
        store.save(project)
    queue.enqueue(keyword_research.PIPELINE_NAME, research.id)
    return research


@router.get("/keyword-researches/{research_id}", response_model=KeywordResearchDetail)
async def get_keyword_research(research_id: str, store: EntityStore = Depends(store_dependency)):
    research = require(store, KeywordResearch, research_id)
    keywords = sorted(
        store.list_children(Keyword, research.id),
        key=lambda kw: -(kw.opportunity or 0),
    )
    return KeywordResearchDetail(
        research=research,
        keywords=[KeywordOut.from_keyword(kw) for kw in keywords],
    )


@router.post("/keyword-researches/{research_id}/retry", response_model=KeywordResearch)
async def retry_keyword_research(
    research_id: str,
    store: EntityStore = Depends(store_dependency),
    queue: JobQueue = Depends(queue_dependency),
):
    return state.retry_keyword_research(research_id, store=store, job_queue=queue)
