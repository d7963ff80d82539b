"""Project endpoints.

POST /api/projects
GET  /api/projects/{project_id}
POST /api/projects/{project_id}/competitors
"""

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from backend.routes.deps import store_dependency
from seogen.models import Competitor, Project, User
from seogen.stages.competitors import normalize_domain
from seogen.store import EntityStore, require

logger = logging.getLogger(__name__)
router = APIRouter()


class CompetitorIn(BaseModel):
    domain: str
    title: str | None = None


class CreateProjectRequest(BaseModel):
    user_id: str
    name: str
    domain: str
    niche: str | None = None
    description: str | None = None
    seed_keywords: list[str] = Field(default_factory=list)
    competitors: list[CompetitorIn] = Field(default_factory=list)


def _competitor(item: CompetitorIn) -> Competitor:
    return Competitor(domain=normalize_domain(item.domain) or item.domain, title=item.title)


@router.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(request: CreateProjectRequest, store: EntityStore = Depends(store_dependency)):
    require(store, User, request.user_id)
    project = Project(
        user_id=request.user_id,
        name=request.name,
        domain=request.domain,
        niche=request.niche,
        description=request.description,
        seed_keywords=[s.strip() for s in request.seed_keywords if s.strip()],
        competitors=[_competitor(c) for c in request.competitors],
    )
    store.save(project)
    logger.info("Created project %s for %s", project.id, project.domain)
    return project


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: str, store: EntityStore = Depends(store_dependency)):
    return require(store, Project, project_id)


@router.post("/projects/{project_id}/competitors", response_model=Project)
async def add_competitor(
    project_id: str,
    competitor: CompetitorIn,
    store: EntityStore = Depends(store_dependency),
):
    """Register a competitor; later keyword researches mine its sitemap."""
    project = require(store, Project, project_id)
    new = _competitor(competitor)
    if all(c.domain != new.domain for c in project.competitors):
        project.competitors.append(new)
        store.save(project)
    return project
