from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contentlab.db import get_session
from contentlab.models import PipelineRun, Project, ScoredVideo
from contentlab.schemas import PipelineRunRead, ProjectCreate, ProjectRead, ScoredVideoRead

router = APIRouter(prefix="/api", tags=["projects"])

SessionDep = Depends(get_session)


async def _get_project_or_404(session: AsyncSession, project_id: int) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


@router.post("/projects", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(payload: ProjectCreate, session: AsyncSession = SessionDep):
    project = Project(name=payload.name, keyword=payload.keyword, format=payload.format.value)
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


@router.get("/projects", response_model=List[ProjectRead])
async def list_projects(
    status_filter: str | None = Query(default=None, alias="status"),
    session: AsyncSession = SessionDep,
):
    q = select(Project)
    if status_filter:
        q = q.where(Project.status == status_filter)
    result = await session.execute(q.order_by(Project.id.desc()))
    return result.scalars().all()


@router.get("/projects/{project_id}", response_model=ProjectRead)
async def get_project(project_id: int, session: AsyncSession = SessionDep):
    return await _get_project_or_404(session, project_id)


@router.get("/projects/{project_id}/videos", response_model=List[ScoredVideoRead])
async def list_project_videos(project_id: int, session: AsyncSession = SessionDep):
    """Scored source videos, best first."""
    await _get_project_or_404(session, project_id)
    result = await session.execute(
        select(ScoredVideo)
        .where(ScoredVideo.project_id == project_id)
        .order_by(ScoredVideo.viral_score.desc(), ScoredVideo.id.desc())
    )
    return result.scalars().all()


@router.get("/projects/{project_id}/runs", response_model=List[PipelineRunRead])
async def list_project_runs(
    project_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = SessionDep,
):
    await _get_project_or_404(session, project_id)
    result = await session.execute(
        select(PipelineRun)
        .where(PipelineRun.project_id == project_id)
        .order_by(PipelineRun.started_at.desc())
        .limit(limit)
    )
    return result.scalars().all()
