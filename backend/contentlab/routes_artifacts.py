from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contentlab.db import get_session
from contentlab.models import CommentAnalysis, ContentSummary, GeneratedAsset, GeneratedScript, ScoredVideo
from contentlab.schemas import AssetRead, VideoArtifacts

router = APIRouter(prefix="/api", tags=["artifacts"])

SessionDep = Depends(get_session)


@router.get("/videos/{video_id}/artifacts", response_model=VideoArtifacts)
async def get_video_artifacts(video_id: int, session: AsyncSession = SessionDep):
    """Everything derived from one scored video, oldest first (reruns append)."""
    video = await session.get(ScoredVideo, video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    analyses = await session.execute(
        select(CommentAnalysis).where(CommentAnalysis.video_id == video_id).order_by(CommentAnalysis.id)
    )
    summaries = await session.execute(
        select(ContentSummary).where(ContentSummary.video_id == video_id).order_by(ContentSummary.id)
    )
    scripts = await session.execute(
        select(GeneratedScript).where(GeneratedScript.video_id == video_id).order_by(GeneratedScript.id)
    )
    return {
        "video": video,
        "comment_analyses": analyses.scalars().all(),
        "content_summaries": summaries.scalars().all(),
        "scripts": scripts.scalars().all(),
    }


@router.get("/scripts/{script_id}/assets", response_model=List[AssetRead])
async def list_script_assets(script_id: int, session: AsyncSession = SessionDep):
    script = await session.get(GeneratedScript, script_id)
    if not script:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found")
    result = await session.execute(
        select(GeneratedAsset)
        .where(GeneratedAsset.script_id == script_id)
        .order_by(GeneratedAsset.asset_type, GeneratedAsset.image_sequence, GeneratedAsset.id)
    )
    return result.scalars().all()
