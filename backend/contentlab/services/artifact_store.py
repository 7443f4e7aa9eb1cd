"""
Artifact Store

Append-only persistence for pipeline outputs:
- create_* operations only insert; reruns add rows, never overwrite
- GeneratedAsset.generation_status is the one field that moves after insert
- every lookup is scoped by its owning id (project, video, script, run)

Each operation runs in its own session and commits immediately, so work
done by earlier stages survives a later failure and concurrent runs never
share a transaction.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update

from contentlab.db import Database
from contentlab.domain import (
    AssetRecord,
    ImageAsset,
    ScriptResult,
    SentimentResult,
    SubtitleAsset,
    SummaryResult,
    VideoAsset,
    VideoMetadata,
    VoiceAsset,
)
from contentlab.models import (
    CommentAnalysis,
    ContentSummary,
    GeneratedAsset,
    GeneratedScript,
    PipelineRun,
    Project,
    ScoredVideo,
)
from contentlab.services.virality import ViralScore

logger = logging.getLogger(__name__)


class ArtifactStore(ABC):
    @abstractmethod
    async def get_project(self, project_id: int) -> Project | None: ...

    @abstractmethod
    async def set_project_status(self, project_id: int, status: str) -> None: ...

    @abstractmethod
    async def create_run(self, run_id: str, project_id: int, source_video_id: str, fmt: str) -> None: ...

    @abstractmethod
    async def finish_run(
        self,
        run_id: str,
        status: str,
        stages: dict[str, Any],
        *,
        error_message: str | None = None,
        failed_stage: str | None = None,
    ) -> None: ...

    @abstractmethod
    async def create_scored_video(
        self,
        project_id: int,
        run_id: str,
        video: VideoMetadata,
        channel_name: str | None,
        subscriber_count: int,
        viral: ViralScore,
    ) -> int: ...

    @abstractmethod
    async def create_comment_analysis(
        self,
        video_id: int,
        sentiment: SentimentResult,
        comments: list[str],
        positive_ratio: float,
    ) -> int: ...

    @abstractmethod
    async def create_content_summary(
        self, video_id: int, summary: SummaryResult, transcript: str | None, summary_level: str
    ) -> int: ...

    @abstractmethod
    async def create_script(
        self,
        video_id: int,
        script: ScriptResult,
        fmt: str,
        *,
        purpose: str = "improvement",
        audience: str | None = None,
    ) -> int: ...

    @abstractmethod
    async def create_asset(self, script_id: int, asset: AssetRecord) -> int: ...

    @abstractmethod
    async def update_asset_status(
        self,
        asset_id: int,
        status: str,
        *,
        error_message: str | None = None,
        file_name: str | None = None,
        file_path: str | None = None,
        file_size: int | None = None,
        duration: float | None = None,
    ) -> None: ...

    @abstractmethod
    async def list_videos(self, project_id: int) -> list[ScoredVideo]: ...

    @abstractmethod
    async def list_comment_analyses(self, video_id: int) -> list[CommentAnalysis]: ...

    @abstractmethod
    async def list_content_summaries(self, video_id: int) -> list[ContentSummary]: ...

    @abstractmethod
    async def list_scripts(self, video_id: int) -> list[GeneratedScript]: ...

    @abstractmethod
    async def list_assets(self, script_id: int) -> list[GeneratedAsset]: ...

    @abstractmethod
    async def list_runs(self, project_id: int) -> list[PipelineRun]: ...

    @abstractmethod
    async def get_run(self, run_id: str) -> PipelineRun | None: ...


def asset_columns(asset: AssetRecord) -> dict[str, Any]:
    """Flatten a typed asset record into GeneratedAsset columns."""
    columns: dict[str, Any] = {
        "asset_type": asset.asset_type,
        "generation_status": asset.generation_status,
        "file_name": asset.file_name,
        "file_path": asset.file_path,
        "file_size_bytes": asset.file_size,
        "error_message": asset.error_message,
    }
    if isinstance(asset, ImageAsset):
        columns.update(image_prompt=asset.prompt, image_resolution=asset.resolution, image_sequence=asset.sequence)
    elif isinstance(asset, VoiceAsset):
        columns.update(voice_duration_seconds=asset.duration, tts_provider=asset.provider, tts_voice_id=asset.voice_id)
    elif isinstance(asset, SubtitleAsset):
        columns.update(subtitle_format=asset.subtitle_format, subtitle_line_count=asset.line_count)
    elif isinstance(asset, VideoAsset):
        columns.update(
            video_resolution=asset.resolution,
            video_duration_seconds=asset.duration,
            video_codec=asset.codec,
            video_fps=asset.fps,
        )
    else:
        raise ValueError(f"Unknown asset record: {type(asset).__name__}")
    return columns


class SqlArtifactStore(ArtifactStore):
    def __init__(self, database: Database):
        self.database = database

    async def _insert(self, row) -> int:
        async with self.database.session() as session:
            session.add(row)
            await session.commit()
            return row.id

    async def _list(self, stmt) -> list:
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_project(self, project_id: int) -> Project | None:
        async with self.database.session() as session:
            return await session.get(Project, project_id)

    async def set_project_status(self, project_id: int, status: str) -> None:
        async with self.database.session() as session:
            await session.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(status=status, updated_at=datetime.now(timezone.utc))
            )
            await session.commit()

    async def create_run(self, run_id: str, project_id: int, source_video_id: str, fmt: str) -> None:
        await self._insert(PipelineRun(
            id=run_id,
            project_id=project_id,
            source_video_id=source_video_id,
            format=fmt,
            status="processing",
            stages={},
            started_at=datetime.now(timezone.utc),
        ))

    async def finish_run(
        self,
        run_id: str,
        status: str,
        stages: dict[str, Any],
        *,
        error_message: str | None = None,
        failed_stage: str | None = None,
    ) -> None:
        async with self.database.session() as session:
            await session.execute(
                update(PipelineRun)
                .where(PipelineRun.id == run_id)
                .values(
                    status=status,
                    stages=stages,
                    error_message=error_message,
                    failed_stage=failed_stage,
                    completed_at=datetime.now(timezone.utc),
                )
            )
            await session.commit()

    async def create_scored_video(
        self,
        project_id: int,
        run_id: str,
        video: VideoMetadata,
        channel_name: str | None,
        subscriber_count: int,
        viral: ViralScore,
    ) -> int:
        return await self._insert(ScoredVideo(
            project_id=project_id,
            run_id=run_id,
            source_video_id=video.video_id,
            title=video.title,
            channel_id=video.channel_id,
            channel_name=channel_name or video.channel_title,
            subscriber_count=subscriber_count,
            view_count=video.view_count,
            like_count=video.like_count,
            comment_count=video.comment_count,
            duration_seconds=video.duration_seconds,
            published_at=video.published_at,
            thumbnail_url=video.thumbnail_url,
            viral_score=viral.score,
            viral_grade=viral.grade,
            time_weight=viral.time_weight,
        ))

    async def create_comment_analysis(
        self,
        video_id: int,
        sentiment: SentimentResult,
        comments: list[str],
        positive_ratio: float,
    ) -> int:
        return await self._insert(CommentAnalysis(
            video_id=video_id,
            total_comments_analyzed=len(comments),
            positive_count=sentiment.positive_count,
            negative_count=sentiment.negative_count,
            positive_ratio=positive_ratio,
            positive_summary=sentiment.positive_summary,
            negative_summary=sentiment.negative_summary,
            positive_keywords=list(sentiment.positive_keywords),
            negative_keywords=list(sentiment.negative_keywords),
            improvement_suggestions=sentiment.improvement_suggestions or "",
            raw_comments=list(comments),
            analysis_model=sentiment.model,
        ))

    async def create_content_summary(
        self, video_id: int, summary: SummaryResult, transcript: str | None, summary_level: str
    ) -> int:
        return await self._insert(ContentSummary(
            video_id=video_id,
            original_transcript=transcript,
            one_line_summary=summary.one_line_summary,
            detailed_summary=summary.detailed_summary,
            key_points=list(summary.key_points),
            context_background=summary.context,
            summary_level=summary_level,
        ))

    async def create_script(
        self,
        video_id: int,
        script: ScriptResult,
        fmt: str,
        *,
        purpose: str = "improvement",
        audience: str | None = None,
    ) -> int:
        return await self._insert(GeneratedScript(
            video_id=video_id,
            script_purpose=purpose,
            target_audience=audience,
            expected_duration_seconds=script.estimated_duration,
            script_structure=script.sections.to_dict(),
            full_script=script.full_script,
            content_format=fmt,
            word_count=len(script.full_script or ""),
        ))

    async def create_asset(self, script_id: int, asset: AssetRecord) -> int:
        return await self._insert(GeneratedAsset(script_id=script_id, **asset_columns(asset)))

    async def update_asset_status(
        self,
        asset_id: int,
        status: str,
        *,
        error_message: str | None = None,
        file_name: str | None = None,
        file_path: str | None = None,
        file_size: int | None = None,
        duration: float | None = None,
    ) -> None:
        values: dict[str, Any] = {"generation_status": status, "updated_at": datetime.now(timezone.utc)}
        if error_message is not None:
            values["error_message"] = error_message
        if file_name is not None:
            values["file_name"] = file_name
        if file_path is not None:
            values["file_path"] = file_path
        if file_size is not None:
            values["file_size_bytes"] = file_size
        if duration is not None:
            values["video_duration_seconds"] = duration
        async with self.database.session() as session:
            await session.execute(update(GeneratedAsset).where(GeneratedAsset.id == asset_id).values(**values))
            await session.commit()

    async def list_videos(self, project_id: int) -> list[ScoredVideo]:
        return await self._list(
            select(ScoredVideo).where(ScoredVideo.project_id == project_id).order_by(ScoredVideo.id)
        )

    async def list_comment_analyses(self, video_id: int) -> list[CommentAnalysis]:
        return await self._list(
            select(CommentAnalysis).where(CommentAnalysis.video_id == video_id).order_by(CommentAnalysis.id)
        )

    async def list_content_summaries(self, video_id: int) -> list[ContentSummary]:
        return await self._list(
            select(ContentSummary).where(ContentSummary.video_id == video_id).order_by(ContentSummary.id)
        )

    async def list_scripts(self, video_id: int) -> list[GeneratedScript]:
        return await self._list(
            select(GeneratedScript).where(GeneratedScript.video_id == video_id).order_by(GeneratedScript.id)
        )

    async def list_assets(self, script_id: int) -> list[GeneratedAsset]:
        return await self._list(
            select(GeneratedAsset)
            .where(GeneratedAsset.script_id == script_id)
            .order_by(GeneratedAsset.asset_type, GeneratedAsset.image_sequence, GeneratedAsset.id)
        )

    async def list_runs(self, project_id: int) -> list[PipelineRun]:
        return await self._list(
            select(PipelineRun).where(PipelineRun.project_id == project_id).order_by(PipelineRun.started_at.desc())
        )

    async def get_run(self, run_id: str) -> PipelineRun | None:
        async with self.database.session() as session:
            return await session.get(PipelineRun, run_id)
