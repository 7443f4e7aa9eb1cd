"""
Pipeline Coordinator

Runs one source video through the content pipeline:
- Stages execute in a fixed order, each classified required or optional
- A required stage failure aborts the run and fails the project
- An optional stage failure or unmet precondition is recorded and skipped past
- Every completed stage persists its artifact before the next one starts
- Narration and composition run under a deadline
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

from contentlab.domain import (
    ImageAsset,
    NarrationResult,
    ScriptResult,
    SentimentResult,
    SubtitleAsset,
    SubtitleFile,
    SummaryResult,
    VideoAsset,
    VideoMetadata,
    VoiceAsset,
)
from contentlab.services.artifact_store import ArtifactStore
from contentlab.services.collaborators import Collaborators
from contentlab.services.content_config import FORMATS, get_content_config
from contentlab.services.video_compositor import FPS, VIDEO_CODEC
from contentlab.services.virality import calculate_viral_score
from contentlab.settings import Settings, get_settings

logger = logging.getLogger("pipeline")

REQUIRED = "required"
OPTIONAL = "optional"

VIDEO_INFO = "videoInfo"
COMMENT_ANALYSIS = "commentAnalysis"
CONTENT_SUMMARY = "contentSummary"
SCRIPT_GENERATION = "scriptGeneration"
IMAGE_GENERATION = "imageGeneration"
TTS_GENERATION = "ttsGeneration"
SUBTITLE_GENERATION = "subtitleGeneration"
VIDEO_GENERATION = "videoGeneration"


class PipelineValidationError(ValueError):
    """Request rejected before any stage runs."""


class ProjectNotFoundError(PipelineValidationError):
    pass


class StageSkipped(Exception):
    """Raised by a stage that deliberately does not run."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class OptionalStageError(RuntimeError):
    """Optional stage failed or a precondition it needs is missing."""


class RequiredStageError(RuntimeError):
    """A required stage failed; carries the partial run report."""

    def __init__(self, stage: str, message: str, report: "RunReport"):
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.report = report


@dataclass
class RunOptions:
    format: str | None = None
    transcript: str | None = None
    target_audience: str | None = None
    skip_image_generation: bool = False
    skip_video_generation: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RunOptions":
        data = data or {}
        return cls(
            format=data.get("format"),
            transcript=data.get("transcript"),
            target_audience=data.get("target_audience"),
            skip_image_generation=bool(data.get("skip_image_generation", False)),
            skip_video_generation=bool(data.get("skip_video_generation", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "transcript": self.transcript,
            "target_audience": self.target_audience,
            "skip_image_generation": self.skip_image_generation,
            "skip_video_generation": self.skip_video_generation,
        }


@dataclass
class RunReport:
    run_id: str
    project_id: int
    video_id: str
    format: str
    stages: dict[str, dict[str, Any]] = field(default_factory=dict)
    status: str = "processing"
    error: str | None = None
    failed_stage: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "runId": self.run_id,
            "projectId": self.project_id,
            "videoId": self.video_id,
            "format": self.format,
            "stages": self.stages,
            "status": self.status,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.error is not None:
            data["error"] = self.error
            data["failedStage"] = self.failed_stage
        return data


class RunPaths:
    """Storage layout of one run: {storage}/projects/{project}/{run}/..."""

    def __init__(self, storage_path: Path, project_id: int, run_id: str):
        self.root = storage_path / "projects" / str(project_id) / run_id
        self.images = self.root / "images"
        self.audio = self.root / "audio"
        self.subtitles = self.root / "subtitles"
        self.video = self.root / "video"


class PipelineContext:
    """State passed between the stages of one run."""

    def __init__(self, report: RunReport, options: RunOptions, paths: RunPaths):
        self.report = report
        self.options = options
        self.paths = paths
        self.fmt = report.format

        self.scored_video_id: int | None = None
        self.video: VideoMetadata | None = None
        self.sentiment: SentimentResult | None = None
        self.summary: SummaryResult | None = None
        self.script: ScriptResult | None = None
        self.script_id: int | None = None
        self.image_paths: list[str] = []
        self.narration: NarrationResult | None = None
        self.subtitle_file: SubtitleFile | None = None


StageRun = Callable[[PipelineContext], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class StageDescriptor:
    name: str
    classification: str
    run: StageRun

    @property
    def required(self) -> bool:
        return self.classification == REQUIRED


RunLock = Callable[[int], AbstractAsyncContextManager]


class PipelineCoordinator:
    def __init__(
        self,
        store: ArtifactStore,
        collaborators: Collaborators,
        *,
        settings: Settings | None = None,
        storage_path: str | Path | None = None,
        narration_timeout_sec: float | None = None,
        composition_timeout_sec: float | None = None,
        run_lock: RunLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.collaborators = collaborators
        self.storage_path = Path(storage_path or settings.storage_path)
        self.narration_timeout_sec = narration_timeout_sec or settings.narration_timeout_sec
        self.composition_timeout_sec = composition_timeout_sec or settings.composition_timeout_sec
        self.voice_id = settings.tts_voice_id
        self.run_lock = run_lock
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def stages(self) -> list[StageDescriptor]:
        return [
            StageDescriptor(VIDEO_INFO, REQUIRED, self._video_info),
            StageDescriptor(COMMENT_ANALYSIS, REQUIRED, self._comment_analysis),
            StageDescriptor(CONTENT_SUMMARY, OPTIONAL, self._content_summary),
            StageDescriptor(SCRIPT_GENERATION, REQUIRED, self._script_generation),
            StageDescriptor(IMAGE_GENERATION, OPTIONAL, self._image_generation),
            StageDescriptor(TTS_GENERATION, REQUIRED, self._tts_generation),
            StageDescriptor(SUBTITLE_GENERATION, REQUIRED, self._subtitle_generation),
            StageDescriptor(VIDEO_GENERATION, OPTIONAL, self._video_generation),
        ]

    async def run(
        self, project_id: int | None, video_id: str | None, options: RunOptions | None = None
    ) -> RunReport:
        """Run every stage for one source video and return the run report.

        Raises PipelineValidationError before touching the store when the
        request is incomplete, and RequiredStageError (with the partial
        report attached) when a required stage fails.
        """
        options = options or RunOptions()
        if not project_id or not video_id:
            raise PipelineValidationError("projectId and videoId are required")

        project = await self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")

        fmt = options.format or project.format or "long"
        if fmt not in FORMATS:
            raise PipelineValidationError(f"format must be one of {', '.join(FORMATS)}")

        if self.run_lock is None:
            return await self._run(project_id, video_id, fmt, options)
        async with self.run_lock(project_id):
            return await self._run(project_id, video_id, fmt, options)

    async def _run(self, project_id: int, video_id: str, fmt: str, options: RunOptions) -> RunReport:
        report = RunReport(run_id=uuid.uuid4().hex, project_id=project_id, video_id=video_id, format=fmt)
        ctx = PipelineContext(report, options, RunPaths(self.storage_path, project_id, report.run_id))

        await self.store.set_project_status(project_id, "processing")
        await self.store.create_run(report.run_id, project_id, video_id, fmt)
        logger.info(f"[pipeline] run={report.run_id} Starting project={project_id} video={video_id} format={fmt}")

        try:
            for stage in self.stages:
                await self._execute_stage(stage, ctx)
        except RequiredStageError as e:
            await self._finish(report, "failed", error=e.message, failed_stage=e.stage)
            raise
        except asyncio.CancelledError:
            await self._finish(report, "failed", error="cancelled", failed_stage=self._current_stage(report))
            raise

        await self._finish(report, "completed")
        return report

    async def _execute_stage(self, stage: StageDescriptor, ctx: PipelineContext) -> None:
        report = ctx.report
        report.stages[stage.name] = {"status": "processing"}
        t_start = time.monotonic()
        try:
            summary = await stage.run(ctx)
        except StageSkipped as e:
            report.stages[stage.name] = {
                "status": "skipped",
                "reason": e.reason,
                "durationMs": self._elapsed_ms(t_start),
            }
            logger.info(f"[pipeline] run={report.run_id} [{stage.name}] skipped: {e.reason}")
            return
        except asyncio.CancelledError:
            report.stages[stage.name] = {
                "status": "failed",
                "error": "cancelled",
                "durationMs": self._elapsed_ms(t_start),
            }
            logger.warning(f"[pipeline] run={report.run_id} [{stage.name}] cancelled")
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            if stage.required:
                report.stages[stage.name] = {
                    "status": "failed",
                    "error": message,
                    "durationMs": self._elapsed_ms(t_start),
                }
                logger.error(f"[pipeline] run={report.run_id} [{stage.name}] failed, aborting run: {message}")
                raise RequiredStageError(stage.name, message, report) from e
            report.stages[stage.name] = {
                "status": "failed",
                "reason": message,
                "durationMs": self._elapsed_ms(t_start),
            }
            logger.warning(f"[pipeline] run={report.run_id} [{stage.name}] failed, continuing: {message}")
            return

        duration_ms = self._elapsed_ms(t_start)
        report.stages[stage.name] = {"status": "completed", **summary, "durationMs": duration_ms}
        logger.info(f"[pipeline] run={report.run_id} [{stage.name}] completed in {duration_ms}ms")

    async def _finish(
        self,
        report: RunReport,
        status: str,
        *,
        error: str | None = None,
        failed_stage: str | None = None,
    ) -> None:
        report.status = status
        report.error = error
        report.failed_stage = failed_stage
        report.completed_at = datetime.now(timezone.utc)
        await self.store.finish_run(
            report.run_id, status, dict(report.stages), error_message=error, failed_stage=failed_stage
        )
        await self.store.set_project_status(report.project_id, status)
        logger.info(f"[pipeline] run={report.run_id} Finished with status={status}")

    @staticmethod
    def _elapsed_ms(t_start: float) -> int:
        return int((time.monotonic() - t_start) * 1000)

    @staticmethod
    def _current_stage(report: RunReport) -> str | None:
        return next(reversed(report.stages), None)

    # ============== Stages ==============

    async def _video_info(self, ctx: PipelineContext) -> dict[str, Any]:
        videos = await self.collaborators.videos.get_videos([ctx.report.video_id])
        if not videos:
            raise LookupError(f"Video {ctx.report.video_id} not found")
        video = videos[0]

        channel = None
        if video.channel_id:
            channels = await self.collaborators.channels.get_channels([video.channel_id])
            channel = channels[0] if channels else None
        subscribers = channel.subscriber_count if channel else 0

        viral = calculate_viral_score(video.view_count, subscribers, video.published_at, ctx.fmt, now=self.clock())
        ctx.video = video
        ctx.scored_video_id = await self.store.create_scored_video(
            ctx.report.project_id,
            ctx.report.run_id,
            video,
            channel.title if channel else None,
            subscribers,
            viral,
        )
        return {
            "dbId": ctx.scored_video_id,
            "viralScore": viral.score,
            "viralGrade": viral.grade,
            "timeWeight": viral.time_weight,
        }

    async def _comment_analysis(self, ctx: PipelineContext) -> dict[str, Any]:
        comments = await self.collaborators.comments.collect(ctx.report.video_id, ctx.fmt)
        sentiment = await self.collaborators.sentiment.analyze(comments, ctx.fmt)

        total = len(comments)
        positive_ratio = round(sentiment.positive_count / total * 100, 2) if total else 0.0
        ctx.sentiment = sentiment
        db_id = await self.store.create_comment_analysis(ctx.scored_video_id, sentiment, comments, positive_ratio)
        return {
            "dbId": db_id,
            "totalComments": total,
            "positiveCount": sentiment.positive_count,
            "negativeCount": sentiment.negative_count,
            "positiveRatio": positive_ratio,
        }

    async def _content_summary(self, ctx: PipelineContext) -> dict[str, Any]:
        transcript = (ctx.options.transcript or "").strip()
        if not transcript:
            raise StageSkipped("No transcript provided")

        summary = await self.collaborators.summarizer.summarize(transcript, ctx.fmt)
        level = "2-step" if ctx.fmt == "short" else "4-step"
        db_id = await self.store.create_content_summary(ctx.scored_video_id, summary, transcript, level)
        ctx.summary = summary
        return {"dbId": db_id, "oneLineSummary": summary.one_line_summary}

    async def _script_generation(self, ctx: PipelineContext) -> dict[str, Any]:
        summary = ctx.summary or SummaryResult(one_line_summary=ctx.video.title, key_points=[])
        script = await self.collaborators.scripts.generate(
            summary, ctx.sentiment, ctx.fmt, ctx.options.target_audience
        )
        if not script.full_script:
            raise ValueError("Script generator returned an empty script")

        ctx.script = script
        ctx.script_id = await self.store.create_script(
            ctx.scored_video_id,
            script,
            ctx.fmt,
            purpose="improvement",
            audience=ctx.options.target_audience,
        )
        return {
            "dbId": ctx.script_id,
            "wordCount": len(script.full_script),
            "estimatedDuration": script.estimated_duration,
        }

    async def _image_generation(self, ctx: PipelineContext) -> dict[str, Any]:
        if ctx.options.skip_image_generation:
            raise StageSkipped("Skipped by user")

        config = get_content_config(ctx.fmt)
        prompts = await self.collaborators.image_prompts.generate_prompts(ctx.script.full_script, ctx.fmt)
        results = await self.collaborators.images.generate_batch(
            ctx.script.full_script, prompts, ctx.fmt, output_dir=ctx.paths.images
        )

        for result in results:
            await self.store.create_asset(ctx.script_id, ImageAsset(
                generation_status="completed" if result.ok else "failed",
                file_name=result.file_name or "",
                file_path=result.file_path or "",
                file_size=result.file_size or 0,
                error_message=result.error,
                prompt=result.prompt,
                resolution=config.image_resolution,
                sequence=result.index,
            ))

        ctx.image_paths = [r.file_path for r in results if r.ok]
        failed = len(results) - len(ctx.image_paths)
        if failed:
            logger.warning(
                f"[pipeline] run={ctx.report.run_id} [{IMAGE_GENERATION}] "
                f"{failed}/{len(results)} images failed"
            )
        return {
            "totalRequested": len(prompts),
            "successCount": len(ctx.image_paths),
            "failedCount": failed,
            "partial": bool(failed and ctx.image_paths),
            "imagePaths": list(ctx.image_paths),
        }

    async def _tts_generation(self, ctx: PipelineContext) -> dict[str, Any]:
        try:
            narration = await asyncio.wait_for(
                self.collaborators.narration.synthesize(ctx.script.full_script, ctx.fmt, output_dir=ctx.paths.audio),
                timeout=self.narration_timeout_sec,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Narration synthesis timed out after {self.narration_timeout_sec}s") from None

        ctx.narration = narration
        db_id = await self.store.create_asset(ctx.script_id, VoiceAsset(
            generation_status="completed",
            file_name=narration.file_name or Path(narration.file_path).name,
            file_path=narration.file_path,
            file_size=narration.file_size,
            duration=narration.duration,
            provider=narration.provider,
            voice_id=narration.voice_id or self.voice_id,
        ))
        return {"dbId": db_id, "duration": narration.duration, "filePath": narration.file_path}

    async def _subtitle_generation(self, ctx: PipelineContext) -> dict[str, Any]:
        subtitles = self.collaborators.subtitles.generate(ctx.script.full_script, ctx.narration.duration, ctx.fmt)
        saved = await self.collaborators.subtitle_files.persist(
            subtitles.content, ctx.fmt, output_dir=ctx.paths.subtitles, subtitle_format=subtitles.subtitle_format
        )
        ctx.subtitle_file = saved
        db_id = await self.store.create_asset(ctx.script_id, SubtitleAsset(
            generation_status="completed",
            file_name=saved.file_name,
            file_path=saved.file_path,
            file_size=saved.file_size,
            subtitle_format=saved.subtitle_format,
            line_count=saved.line_count,
        ))
        return {"dbId": db_id, "lineCount": saved.line_count, "filePath": saved.file_path}

    async def _video_generation(self, ctx: PipelineContext) -> dict[str, Any]:
        if ctx.options.skip_video_generation:
            raise StageSkipped("Skipped by user")
        if not ctx.image_paths:
            raise StageSkipped("No images available")

        compositor = self.collaborators.compositor
        if not await compositor.check_installation():
            raise OptionalStageError("FFmpeg not installed")

        config = get_content_config(ctx.fmt)
        asset_id = await self.store.create_asset(ctx.script_id, VideoAsset(
            generation_status="processing",
            resolution=config.video_resolution,
            codec=VIDEO_CODEC,
            fps=FPS,
        ))
        try:
            video = await asyncio.wait_for(
                compositor.compose(
                    ctx.image_paths,
                    ctx.narration.file_path,
                    ctx.subtitle_file.file_path if ctx.subtitle_file else None,
                    ctx.fmt,
                    output_dir=ctx.paths.video,
                ),
                timeout=self.composition_timeout_sec,
            )
        except asyncio.TimeoutError:
            message = f"Video composition timed out after {self.composition_timeout_sec}s"
            await self.store.update_asset_status(asset_id, "failed", error_message=message)
            raise OptionalStageError(message) from None
        except asyncio.CancelledError:
            await self.store.update_asset_status(asset_id, "failed", error_message="cancelled")
            raise
        except Exception as e:
            await self.store.update_asset_status(asset_id, "failed", error_message=str(e)[:1000])
            raise

        await self.store.update_asset_status(
            asset_id,
            "completed",
            file_name=video.file_name,
            file_path=video.file_path,
            file_size=video.file_size,
            duration=video.duration,
        )
        return {
            "dbId": asset_id,
            "duration": video.duration,
            "fileSize": video.file_size,
            "filePath": video.file_path,
        }
