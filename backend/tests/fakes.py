"""In-memory store and scripted collaborators for coordinator tests."""
from __future__ import annotations

import asyncio
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from contentlab.domain import (
    AssetRecord,
    ChannelMetadata,
    ComposedVideo,
    ImageResult,
    ScriptResult,
    SentimentResult,
    SummaryResult,
    VideoMetadata,
)
from contentlab.services.artifact_store import ArtifactStore, asset_columns
from contentlab.services.collaborators import (
    ChannelMetadataProvider,
    Collaborators,
    CommentCollector,
    ImageBatchGenerator,
    VideoCompositor,
    VideoMetadataProvider,
)
from contentlab.services.stub_collaborators import (
    StubImagePromptGenerator,
    StubNarrationSynthesizer,
    StubScriptGenerator,
    StubSentimentAnalyzer,
    StubSummarizer,
)
from contentlab.services.subtitles import FileSubtitlePersister, SrtSubtitleGenerator
from contentlab.services.virality import ViralScore

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class InMemoryArtifactStore(ArtifactStore):
    def __init__(self):
        self.projects: dict[int, SimpleNamespace] = {}
        self.runs: dict[str, dict[str, Any]] = {}
        self.videos: list[dict[str, Any]] = []
        self.comment_analyses: list[dict[str, Any]] = []
        self.content_summaries: list[dict[str, Any]] = []
        self.scripts: list[dict[str, Any]] = []
        self.assets: list[dict[str, Any]] = []
        self.status_history: list[tuple[int, str]] = []
        self._next_id = 0

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_project(self, fmt: str = "long", name: str = "demo") -> int:
        project_id = self._id()
        self.projects[project_id] = SimpleNamespace(id=project_id, name=name, format=fmt, status="pending")
        return project_id

    async def get_project(self, project_id):
        return self.projects.get(project_id)

    async def set_project_status(self, project_id, status):
        self.projects[project_id].status = status
        self.status_history.append((project_id, status))

    async def create_run(self, run_id, project_id, source_video_id, fmt):
        self.runs[run_id] = {
            "id": run_id,
            "project_id": project_id,
            "source_video_id": source_video_id,
            "format": fmt,
            "status": "processing",
            "stages": {},
        }

    async def finish_run(self, run_id, status, stages, *, error_message=None, failed_stage=None):
        self.runs[run_id].update(
            status=status, stages=stages, error_message=error_message, failed_stage=failed_stage
        )

    async def create_scored_video(self, project_id, run_id, video, channel_name, subscriber_count, viral: ViralScore):
        row = {
            "id": self._id(),
            "project_id": project_id,
            "run_id": run_id,
            "source_video_id": video.video_id,
            "channel_name": channel_name,
            "subscriber_count": subscriber_count,
            "viral_score": viral.score,
            "viral_grade": viral.grade,
        }
        self.videos.append(row)
        return row["id"]

    async def create_comment_analysis(self, video_id, sentiment: SentimentResult, comments, positive_ratio):
        row = {"id": self._id(), "video_id": video_id, "positive_ratio": positive_ratio, **asdict(sentiment)}
        self.comment_analyses.append(row)
        return row["id"]

    async def create_content_summary(self, video_id, summary: SummaryResult, transcript, summary_level):
        row = {"id": self._id(), "video_id": video_id, "summary_level": summary_level, **asdict(summary)}
        self.content_summaries.append(row)
        return row["id"]

    async def create_script(self, video_id, script: ScriptResult, fmt, *, purpose="improvement", audience=None):
        row = {
            "id": self._id(),
            "video_id": video_id,
            "full_script": script.full_script,
            "content_format": fmt,
            "target_audience": audience,
        }
        self.scripts.append(row)
        return row["id"]

    async def create_asset(self, script_id, asset: AssetRecord):
        row = {"id": self._id(), "script_id": script_id, **asset_columns(asset)}
        self.assets.append(row)
        return row["id"]

    async def update_asset_status(
        self, asset_id, status, *, error_message=None, file_name=None, file_path=None, file_size=None, duration=None
    ):
        row = next(a for a in self.assets if a["id"] == asset_id)
        row["generation_status"] = status
        if error_message is not None:
            row["error_message"] = error_message
        if file_path is not None:
            row.update(file_name=file_name, file_path=file_path, file_size_bytes=file_size)
        if duration is not None:
            row["video_duration_seconds"] = duration

    def assets_of(self, asset_type: str) -> list[dict[str, Any]]:
        return [a for a in self.assets if a["asset_type"] == asset_type]

    async def list_videos(self, project_id):
        return [v for v in self.videos if v["project_id"] == project_id]

    async def list_comment_analyses(self, video_id):
        return [c for c in self.comment_analyses if c["video_id"] == video_id]

    async def list_content_summaries(self, video_id):
        return [c for c in self.content_summaries if c["video_id"] == video_id]

    async def list_scripts(self, video_id):
        return [s for s in self.scripts if s["video_id"] == video_id]

    async def list_assets(self, script_id):
        return [a for a in self.assets if a["script_id"] == script_id]

    async def list_runs(self, project_id):
        return [r for r in self.runs.values() if r["project_id"] == project_id]

    async def get_run(self, run_id):
        return self.runs.get(run_id)


class FakeVideoProvider(VideoMetadataProvider):
    def __init__(self, videos: list[VideoMetadata] | None = None, error: Exception | None = None):
        self.videos = {v.video_id: v for v in (videos or [])}
        self.error = error

    async def get_videos(self, video_ids):
        if self.error:
            raise self.error
        return [self.videos[v] for v in video_ids if v in self.videos]


class FakeChannelProvider(ChannelMetadataProvider):
    def __init__(self, channels: list[ChannelMetadata] | None = None):
        self.channels = {c.channel_id: c for c in (channels or [])}

    async def get_channels(self, channel_ids):
        return [self.channels[c] for c in channel_ids if c in self.channels]


class FakeCommentCollector(CommentCollector):
    def __init__(self, comments: list[str] | None = None, error: Exception | None = None):
        self.comments = comments if comments is not None else [
            "great video, love it",
            "this was helpful thanks",
            "boring and wrong",
            "first",
        ]
        self.error = error

    async def collect(self, video_id, fmt):
        if self.error:
            raise self.error
        return list(self.comments)


class FakeImageBatch(ImageBatchGenerator):
    """Returns canned results; indexes listed in `fail` come back failed."""

    def __init__(self, fail: set[int] | None = None):
        self.fail = fail or set()
        self.calls = 0

    async def generate_batch(self, script, prompts, fmt, *, output_dir):
        self.calls += 1
        output_dir.mkdir(parents=True, exist_ok=True)
        results = []
        for i, prompt in enumerate(prompts):
            if i in self.fail:
                results.append(ImageResult(index=i, prompt=prompt, error="content policy violation"))
                continue
            path = output_dir / f"image_{i:02d}.png"
            path.write_bytes(b"png")
            results.append(ImageResult(index=i, prompt=prompt, file_path=str(path), file_name=path.name, file_size=3))
        return results


class FakeCompositor(VideoCompositor):
    def __init__(self, installed: bool = True, delay: float = 0.0, error: Exception | None = None):
        self.installed = installed
        self.delay = delay
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def check_installation(self):
        return self.installed

    async def compose(self, images, audio_path, subtitle_path, fmt, *, output_dir: Path):
        self.calls.append({"images": list(images), "audio_path": audio_path, "subtitle_path": subtitle_path})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / "final.mp4"
        path.write_bytes(b"mp4")
        return ComposedVideo(file_path=str(path), file_name=path.name, file_size=3, duration=12.5)


def make_video(
    video_id: str = "vid123",
    views: int = 1_000_000,
    age: timedelta = timedelta(days=2),
    channel_id: str = "chan1",
) -> VideoMetadata:
    return VideoMetadata(
        video_id=video_id,
        title="How sourdough really works",
        channel_id=channel_id,
        channel_title="Bread Lab",
        published_at=NOW - age,
        view_count=views,
    )


def make_collaborators(**overrides) -> Collaborators:
    defaults = dict(
        videos=FakeVideoProvider([make_video()]),
        channels=FakeChannelProvider([ChannelMetadata(channel_id="chan1", title="Bread Lab", subscriber_count=10_000)]),
        comments=FakeCommentCollector(),
        sentiment=StubSentimentAnalyzer(),
        summarizer=StubSummarizer(),
        scripts=StubScriptGenerator(),
        image_prompts=StubImagePromptGenerator(),
        images=FakeImageBatch(),
        narration=StubNarrationSynthesizer(voice_id="voice-1"),
        subtitles=SrtSubtitleGenerator(),
        subtitle_files=FileSubtitlePersister(),
        compositor=FakeCompositor(),
    )
    defaults.update(overrides)
    return Collaborators(**defaults)
