"""
Collaborator interfaces consumed by the pipeline coordinator.

Each interface is an external boundary: metadata lookups, AI generation,
narration, subtitles and video composition. Swap concrete implementations
with `set_collaborators` (tests, real providers).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from contentlab.domain import (
    ChannelMetadata,
    ComposedVideo,
    ImageResult,
    NarrationResult,
    ScriptResult,
    SentimentResult,
    SubtitleFile,
    SubtitleResult,
    SummaryResult,
    VideoMetadata,
)


class VideoMetadataProvider(ABC):
    @abstractmethod
    async def get_videos(self, video_ids: list[str]) -> list[VideoMetadata]:
        ...


class ChannelMetadataProvider(ABC):
    @abstractmethod
    async def get_channels(self, channel_ids: list[str]) -> list[ChannelMetadata]:
        ...


class CommentCollector(ABC):
    @abstractmethod
    async def collect(self, video_id: str, fmt: str) -> list[str]:
        ...


class SentimentAnalyzer(ABC):
    @abstractmethod
    async def analyze(self, comments: list[str], fmt: str) -> SentimentResult:
        ...


class Summarizer(ABC):
    @abstractmethod
    async def summarize(self, transcript: str, fmt: str) -> SummaryResult:
        ...


class ScriptGenerator(ABC):
    @abstractmethod
    async def generate(
        self,
        summary: SummaryResult,
        sentiment: SentimentResult,
        fmt: str,
        audience: str | None = None,
    ) -> ScriptResult:
        ...


class ImagePromptGenerator(ABC):
    @abstractmethod
    async def generate_prompts(self, script: str, fmt: str) -> list[str]:
        ...


class ImageBatchGenerator(ABC):
    """Generates one image per prompt.

    Per-image failures are returned as ``ImageResult(error=...)``; the call
    itself only raises when the whole batch cannot start.
    """

    @abstractmethod
    async def generate_batch(
        self, script: str, prompts: list[str], fmt: str, *, output_dir: Path
    ) -> list[ImageResult]:
        ...


class NarrationSynthesizer(ABC):
    @abstractmethod
    async def synthesize(self, script: str, fmt: str, *, output_dir: Path) -> NarrationResult:
        ...


class SubtitleGenerator(ABC):
    @abstractmethod
    def generate(self, script: str, duration: float, fmt: str) -> SubtitleResult:
        ...


class SubtitlePersister(ABC):
    @abstractmethod
    async def persist(
        self, content: str, fmt: str, *, output_dir: Path, subtitle_format: str = "srt"
    ) -> SubtitleFile:
        ...


class VideoCompositor(ABC):
    @abstractmethod
    async def check_installation(self) -> bool:
        ...

    @abstractmethod
    async def compose(
        self,
        images: list[str],
        audio_path: str,
        subtitle_path: str | None,
        fmt: str,
        *,
        output_dir: Path,
    ) -> ComposedVideo:
        ...


@dataclass
class Collaborators:
    videos: VideoMetadataProvider
    channels: ChannelMetadataProvider
    comments: CommentCollector
    sentiment: SentimentAnalyzer
    summarizer: Summarizer
    scripts: ScriptGenerator
    image_prompts: ImagePromptGenerator
    images: ImageBatchGenerator
    narration: NarrationSynthesizer
    subtitles: SubtitleGenerator
    subtitle_files: SubtitlePersister
    compositor: VideoCompositor


def build_default_collaborators() -> Collaborators:
    """YouTube for metadata/comments, stubs for AI, SRT + FFmpeg for media."""
    from contentlab.services.stub_collaborators import (
        StubImageBatchGenerator,
        StubImagePromptGenerator,
        StubNarrationSynthesizer,
        StubScriptGenerator,
        StubSentimentAnalyzer,
        StubSummarizer,
    )
    from contentlab.services.subtitles import FileSubtitlePersister, SrtSubtitleGenerator
    from contentlab.services.video_compositor import FFmpegVideoCompositor
    from contentlab.services.youtube_source import (
        YouTubeChannelProvider,
        YouTubeCommentCollector,
        YouTubeVideoProvider,
    )
    from contentlab.settings import get_settings

    settings = get_settings()
    return Collaborators(
        videos=YouTubeVideoProvider(),
        channels=YouTubeChannelProvider(),
        comments=YouTubeCommentCollector(),
        sentiment=StubSentimentAnalyzer(),
        summarizer=StubSummarizer(),
        scripts=StubScriptGenerator(),
        image_prompts=StubImagePromptGenerator(),
        images=StubImageBatchGenerator(concurrency=settings.image_generation_concurrency),
        narration=StubNarrationSynthesizer(voice_id=settings.tts_voice_id),
        subtitles=SrtSubtitleGenerator(),
        subtitle_files=FileSubtitlePersister(),
        compositor=FFmpegVideoCompositor(settings.ffmpeg_path, settings.ffprobe_path),
    )


# Singleton; swap via set_collaborators() to use real providers
_collaborators: Collaborators | None = None


def get_collaborators() -> Collaborators:
    global _collaborators
    if _collaborators is None:
        _collaborators = build_default_collaborators()
    return _collaborators


def set_collaborators(collaborators: Collaborators | None) -> None:
    global _collaborators
    _collaborators = collaborators
