"""
Records exchanged between the pipeline coordinator, its collaborators and
the artifact store.

Lists and section maps stay typed here; only the store adapter turns them
into JSON columns.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class VideoMetadata:
    video_id: str
    title: str
    channel_id: str | None = None
    channel_title: str | None = None
    description: str | None = None
    published_at: datetime | None = None
    thumbnail_url: str | None = None
    duration_seconds: int | None = None
    view_count: int = 0
    like_count: int | None = None
    comment_count: int | None = None


@dataclass
class ChannelMetadata:
    channel_id: str
    title: str | None = None
    subscriber_count: int = 0
    view_count: int | None = None
    video_count: int | None = None


@dataclass
class SentimentResult:
    positive_count: int
    negative_count: int
    positive_summary: str = ""
    negative_summary: str = ""
    positive_keywords: list[str] = field(default_factory=list)
    negative_keywords: list[str] = field(default_factory=list)
    improvement_suggestions: str = ""
    model: str = "stub"


@dataclass
class SummaryResult:
    one_line_summary: str
    key_points: list[str] = field(default_factory=list)
    detailed_summary: str | None = None
    context: str | None = None


@dataclass
class ScriptSections:
    hook: str = ""
    intro: str = ""
    body: str = ""
    conclusion: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"hook": self.hook, "intro": self.intro, "body": self.body, "conclusion": self.conclusion}


@dataclass
class ScriptResult:
    sections: ScriptSections
    full_script: str
    estimated_duration: int | None = None


@dataclass
class ImageResult:
    index: int
    prompt: str
    file_path: str | None = None
    file_name: str | None = None
    file_size: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.file_path)


@dataclass
class NarrationResult:
    file_path: str
    file_size: int
    duration: float
    file_name: str | None = None
    provider: str = "stub"
    voice_id: str | None = None


@dataclass
class SubtitleResult:
    content: str
    line_count: int
    subtitle_format: str = "srt"


@dataclass
class SubtitleFile:
    file_path: str
    file_name: str
    file_size: int
    line_count: int
    subtitle_format: str = "srt"


@dataclass
class ComposedVideo:
    file_path: str
    file_name: str
    file_size: int
    duration: float


@dataclass
class AssetRecord:
    """Common columns of a generated asset; subclasses carry the typed fields."""
    asset_type = ""

    generation_status: str
    file_name: str | None = None
    file_path: str | None = None
    file_size: int | None = None
    error_message: str | None = None


@dataclass
class ImageAsset(AssetRecord):
    asset_type = "image"

    prompt: str | None = None
    resolution: str | None = None
    sequence: int | None = None


@dataclass
class VoiceAsset(AssetRecord):
    asset_type = "voice"

    duration: float | None = None
    provider: str | None = None
    voice_id: str | None = None


@dataclass
class SubtitleAsset(AssetRecord):
    asset_type = "subtitle"

    subtitle_format: str = "srt"
    line_count: int | None = None


@dataclass
class VideoAsset(AssetRecord):
    asset_type = "video"

    resolution: str | None = None
    duration: float | None = None
    codec: str | None = None
    fps: int | None = None
