from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .models import ContentFormat


class ProjectBase(BaseModel):
    name: str
    keyword: str | None = None
    format: ContentFormat = ContentFormat.long

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value


class ProjectCreate(ProjectBase):
    pass


class ProjectRead(ProjectBase):
    id: int
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PipelineRequest(BaseModel):
    """Body of POST /api/pipeline and /api/pipeline/enqueue (camelCase)."""
    model_config = ConfigDict(populate_by_name=True)

    project_id: int | None = Field(default=None, validation_alias=AliasChoices("projectId", "project_id"))
    video_id: str | None = Field(
        default=None, validation_alias=AliasChoices("videoId", "youtubeVideoId", "video_id")
    )
    format: str | None = None
    target_audience: str | None = Field(default=None, validation_alias=AliasChoices("targetAudience", "target_audience"))
    transcript: str | None = None
    skip_image_generation: bool = Field(
        default=False, validation_alias=AliasChoices("skipImageGeneration", "skip_image_generation")
    )
    skip_video_generation: bool = Field(
        default=False, validation_alias=AliasChoices("skipVideoGeneration", "skip_video_generation")
    )

    @field_validator("video_id")
    @classmethod
    def normalize_video_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    def options(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "transcript": self.transcript,
            "target_audience": self.target_audience,
            "skip_image_generation": self.skip_image_generation,
            "skip_video_generation": self.skip_video_generation,
        }


class ScoredVideoRead(BaseModel):
    id: int
    project_id: int
    run_id: str | None = None
    source_video_id: str
    title: str
    channel_id: str | None = None
    channel_name: str | None = None
    subscriber_count: int
    view_count: int
    like_count: int | None = None
    comment_count: int | None = None
    duration_seconds: int | None = None
    published_at: datetime | None = None
    thumbnail_url: str | None = None
    viral_score: float
    viral_grade: str
    time_weight: float | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentAnalysisRead(BaseModel):
    id: int
    video_id: int
    total_comments_analyzed: int
    positive_count: int
    negative_count: int
    positive_ratio: float
    positive_summary: str | None = None
    negative_summary: str | None = None
    positive_keywords: list[str] | None = None
    negative_keywords: list[str] | None = None
    improvement_suggestions: str | None = None
    analysis_model: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class ContentSummaryRead(BaseModel):
    id: int
    video_id: int
    one_line_summary: str
    detailed_summary: str | None = None
    key_points: list[str] | None = None
    context_background: str | None = None
    summary_level: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class ScriptRead(BaseModel):
    id: int
    video_id: int
    script_purpose: str
    target_audience: str | None = None
    expected_duration_seconds: int | None = None
    script_structure: dict | None = None
    full_script: str
    content_format: str
    word_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class AssetRead(BaseModel):
    id: int
    script_id: int
    asset_type: str
    file_name: str | None = None
    file_path: str | None = None
    file_size_bytes: int | None = None
    generation_status: str
    error_message: str | None = None
    image_prompt: str | None = None
    image_resolution: str | None = None
    image_sequence: int | None = None
    voice_duration_seconds: float | None = None
    tts_provider: str | None = None
    tts_voice_id: str | None = None
    subtitle_format: str | None = None
    subtitle_line_count: int | None = None
    video_resolution: str | None = None
    video_duration_seconds: float | None = None
    video_codec: str | None = None
    video_fps: int | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PipelineRunRead(BaseModel):
    id: str
    project_id: int
    source_video_id: str
    format: str
    status: str
    stages: dict | None = None
    error_message: str | None = None
    failed_stage: str | None = None
    started_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class VideoArtifacts(BaseModel):
    video: ScoredVideoRead
    comment_analyses: list[CommentAnalysisRead]
    content_summaries: list[ContentSummaryRead]
    scripts: list[ScriptRead]
