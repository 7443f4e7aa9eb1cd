from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship as sa_relationship

from .db import Base


def relationship(*args, **kwargs):
    """Wrap SQLAlchemy relationship to forbid lazy loading by default."""
    kwargs.setdefault("lazy", "raise")
    return sa_relationship(*args, **kwargs)


class ContentFormat(str, Enum):
    short = "short"
    long = "long"


class ProjectStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class ViralGrade(str, Enum):
    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class AssetType(str, Enum):
    image = "image"
    voice = "voice"
    subtitle = "subtitle"
    video = "video"


class GenerationStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    keyword: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    format: Mapped[str] = mapped_column(sa.String(16), nullable=False, server_default=ContentFormat.long.value)
    status: Mapped[str] = mapped_column(sa.String(32), nullable=False, server_default=ProjectStatus.pending.value)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False
    )

    videos: Mapped[list["ScoredVideo"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    runs: Mapped[list["PipelineRun"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )


class ScoredVideo(Base):
    """Source video snapshot taken at stage 1 of a run. Never updated."""
    __tablename__ = "scored_videos"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    run_id: Mapped[str | None] = mapped_column(sa.String(32), nullable=True, index=True)
    source_video_id: Mapped[str] = mapped_column(sa.String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    channel_id: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
    channel_name: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    subscriber_count: Mapped[int] = mapped_column(sa.BigInteger(), nullable=False, server_default="0")
    view_count: Mapped[int] = mapped_column(sa.BigInteger(), nullable=False, server_default="0")
    like_count: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    comment_count: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    viral_score: Mapped[float] = mapped_column(sa.Float(), nullable=False)
    viral_grade: Mapped[str] = mapped_column(sa.String(1), nullable=False)
    time_weight: Mapped[float | None] = mapped_column(sa.Float(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    project: Mapped["Project"] = relationship(back_populates="videos")


class CommentAnalysis(Base):
    __tablename__ = "comment_analyses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False, index=True)
    total_comments_analyzed: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    positive_count: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    negative_count: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    positive_ratio: Mapped[float] = mapped_column(sa.Float(), nullable=False, server_default="0")
    positive_summary: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    negative_summary: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    positive_keywords: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    negative_keywords: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    improvement_suggestions: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    raw_comments: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    analysis_model: Mapped[str | None] = mapped_column(sa.String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


class ContentSummary(Base):
    __tablename__ = "content_summaries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False, index=True)
    original_transcript: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    one_line_summary: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    detailed_summary: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    key_points: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    context_background: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    summary_level: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


class GeneratedScript(Base):
    __tablename__ = "generated_scripts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False, index=True)
    script_purpose: Mapped[str] = mapped_column(sa.String(32), nullable=False, server_default="improvement")
    target_audience: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    expected_duration_seconds: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    script_structure: Mapped[dict | None] = mapped_column(sa.JSON(), nullable=True)
    full_script: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    content_format: Mapped[str] = mapped_column(sa.String(16), nullable=False)
    word_count: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    assets: Mapped[list["GeneratedAsset"]] = relationship(
        back_populates="script", cascade="all, delete-orphan", passive_deletes=True
    )


class GeneratedAsset(Base):
    """Image, voice, subtitle or video file produced for a script.

    Only ``generation_status`` (and the completion facts that go with it)
    changes after insert.
    """
    __tablename__ = "generated_assets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    script_id: Mapped[int] = mapped_column(sa.ForeignKey("generated_scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_type: Mapped[str] = mapped_column(sa.String(16), nullable=False)
    file_name: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    file_path: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    file_size_bytes: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    generation_status: Mapped[str] = mapped_column(sa.String(16), nullable=False, server_default=GenerationStatus.pending.value)
    error_message: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)

    # image
    image_prompt: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    image_resolution: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    image_sequence: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    # voice
    voice_duration_seconds: Mapped[float | None] = mapped_column(sa.Float(), nullable=True)
    tts_provider: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
    tts_voice_id: Mapped[str | None] = mapped_column(sa.String(128), nullable=True)
    # subtitle
    subtitle_format: Mapped[str | None] = mapped_column(sa.String(8), nullable=True)
    subtitle_line_count: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    # video
    video_resolution: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    video_duration_seconds: Mapped[float | None] = mapped_column(sa.Float(), nullable=True)
    video_codec: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    video_fps: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False
    )

    script: Mapped["GeneratedScript"] = relationship(back_populates="assets")


class PipelineRun(Base):
    """Persisted run report: one row per coordinator invocation."""
    __tablename__ = "pipeline_runs"

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    project_id: Mapped[int] = mapped_column(sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    source_video_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    format: Mapped[str] = mapped_column(sa.String(16), nullable=False)
    status: Mapped[str] = mapped_column(sa.String(16), nullable=False, server_default="processing")
    stages: Mapped[dict | None] = mapped_column(sa.JSON(), nullable=True)
    error_message: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    failed_stage: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
    started_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    project: Mapped["Project"] = relationship(back_populates="runs")
