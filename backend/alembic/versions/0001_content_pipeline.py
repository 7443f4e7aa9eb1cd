"""content pipeline tables

Revision ID: 0001_content_pipeline
Revises:
Create Date: 2026-10-18 12:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_content_pipeline"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = False) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                onupdate=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("keyword", sa.Text(), nullable=True),
        sa.Column("format", sa.String(length=16), nullable=False, server_default="long"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        *_timestamps(updated=True),
    )

    op.create_table(
        "scored_videos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("run_id", sa.String(length=32), nullable=True),
        sa.Column("source_video_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("channel_id", sa.String(length=64), nullable=True),
        sa.Column("channel_name", sa.Text(), nullable=True),
        sa.Column("subscriber_count", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("view_count", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("like_count", sa.BigInteger(), nullable=True),
        sa.Column("comment_count", sa.BigInteger(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("viral_score", sa.Float(), nullable=False),
        sa.Column("viral_grade", sa.String(length=1), nullable=False),
        sa.Column("time_weight", sa.Float(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_scored_videos_project_id", "scored_videos", ["project_id"])
    op.create_index("ix_scored_videos_run_id", "scored_videos", ["run_id"])
    op.create_index("ix_scored_videos_source_video_id", "scored_videos", ["source_video_id"])

    op.create_table(
        "comment_analyses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("video_id", sa.Integer(), sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("total_comments_analyzed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("positive_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("negative_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("positive_ratio", sa.Float(), nullable=False, server_default="0"),
        sa.Column("positive_summary", sa.Text(), nullable=True),
        sa.Column("negative_summary", sa.Text(), nullable=True),
        sa.Column("positive_keywords", sa.JSON(), nullable=True),
        sa.Column("negative_keywords", sa.JSON(), nullable=True),
        sa.Column("improvement_suggestions", sa.Text(), nullable=True),
        sa.Column("raw_comments", sa.JSON(), nullable=True),
        sa.Column("analysis_model", sa.String(length=128), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_comment_analyses_video_id", "comment_analyses", ["video_id"])

    op.create_table(
        "content_summaries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("video_id", sa.Integer(), sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("original_transcript", sa.Text(), nullable=True),
        sa.Column("one_line_summary", sa.Text(), nullable=False),
        sa.Column("detailed_summary", sa.Text(), nullable=True),
        sa.Column("key_points", sa.JSON(), nullable=True),
        sa.Column("context_background", sa.Text(), nullable=True),
        sa.Column("summary_level", sa.String(length=16), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_content_summaries_video_id", "content_summaries", ["video_id"])

    op.create_table(
        "generated_scripts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("video_id", sa.Integer(), sa.ForeignKey("scored_videos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("script_purpose", sa.String(length=32), nullable=False, server_default="improvement"),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("expected_duration_seconds", sa.Integer(), nullable=True),
        sa.Column("script_structure", sa.JSON(), nullable=True),
        sa.Column("full_script", sa.Text(), nullable=False),
        sa.Column("content_format", sa.String(length=16), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_generated_scripts_video_id", "generated_scripts", ["video_id"])

    op.create_table(
        "generated_assets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("script_id", sa.Integer(), sa.ForeignKey("generated_scripts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("asset_type", sa.String(length=16), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=True),
        sa.Column("file_path", sa.Text(), nullable=True),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("generation_status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("image_prompt", sa.Text(), nullable=True),
        sa.Column("image_resolution", sa.String(length=16), nullable=True),
        sa.Column("image_sequence", sa.Integer(), nullable=True),
        sa.Column("voice_duration_seconds", sa.Float(), nullable=True),
        sa.Column("tts_provider", sa.String(length=64), nullable=True),
        sa.Column("tts_voice_id", sa.String(length=128), nullable=True),
        sa.Column("subtitle_format", sa.String(length=8), nullable=True),
        sa.Column("subtitle_line_count", sa.Integer(), nullable=True),
        sa.Column("video_resolution", sa.String(length=16), nullable=True),
        sa.Column("video_duration_seconds", sa.Float(), nullable=True),
        sa.Column("video_codec", sa.String(length=32), nullable=True),
        sa.Column("video_fps", sa.Integer(), nullable=True),
        *_timestamps(updated=True),
    )
    op.create_index("ix_generated_assets_script_id", "generated_assets", ["script_id"])

    op.create_table(
        "pipeline_runs",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source_video_id", sa.String(length=64), nullable=False),
        sa.Column("format", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="processing"),
        sa.Column("stages", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("failed_stage", sa.String(length=64), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_pipeline_runs_project_id", "pipeline_runs", ["project_id"])


def downgrade() -> None:
    op.drop_index("ix_pipeline_runs_project_id", table_name="pipeline_runs")
    op.drop_table("pipeline_runs")
    op.drop_index("ix_generated_assets_script_id", table_name="generated_assets")
    op.drop_table("generated_assets")
    op.drop_index("ix_generated_scripts_video_id", table_name="generated_scripts")
    op.drop_table("generated_scripts")
    op.drop_index("ix_content_summaries_video_id", table_name="content_summaries")
    op.drop_table("content_summaries")
    op.drop_index("ix_comment_analyses_video_id", table_name="comment_analyses")
    op.drop_table("comment_analyses")
    op.drop_index("ix_scored_videos_source_video_id", table_name="scored_videos")
    op.drop_index("ix_scored_videos_run_id", table_name="scored_videos")
    op.drop_index("ix_scored_videos_project_id", table_name="scored_videos")
    op.drop_table("scored_videos")
    op.drop_table("projects")
