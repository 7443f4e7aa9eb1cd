"""
SqlArtifactStore against SQLite (aiosqlite).
"""
from datetime import datetime, timezone

import pytest

from contentlab.domain import (
    ImageAsset,
    ScriptResult,
    ScriptSections,
    SentimentResult,
    SummaryResult,
    VideoAsset,
    VideoMetadata,
)
from contentlab.models import Project
from contentlab.services.artifact_store import SqlArtifactStore, asset_columns
from contentlab.services.virality import ViralScore


@pytest.fixture
async def store(database):
    return SqlArtifactStore(database)


@pytest.fixture
async def project_id(database):
    async with database.session() as session:
        project = Project(name="Bread", keyword="sourdough", format="long")
        session.add(project)
        await session.commit()
        return project.id


async def _scored_video(store, project_id, run_id="run1"):
    video = VideoMetadata(
        video_id="vid123",
        title="How sourdough works",
        channel_id="chan1",
        channel_title="Bread Lab",
        published_at=datetime(2026, 10, 16, tzinfo=timezone.utc),
        view_count=1_000_000,
    )
    return await store.create_scored_video(
        project_id, run_id, video, None, 10_000, ViralScore(score=150.0, grade="S", time_weight=1.5, age_days=2)
    )


class TestProjectsAndRuns:

    async def test_project_status(self, store, project_id):
        assert (await store.get_project(project_id)).status == "pending"
        await store.set_project_status(project_id, "processing")
        assert (await store.get_project(project_id)).status == "processing"
        assert await store.get_project(12345) is None

    async def test_run_lifecycle(self, store, project_id):
        await store.create_run("abc", project_id, "vid123", "short")
        run = await store.get_run("abc")
        assert run.status == "processing"
        assert run.stages == {}
        assert run.completed_at is None

        stages = {"videoInfo": {"status": "failed", "error": "boom", "durationMs": 3}}
        await store.finish_run("abc", "failed", stages, error_message="boom", failed_stage="videoInfo")
        run = await store.get_run("abc")
        assert run.status == "failed"
        assert run.stages == stages
        assert run.failed_stage == "videoInfo"
        assert run.completed_at is not None
        assert [r.id for r in await store.list_runs(project_id)] == ["abc"]


class TestArtifacts:

    async def test_scored_video_falls_back_to_channel_title(self, store, project_id):
        video_id = await _scored_video(store, project_id)
        [row] = await store.list_videos(project_id)
        assert row.id == video_id
        assert row.channel_name == "Bread Lab"
        assert row.viral_grade == "S"
        assert row.run_id == "run1"

    async def test_chain_of_artifacts(self, store, project_id):
        video_id = await _scored_video(store, project_id)
        sentiment = SentimentResult(positive_count=2, negative_count=1, positive_keywords=["love"], model="stub-v1")
        await store.create_comment_analysis(video_id, sentiment, ["love it", "meh", "bad"], 66.67)
        await store.create_content_summary(video_id, SummaryResult("One line.", ["a", "b"]), "transcript", "4-step")
        script = ScriptResult(ScriptSections(hook="Hook", body="Body"), "Hook Body", estimated_duration=30)
        script_id = await store.create_script(video_id, script, "long", audience="bakers")

        [analysis] = await store.list_comment_analyses(video_id)
        assert analysis.total_comments_analyzed == 3
        assert analysis.positive_keywords == ["love"]
        assert analysis.raw_comments == ["love it", "meh", "bad"]
        [summary] = await store.list_content_summaries(video_id)
        assert summary.key_points == ["a", "b"]
        [saved] = await store.list_scripts(video_id)
        assert saved.id == script_id
        assert saved.script_structure["hook"] == "Hook"
        assert saved.target_audience == "bakers"
        assert saved.word_count == len("Hook Body")

    async def test_reruns_append(self, store, project_id):
        first = await _scored_video(store, project_id, "run1")
        second = await _scored_video(store, project_id, "run2")
        assert first != second
        assert [v.run_id for v in await store.list_videos(project_id)] == ["run1", "run2"]

    async def test_asset_status_transition(self, store, project_id):
        video_id = await _scored_video(store, project_id)
        script_id = await store.create_script(video_id, ScriptResult(ScriptSections(), "text"), "long")
        asset_id = await store.create_asset(
            script_id, VideoAsset(generation_status="processing", resolution="1920x1080", codec="H.264", fps=30)
        )
        await store.update_asset_status(
            asset_id, "completed", file_name="final.mp4", file_path="/x/final.mp4", file_size=10, duration=12.5
        )
        [asset] = await store.list_assets(script_id)
        assert asset.generation_status == "completed"
        assert asset.file_path == "/x/final.mp4"
        assert asset.video_duration_seconds == 12.5
        assert asset.video_fps == 30

    async def test_assets_ordered_by_type_and_sequence(self, store, project_id):
        video_id = await _scored_video(store, project_id)
        script_id = await store.create_script(video_id, ScriptResult(ScriptSections(), "text"), "short")
        for seq in (2, 0, 1):
            await store.create_asset(script_id, ImageAsset(generation_status="completed", prompt=f"p{seq}", sequence=seq))
        assert [a.image_sequence for a in await store.list_assets(script_id)] == [0, 1, 2]


class TestAssetColumns:

    def test_image_columns(self):
        cols = asset_columns(ImageAsset(generation_status="failed", error_message="nsfw", prompt="p", sequence=3))
        assert cols["asset_type"] == "image"
        assert cols["image_sequence"] == 3
        assert cols["error_message"] == "nsfw"

    def test_base_record_rejected(self):
        from contentlab.domain import AssetRecord

        with pytest.raises(ValueError):
            asset_columns(AssetRecord(generation_status="completed"))
