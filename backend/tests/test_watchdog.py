"""
Watchdog: stuck runs/assets/projects are failed, fresh ones are left alone.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from contentlab.models import GeneratedAsset, GeneratedScript, PipelineRun, Project, ScoredVideo
from contentlab.services.watchdog_service import get_health, run_watchdog

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def seeded(database):
    """One project with a run and a video asset stuck for 3 hours, one fresh run."""
    old = NOW - timedelta(hours=3)
    async with database.session() as session:
        stuck = Project(name="stuck", format="long", status="processing")
        busy = Project(name="busy", format="short", status="processing")
        session.add_all([stuck, busy])
        await session.flush()

        session.add_all([
            PipelineRun(id="old", project_id=stuck.id, source_video_id="v1", format="long",
                        status="processing", stages={}, started_at=old),
            PipelineRun(id="fresh", project_id=busy.id, source_video_id="v2", format="short",
                        status="processing", stages={}, started_at=NOW - timedelta(minutes=5)),
        ])
        video = ScoredVideo(project_id=stuck.id, run_id="old", source_video_id="v1", title="t",
                            viral_score=1.0, viral_grade="C")
        session.add(video)
        await session.flush()
        script = GeneratedScript(video_id=video.id, full_script="text", content_format="long")
        session.add(script)
        await session.flush()
        session.add(GeneratedAsset(script_id=script.id, asset_type="video", generation_status="processing",
                                   created_at=old, updated_at=old))
        await session.commit()
        return {"stuck": stuck.id, "busy": busy.id}


class TestWatchdog:

    async def test_dry_run_changes_nothing(self, database, seeded):
        async with database.session() as session:
            report = await run_watchdog(session, dry_run=True, now=NOW)
        assert report["stuck_runs"] == 1
        assert report["stuck_assets"] == 1
        assert {i["action"] for i in report["items"]} == {"would_mark_failed"}

        async with database.session() as session:
            run = await session.get(PipelineRun, "old")
            assert run.status == "processing"

    async def test_marks_stuck_items_failed(self, database, seeded):
        async with database.session() as session:
            report = await run_watchdog(session, now=NOW)
        kinds = sorted(i["kind"] for i in report["items"])
        assert kinds == ["asset", "project", "run"]

        async with database.session() as session:
            old = await session.get(PipelineRun, "old")
            fresh = await session.get(PipelineRun, "fresh")
            asset = (await session.execute(select(GeneratedAsset))).scalar_one()
            stuck = await session.get(Project, seeded["stuck"])
            busy = await session.get(Project, seeded["busy"])

        assert old.status == "failed"
        assert old.error_message.startswith("watchdog:")
        assert fresh.status == "processing"
        assert asset.generation_status == "failed"
        assert stuck.status == "failed"
        assert busy.status == "processing"

    async def test_health_counts(self, database, seeded):
        async with database.session() as session:
            health = await get_health(session)
        assert health["projects"] == {"processing": 2}
        assert health["runs"] == {"processing": 2}
        assert health["assets"] == {"processing": 1}
