"""
Watchdog service: finds pipeline state left in `processing` by a crashed
or killed worker and marks it failed.

Stuck criteria (older than STUCK_PROCESSING_MINUTES):
- pipeline_runs.status == "processing" (by started_at)
- generated_assets.generation_status == "processing" (by updated_at)
- projects.status == "processing" with no live run left
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from contentlab.models import GeneratedAsset, PipelineRun, Project
from contentlab.settings import get_settings

logger = logging.getLogger(__name__)


def _age_minutes(now: datetime, then: datetime) -> int:
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    return round((now - then).total_seconds() / 60)


async def run_watchdog(
    session: AsyncSession, *, dry_run: bool = False, now: datetime | None = None,
) -> dict[str, Any]:
    """Mark stuck runs, assets and projects as failed. Returns a report dict."""
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=settings.stuck_processing_minutes)
    action = "would_mark_failed" if dry_run else "marked_failed"

    runs_q = await session.execute(
        select(PipelineRun).where(and_(
            PipelineRun.status == "processing",
            PipelineRun.started_at < cutoff,
        ))
    )
    stuck_runs = list(runs_q.scalars().all())

    assets_q = await session.execute(
        select(GeneratedAsset).where(and_(
            GeneratedAsset.generation_status == "processing",
            GeneratedAsset.updated_at < cutoff,
        ))
    )
    stuck_assets = list(assets_q.scalars().all())

    items: list[dict] = []
    stuck_project_ids: set[int] = set()

    for run in stuck_runs:
        age = _age_minutes(now, run.started_at)
        message = f"watchdog: stuck processing > {settings.stuck_processing_minutes}m (age={age}m)"
        items.append({"kind": "run", "id": run.id, "project_id": run.project_id, "age_minutes": age, "action": action})
        stuck_project_ids.add(run.project_id)
        if not dry_run:
            run.status = "failed"
            run.error_message = message
            run.completed_at = now

    for asset in stuck_assets:
        age = _age_minutes(now, asset.updated_at)
        message = f"watchdog: stuck processing > {settings.stuck_processing_minutes}m (age={age}m)"
        items.append({"kind": "asset", "id": asset.id, "script_id": asset.script_id, "age_minutes": age, "action": action})
        if not dry_run:
            asset.generation_status = "failed"
            asset.error_message = message

    if stuck_project_ids:
        live_q = await session.execute(
            select(PipelineRun.project_id).where(and_(
                PipelineRun.project_id.in_(stuck_project_ids),
                PipelineRun.status == "processing",
                PipelineRun.started_at >= cutoff,
            ))
        )
        live = {row[0] for row in live_q.all()}
        projects_q = await session.execute(
            select(Project).where(and_(
                Project.id.in_(stuck_project_ids - live),
                Project.status == "processing",
            ))
        )
        for project in projects_q.scalars().all():
            items.append({"kind": "project", "id": project.id, "action": action})
            if not dry_run:
                project.status = "failed"

    if not dry_run and items:
        await session.commit()

    logger.info(f"[watchdog] Found {len(items)} stuck items (dry_run={dry_run})")
    return {
        "stuck_count": len(items),
        "stuck_runs": len(stuck_runs),
        "stuck_assets": len(stuck_assets),
        "items": items,
        "dry_run": dry_run,
        "run_at": now.isoformat(),
        "settings": {"stuck_processing_minutes": settings.stuck_processing_minutes},
    }


async def get_health(session: AsyncSession) -> dict[str, Any]:
    """Counts by status plus scheduler/worker switches."""
    settings = get_settings()

    projects_q = await session.execute(select(Project.status, func.count(Project.id)).group_by(Project.status))
    runs_q = await session.execute(select(PipelineRun.status, func.count(PipelineRun.id)).group_by(PipelineRun.status))
    assets_q = await session.execute(
        select(GeneratedAsset.generation_status, func.count(GeneratedAsset.id)).group_by(GeneratedAsset.generation_status)
    )

    return {
        "projects": {row[0]: row[1] for row in projects_q.all()},
        "runs": {row[0]: row[1] for row in runs_q.all()},
        "assets": {row[0]: row[1] for row in assets_q.all()},
        "scheduler_enabled": settings.scheduler_enabled,
        "watchdog_enabled": settings.watchdog_enabled,
        "celery_enabled": settings.celery_enabled,
    }
