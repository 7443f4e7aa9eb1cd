"""
Celery tasks for pipeline runs.

Main task: pipeline.run_pipeline, runs PipelineCoordinator in a synchronous
Celery worker context using asyncio.run().
"""
from __future__ import annotations

import asyncio
import logging

from contentlab.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _run_pipeline_async(project_id: int, video_id: str, options: dict | None) -> dict:
    """Run the coordinator with a Database owned by this task."""
    from contentlab.db import Database
    from contentlab.services.pipeline_coordinator import (
        PipelineValidationError,
        RequiredStageError,
        RunOptions,
    )
    from contentlab.services.pipeline_service import build_coordinator
    from contentlab.settings import get_settings

    settings = get_settings()
    database = Database(settings.async_database_url)
    try:
        coordinator = build_coordinator(database, settings=settings)
        try:
            report = await coordinator.run(project_id, video_id, RunOptions.from_dict(options))
        except PipelineValidationError as e:
            logger.warning(f"[worker] Run rejected for project={project_id} video={video_id}: {e}")
            return {"success": False, "error": str(e)}
        except RequiredStageError as e:
            logger.warning(f"[worker] Run {e.report.run_id} failed at {e.stage}: {e.message}")
            return {"success": False, "error": e.message, "data": e.report.to_dict()}

        logger.info(f"[worker] Run {report.run_id} finished: {report.status}")
        return {"success": True, "data": report.to_dict()}
    finally:
        await database.dispose()


@celery_app.task(
    bind=True,
    name="pipeline.run_pipeline",
    autoretry_for=(ConnectionError, OSError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
    queue="pipeline",
)
def run_pipeline(self, project_id: int, video_id: str, options: dict | None = None) -> dict:
    """Celery task: run one source video through the pipeline.

    Failed runs are returned as reports, never retried; only infrastructure
    errors (broker, database connection) trigger a retry.
    """
    logger.info(
        f"[worker] Starting run project={project_id} video={video_id} "
        f"(celery_id={self.request.id}, attempt={self.request.retries + 1})"
    )
    try:
        return asyncio.run(_run_pipeline_async(project_id, video_id, options))
    except Exception as e:
        logger.error(f"[worker] Run project={project_id} video={video_id} error (attempt {self.request.retries + 1}): {e}")
        raise
