from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from contentlab.db import Database, get_database
from contentlab.schemas import PipelineRequest, PipelineRunRead
from contentlab.services.artifact_store import SqlArtifactStore
from contentlab.services.pipeline_coordinator import (
    PipelineValidationError,
    ProjectNotFoundError,
    RequiredStageError,
    RunOptions,
)
from contentlab.services.pipeline_service import build_coordinator
from contentlab.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pipeline"])

DatabaseDep = Depends(get_database)


def _failure(status_code: int, error: str, data: dict | None = None) -> JSONResponse:
    body: dict = {"success": False, "error": error}
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


@router.post("/pipeline")
async def run_pipeline(payload: PipelineRequest, database: Database = DatabaseDep):
    """Run the whole pipeline synchronously and return the run report."""
    settings = get_settings()
    coordinator = build_coordinator(database, settings=settings)
    try:
        report = await coordinator.run(
            payload.project_id, payload.video_id, RunOptions.from_dict(payload.options())
        )
    except ProjectNotFoundError as e:
        return _failure(status.HTTP_404_NOT_FOUND, str(e))
    except PipelineValidationError as e:
        return _failure(status.HTTP_400_BAD_REQUEST, str(e))
    except RequiredStageError as e:
        error = e.message if settings.expose_stage_errors else f"{e.stage} failed"
        data = e.report.to_dict()
        if not settings.expose_stage_errors:
            data["error"] = error
            data["stages"] = {**data["stages"], e.stage: {**data["stages"][e.stage], "error": error}}
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, error, data)
    return {"success": True, "data": report.to_dict()}


@router.post("/pipeline/enqueue")
async def enqueue_pipeline(payload: PipelineRequest):
    """Hand the run to the Celery worker and return its task id."""
    if not get_settings().celery_enabled:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Celery is disabled")
    if not payload.project_id or not payload.video_id:
        return _failure(status.HTTP_400_BAD_REQUEST, "projectId and videoId are required")

    from contentlab.worker.tasks import run_pipeline as celery_run_pipeline

    result = celery_run_pipeline.apply_async(
        args=[payload.project_id, payload.video_id, payload.options()], queue="pipeline"
    )
    logger.info(f"[pipeline] Enqueued project={payload.project_id} video={payload.video_id} task={result.id}")
    return {"task_id": result.id}


@router.get("/pipeline/runs/{run_id}", response_model=PipelineRunRead)
async def get_run(run_id: str, database: Database = DatabaseDep):
    run = await SqlArtifactStore(database).get_run(run_id)
    if not run:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Run not found")
    return run
