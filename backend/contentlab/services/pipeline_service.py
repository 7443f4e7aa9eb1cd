"""Builds a PipelineCoordinator for the API process or a Celery worker."""
from __future__ import annotations

from contentlab.db import Database
from contentlab.services.artifact_store import SqlArtifactStore
from contentlab.services.collaborators import Collaborators, get_collaborators
from contentlab.services.pipeline_coordinator import PipelineCoordinator
from contentlab.settings import Settings, get_settings


def build_coordinator(
    database: Database,
    *,
    settings: Settings | None = None,
    collaborators: Collaborators | None = None,
) -> PipelineCoordinator:
    settings = settings or get_settings()
    run_lock = None
    if settings.serialize_project_runs:
        from contentlab.services.redis_semaphore import project_run_lock

        run_lock = project_run_lock

    return PipelineCoordinator(
        SqlArtifactStore(database),
        collaborators or get_collaborators(),
        settings=settings,
        run_lock=run_lock,
    )
