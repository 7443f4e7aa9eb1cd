"""
Operations endpoints: watchdog and health.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from contentlab.db import get_session

router = APIRouter(prefix="/api/ops", tags=["ops"])

SessionDep = Depends(get_session)


@router.post("/watchdog")
async def run_watchdog_endpoint(
    dry_run: bool = Query(default=True),
    session: AsyncSession = SessionDep,
):
    """Run watchdog to find and mark stuck runs and assets."""
    from contentlab.services.watchdog_service import run_watchdog
    return await run_watchdog(session, dry_run=dry_run)


@router.get("/health")
async def health_endpoint(
    session: AsyncSession = SessionDep,
):
    """Counts by status plus scheduler status."""
    from contentlab.services.scheduler import scheduler_service
    from contentlab.services.watchdog_service import get_health
    health = await get_health(session)
    health["scheduler_running"] = scheduler_service.is_running()
    return health
