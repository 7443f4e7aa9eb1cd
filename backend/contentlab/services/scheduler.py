"""
Scheduler Service

Periodic maintenance jobs for the API process:
- Watchdog: fail runs/assets stuck in `processing`

Controlled by SCHEDULER_ENABLED / WATCHDOG_ENABLED (default: true).
"""
from __future__ import annotations

import logging
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from contentlab.db import Database
from contentlab.settings import get_settings

logger = logging.getLogger("scheduler")


class SchedulerService:
    """Owns one AsyncIOScheduler bound to the app's Database handle."""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self._database: Database | None = None
        self._running = False

    def configure(self, database: Database):
        self._database = database

    def start(self):
        """Start the scheduler (respects SCHEDULER_ENABLED env)."""
        settings = get_settings()
        if not settings.scheduler_enabled:
            logger.info("Scheduler DISABLED by SCHEDULER_ENABLED=false, skipping start")
            return
        if self._running:
            return
        if self._database is None:
            raise RuntimeError("SchedulerService.configure() must be called before start()")

        if settings.watchdog_enabled:
            self.scheduler.add_job(
                self._run_watchdog,
                IntervalTrigger(minutes=settings.watchdog_interval_minutes),
                id="watchdog",
                name="Fail stuck pipeline runs",
                replace_existing=True,
            )

        self.scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self):
        if not self._running:
            return
        self.scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        return self._running

    async def _run_watchdog(self) -> dict[str, Any] | None:
        from contentlab.services.watchdog_service import run_watchdog

        try:
            async with self._database.session() as session:
                report = await run_watchdog(session)
        except Exception as e:
            logger.error(f"[watchdog] Tick failed: {e}")
            return None
        if report["stuck_count"]:
            logger.warning(f"[watchdog] Marked {report['stuck_count']} stuck items as failed")
        return report


scheduler_service = SchedulerService()
