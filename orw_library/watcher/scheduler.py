"""Recurring schedule for catalog checks.

Uses APScheduler's AsyncIOScheduler with a single interval job. The job
fires once immediately at start and then every interval; APScheduler's
``max_instances=1`` and the watcher's own lock both keep polls from
overlapping.
"""

import logging
from datetime import UTC
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .watcher import CatalogWatcher

logger = logging.getLogger(__name__)

JOB_ID = "catalog-check"


class WatcherScheduler:
    """Triggers ``CatalogWatcher.perform_check`` on a fixed interval."""

    def __init__(self, watcher: CatalogWatcher, interval_seconds: int) -> None:
        """Initialize scheduler.

        Args:
            watcher: Watcher whose poll cycle is scheduled
            interval_seconds: Seconds between polls
        """
        self.watcher = watcher
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._running = False

    async def start(self) -> None:
        """Start the scheduler. The first check runs right away.

        Idempotent - safe to call multiple times.
        """
        if self._running:
            logger.warning("Scheduler already running")
            return

        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone="UTC")
        self.scheduler.add_job(
            func=self.watcher.perform_check,
            trigger=trigger,
            id=JOB_ID,
            name="Catalog check",
            next_run_time=datetime.now(UTC),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Catalog checks scheduled every {self.interval_seconds}s")

    async def stop(self) -> None:
        """Stop the scheduler, letting a running check finish."""
        if not self._running:
            logger.warning("Scheduler not running")
            return

        self.scheduler.shutdown(wait=True)
        self._running = False
        logger.info("Catalog check scheduler stopped")

    def next_run_time(self) -> datetime | None:
        """When the next check is due, if scheduled."""
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
