"""Recurring scheduling of the uptime check cycle."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .check_cycle import CheckCycle, CycleReport


logger = structlog.get_logger(__name__)

CHECK_JOB_ID = "uptime_check"


class MonitorScheduler:
    """Runs the check cycle now and then every ``interval_minutes`` using APScheduler."""

    def __init__(self, cycle: CheckCycle, interval_minutes: int):
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")
        self.cycle = cycle
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self.running = False

    def start(self):
        """Start ticking. The first cycle fires immediately.

        Must be called from inside a running event loop.
        """
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.add_job(
            func=self.cycle.run,
            trigger=IntervalTrigger(minutes=self.interval_minutes, timezone=timezone.utc),
            id=CHECK_JOB_ID,
            name="Uptime check cycle",
            next_run_time=datetime.now(timezone.utc),
            # Overruns reach the CycleGuard, which logs and drops the extra tick.
            max_instances=2,
            coalesce=True,
            misfire_grace_time=30,
            replace_existing=True,
        )
        self.scheduler.start()
        self.running = True
        logger.info(
            "Monitor scheduler started",
            job_id=CHECK_JOB_ID,
            interval_minutes=self.interval_minutes,
        )

    def stop(self):
        """Stop scheduling further cycles. In-flight work is abandoned."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Monitor scheduler stopped")

    async def run_once(self) -> Optional[CycleReport]:
        """Run a cycle right now, outside the schedule."""
        return await self.cycle.run()

    def get_status(self) -> Dict[str, Any]:
        job = self.scheduler.get_job(CHECK_JOB_ID) if self.running else None
        next_run = job.next_run_time if job is not None else None
        return {
            "running": self.running,
            "interval_minutes": self.interval_minutes,
            "next_run": next_run.isoformat() if next_run else None,
            "cycle_in_progress": self.cycle.guard.run_in_progress,
        }
