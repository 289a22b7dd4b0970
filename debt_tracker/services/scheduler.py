"""
LedgerScheduler - periodic notification jobs.

A single asyncio loop wakes every SCHEDULER_TICK_SECONDS and runs the jobs
whose time has come. Times are UTC wall-clock. A job fires at most once per
scheduled slot, and only within `grace` of that slot, so a restart late in
the day does not replay the morning's jobs.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, List, Optional

from loguru import logger

from debt_tracker.core.config import settings
from debt_tracker.models.base import utcnow
from debt_tracker.services.notification_service import NotificationService

SUNDAY = 6


@dataclass
class ScheduledJob:
    name: str
    hour: int
    minute: int
    action: Callable[[datetime], Awaitable[Any]]
    weekday: Optional[int] = None  # Monday == 0
    day: Optional[int] = None
    grace: timedelta = field(default_factory=lambda: timedelta(minutes=5))
    last_run: Optional[datetime] = None

    def slot(self, now: datetime) -> Optional[datetime]:
        """Today's run time, or None when the job does not run today."""
        if self.weekday is not None and now.weekday() != self.weekday:
            return None
        if self.day is not None and now.day != self.day:
            return None
        return now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)

    def is_due(self, now: datetime) -> bool:
        slot = self.slot(now)
        if slot is None or now < slot or now - slot > self.grace:
            return False
        return self.last_run is None or self.last_run < slot


def default_jobs(notifications: NotificationService) -> List[ScheduledJob]:
    return [
        ScheduledJob("weekly_reminders", 9, 0, notifications.send_weekly_reminders, weekday=SUNDAY),
        ScheduledJob("daily_revenue", 8, 0, notifications.send_daily_revenue),
        ScheduledJob("overdue_alerts", 9, 30, notifications.send_overdue_alerts),
        ScheduledJob("monthly_summary", 10, 0, notifications.send_monthly_summary, day=1),
    ]


class LedgerScheduler:
    """Runs scheduled jobs from an asyncio loop."""

    def __init__(
        self,
        jobs: List[ScheduledJob],
        tick_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.jobs = jobs
        self.tick_seconds = tick_seconds or settings.SCHEDULER_TICK_SECONDS
        self.clock = clock
        self.running = False
        logger.info(f"LedgerScheduler initialized with {len(jobs)} jobs")

    async def run_pending(self, now: Optional[datetime] = None) -> List[str]:
        """Run every due job once. Returns the names of the jobs that ran."""
        now = now or self.clock()
        ran = []
        for job in self.jobs:
            if not job.is_due(now):
                continue
            job.last_run = now
            try:
                await job.action(now)
                ran.append(job.name)
                logger.info(f"Scheduled job {job.name} completed")
            except Exception as e:
                logger.error(f"Scheduled job {job.name} failed: {e}")
        return ran

    async def start(self):
        """Loop until `stop()` is called."""
        self.running = True
        logger.info("LedgerScheduler started")

        while self.running:
            try:
                await self.run_pending()
            except Exception as e:
                logger.error(f"Error in scheduler loop: {e}")
            await asyncio.sleep(self.tick_seconds)

    def stop(self):
        self.running = False
        logger.info("LedgerScheduler stopped")
