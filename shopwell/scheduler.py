"""Scheduled jobs for shopping trip reminders and data checks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from .notifications import NotificationCenter, reminder_trigger_time
from .models import Schedule
from .store import AppStore

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Registers reminder jobs for scheduled shopping trips.

    Uses APScheduler's asyncio scheduler: one date-triggered job per
    upcoming reminder plus a cron job that reports orphan price records.
    """

    def __init__(
        self,
        config,
        store: AppStore,
        center: NotificationCenter | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize scheduler with a ShopWellConfig.

        Args:
            config: ShopWellConfig instance.
            store: Store whose schedules are watched.
            center: Where reminders are delivered.
            clock: Source of the current time.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.jobstores.base import JobLookupError
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
            from apscheduler.triggers.date import DateTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'shopwell[scheduler]'"
            )

        self._config = config
        self._store = store
        self._center = center or NotificationCenter()
        self._clock = clock
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._DateTrigger = DateTrigger
        self._JobLookupError = JobLookupError
        self._running = False

    def setup_jobs(self) -> None:
        """Register reminder jobs for all schedules and the orphan check."""
        count = 0
        for schedule in self._store.snapshot().schedules:
            if self.schedule_reminder(schedule):
                count += 1
        logger.info("Registered %d reminder job(s)", count)

        expr = self._config.scheduler.orphan_check_schedule
        self._scheduler.add_job(
            self._job_check_orphans,
            trigger=self._parse_cron(expr),
            id="check_orphans",
            name="Orphan price record check",
            replace_existing=True,
        )
        logger.info("Orphan check job registered: %s", expr)

    def schedule_reminder(self, schedule: Schedule) -> bool:
        """Register (or replace) the reminder job for one schedule.

        Returns:
            False if the schedule is completed, has no reminder, or its
            reminder time has already passed.
        """
        job_id = f"schedule-{schedule.id}"
        self.cancel(schedule.id)
        if schedule.is_completed:
            return False
        run_at = reminder_trigger_time(schedule)
        if run_at is None or run_at <= self._clock():
            return False

        self._scheduler.add_job(
            self._job_remind,
            trigger=self._DateTrigger(run_date=run_at),
            args=[schedule.id],
            id=job_id,
            name=f"Reminder: {schedule.title}",
            replace_existing=True,
        )
        logger.debug("Reminder for %s at %s", schedule.id, run_at)
        return True

    def cancel(self, schedule_id: str) -> None:
        try:
            self._scheduler.remove_job(f"schedule-{schedule_id}")
        except self._JobLookupError:
            pass

    def start(self) -> None:
        """Start the scheduler."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            # Jobs added before start() have no next_run_time yet
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def _job_remind(self, schedule_id: str) -> None:
        """Deliver the reminder for a schedule if it still exists."""
        try:
            state = self._store.snapshot()
            schedule = next((s for s in state.schedules if s.id == schedule_id), None)
            if schedule is None or schedule.is_completed:
                logger.info("Skipping reminder for removed schedule %s", schedule_id)
                return
            shop = next((s for s in state.shops if s.id == schedule.shop_id), None)
            self._center.send_reminder(schedule, shop.name if shop else None)
        except Exception:
            logger.exception("Reminder job failed for schedule %s", schedule_id)

    async def _job_check_orphans(self) -> None:
        """Log price records that point at deleted products or shops."""
        try:
            orphans = self._store.orphan_records()
            if orphans:
                logger.warning(
                    "%d orphan price record(s): %s",
                    len(orphans),
                    ", ".join(r.id for r in orphans),
                )
            else:
                logger.info("No orphan price records")
        except Exception:
            logger.exception("Orphan check failed")
