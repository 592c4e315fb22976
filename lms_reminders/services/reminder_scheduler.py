"""Reminder Scheduler Service."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging
import time

from apscheduler.schedulers.background import BackgroundScheduler

from lms_reminders.core.errors import StoreUnavailable
from lms_reminders.services.reminder_engine import ReminderEngine

logger = logging.getLogger(__name__)

JOB_ID = "process_reminders"


class CycleScheduler:
    """
    Runs the reminder cycle periodically in a background thread.

    Each run schedules the next one when it finishes, `interval_seconds` after
    it started. A cycle that outlasts the interval pushes the next run back
    to its own end, so ticks are delayed and never dropped or run in parallel.
    """

    def __init__(self, engine: ReminderEngine, interval_seconds: int = 60):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the periodic job; a second call is a no-op."""
        if self.running:
            logger.info("Reminder scheduler already running, skipping initialization")
            return

        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._scheduler.start()
        self._schedule_next(delay=self.interval_seconds)
        logger.info(f"Reminder scheduler started: cycles every {self.interval_seconds} seconds")

    def stop(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=True)
        self._scheduler = None
        logger.info("Reminder scheduler stopped")

    def _schedule_next(self, delay: float) -> None:
        scheduler = self._scheduler
        if scheduler is None or not scheduler.running:
            return
        scheduler.add_job(
            self.tick,
            trigger="date",
            run_date=datetime.now(timezone.utc) + timedelta(seconds=delay),
            id=JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,  # a late run still runs
            max_instances=2,  # the run scheduling this one is still counted until it returns
        )

    def tick(self) -> None:
        """Scheduled job body."""
        started = time.monotonic()
        try:
            self.engine.run_cycle()
        except StoreUnavailable as e:
            logger.error(f"Skipping reminder cycle: {e}")
        finally:
            elapsed = time.monotonic() - started
            if elapsed > self.interval_seconds:
                logger.warning(
                    f"Reminder cycle took {elapsed:.1f}s, longer than the {self.interval_seconds}s interval; "
                    "next cycle starts now"
                )
            self._schedule_next(delay=max(0.0, self.interval_seconds - elapsed))

    def get_status(self) -> Dict[str, Any]:
        """Scheduler state for the status endpoint."""
        jobs = []
        next_run = None
        if self.running:
            jobs = [job.id for job in self._scheduler.get_jobs()]
            job = self._scheduler.get_job(JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()

        last = self.engine.last_result
        return {
            "running": self.running,
            "jobs": jobs,
            "interval_seconds": self.interval_seconds,
            "next_run": next_run,
            "cycle_in_progress": self.engine.busy,
            "last_cycle": last.as_dict() if last else None,
        }
