"""
Reminder processing cycle.

One cycle = cleanup, candidate selection, then sequential dispatch. Both the
periodic job and manual triggers go through the same lock, so cycles never
overlap.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
import logging
import threading

from sqlmodel import Session

from lms_reminders.core.clock import utcnow
from lms_reminders.core.config import Settings
from lms_reminders.core.errors import QueryFailed, StoreUnavailable
from lms_reminders.notifications.base_channel import ChannelRegistry
from lms_reminders.services.dispatch_coordinator import DispatchCoordinator, DispatchOutcome
from lms_reminders.services.due_window_selector import DueWindowSelector
from lms_reminders.services.obsolescence_cleaner import CleanupReport, ObsolescenceCleaner
from lms_reminders.services.reminder_store import ReminderStore
from lms_reminders.utils.metrics import MetricsCollector, metrics_collector

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Summary of one processing cycle."""
    attempted: int = 0
    succeeded: int = 0
    started_at: datetime = field(default_factory=utcnow)
    cleanup: CleanupReport = field(default_factory=CleanupReport)
    outcomes: List[DispatchOutcome] = field(default_factory=list)
    errors: int = 0

    @property
    def message(self) -> str:
        if self.succeeded > 0:
            return f"Successfully processed {self.succeeded} out of {self.attempted} reminders"
        return f"No reminders sent at this time (checked {self.attempted} due reminders)"

    def as_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "errors": self.errors,
            "started_at": self.started_at.isoformat(),
            "cleanup": self.cleanup.as_dict(),
        }


class ReminderEngine:
    """Drives cleanup, selection and dispatch against a store session scoped to each cycle."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        channels: ChannelRegistry,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
        metrics: MetricsCollector = metrics_collector,
    ):
        self.session_factory = session_factory
        self.channels = channels
        self.settings = settings
        self.clock = clock
        self.metrics = metrics
        self.last_result: Optional[CycleResult] = None
        self._last_selected_at: Optional[datetime] = None
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def run_cycle(self) -> CycleResult:
        """
        Run one cycle, waiting for any cycle already in progress.

        Raises:
            StoreUnavailable: The store could not be reached; nothing was processed
        """
        with self._lock:
            with self.metrics.time_operation("cycle_seconds"):
                result = self._run_locked()
        self.last_result = result
        return result

    def trigger_once(self) -> CycleResult:
        """Manual entry point; shares the single-flight path with the periodic job."""
        logger.info("Manually triggering reminder processing...")
        return self.run_cycle()

    def _selection_window(self, now: datetime) -> timedelta:
        """One tick, stretched back to the previous selection when ticks ran late."""
        window = self.settings.tick_interval
        if self._last_selected_at is not None and now - self._last_selected_at > window:
            window = now - self._last_selected_at
            logger.info(f"Previous selection ran at {self._last_selected_at.isoformat()}, widening window to {window}")
        return window

    def _run_locked(self) -> CycleResult:
        now = self.clock()
        result = CycleResult(started_at=now)
        logger.info(f"Processing reminders at {now.isoformat()}")

        with self.session_factory() as session:
            store = ReminderStore(session, overdue_grace=self.settings.overdue_grace)
            try:
                store.ping()
            except StoreUnavailable:
                self.metrics.cycle_skipped()
                logger.error("Reminder store unavailable, skipping this cycle")
                raise

            result.cleanup = ObsolescenceCleaner(store, self.settings.overdue_grace).sweep(now)
            self.metrics.rows_deleted(result.cleanup.reminders_deleted, result.cleanup.orphaned_logs)

            try:
                candidates = DueWindowSelector(store, self._selection_window(now)).select(now)
            except QueryFailed as e:
                logger.error(f"Candidate selection failed, nothing dispatched this cycle: {e}")
                result.errors += 1
                candidates = []
            else:
                self._last_selected_at = now

            coordinator = DispatchCoordinator(
                store,
                self.channels,
                recency_window=self.settings.recency_window,
                metrics=self.metrics,
            )
            for candidate in candidates:
                result.attempted += 1
                try:
                    outcome = coordinator.dispatch(candidate, now)
                except QueryFailed as e:
                    logger.error(f"Error processing reminder {candidate.reminder_id}: {e}")
                    result.errors += 1
                    continue
                result.outcomes.append(outcome)
                if outcome.fired:
                    result.succeeded += 1

        self.metrics.cycle_run()
        logger.info(result.message)
        return result
