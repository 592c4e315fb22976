"""
Obsolescence Cleaner.

Removes reminders that can never again produce a useful notification, then
sweeps attempt logs left without a reminder. Steps are best-effort: a failed
step is logged and the remaining steps still run.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Tuple
import logging

from lms_reminders.core.errors import QueryFailed
from lms_reminders.services.reminder_store import (
    ReminderStore,
    budget_exhausted,
    task_overdue,
    task_submitted,
)

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    """Affected-row counts of one cleanup pass."""
    submitted_reminders: int = 0
    overdue_reminders: int = 0
    completed_reminders: int = 0
    orphaned_logs: int = 0
    failed_steps: List[str] = field(default_factory=list)

    @property
    def reminders_deleted(self) -> int:
        return self.submitted_reminders + self.overdue_reminders + self.completed_reminders

    def as_dict(self) -> dict:
        return {
            "submitted_reminders": self.submitted_reminders,
            "overdue_reminders": self.overdue_reminders,
            "completed_reminders": self.completed_reminders,
            "orphaned_logs": self.orphaned_logs,
            "failed_steps": list(self.failed_steps),
        }


class ObsolescenceCleaner:
    """Runs the four cleanup deletions in order."""

    def __init__(self, store: ReminderStore, overdue_grace: timedelta = timedelta(hours=24)):
        self.store = store
        self.overdue_grace = overdue_grace

    def sweep(self, now: datetime) -> CleanupReport:
        """
        Delete obsolete reminders and orphaned attempt logs.

        Args:
            now: Current tick time (naive UTC)

        Returns:
            CleanupReport with per-step affected-row counts
        """
        report = CleanupReport()
        steps: List[Tuple[str, str, Callable[[], int]]] = [
            ("submitted_reminders", "reminders for submitted tasks",
             lambda: self.store.delete_reminders_where(task_submitted())),
            ("overdue_reminders", f"reminders for tasks overdue by more than {self.overdue_grace // timedelta(hours=1)} hours",
             lambda: self.store.delete_reminders_where(task_overdue(now - self.overdue_grace))),
            ("completed_reminders", "reminders that completed all notification cycles",
             lambda: self.store.delete_reminders_where(budget_exhausted())),
            ("orphaned_logs", "orphaned attempt logs",
             self.store.delete_orphaned_logs),
        ]

        for attr, description, step in steps:
            try:
                count = step()
            except QueryFailed as e:
                logger.error(f"Cleanup step {attr} failed, continuing: {e}")
                report.failed_steps.append(attr)
                continue
            setattr(report, attr, count)
            logger.info(f"Deleted {count} {description}")

        return report
