"""
Dispatch Coordinator.

For each candidate reminder: apply the recency and frequency guards, render
the urgency context for the reminder's channel, send, and log the attempt.
Only `sent` attempts count toward either guard; a `failed` attempt is logged
and leaves the reminder eligible for a later tick.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import logging

from lms_reminders.models.attempt_log import OUTCOME_FAILED, OUTCOME_SENT
from lms_reminders.notifications.base_channel import ChannelRegistry
from lms_reminders.notifications.message_builder import UrgencyContext
from lms_reminders.services.reminder_store import ReminderStore, ReminderWithTask
from lms_reminders.utils.metrics import MetricsCollector, metrics_collector

logger = logging.getLogger(__name__)

SKIP_RECENTLY_SENT = "recently_sent"
SKIP_FREQUENCY_EXHAUSTED = "frequency_exhausted"


@dataclass(frozen=True)
class DispatchOutcome:
    """What happened to one candidate."""
    reminder_id: int
    fired: bool
    outcome: Optional[str] = None  # sent, failed; None when skipped
    skipped_reason: Optional[str] = None


class DispatchCoordinator:
    """Decides whether each candidate fires, fires it, and records the attempt."""

    def __init__(
        self,
        store: ReminderStore,
        channels: ChannelRegistry,
        recency_window: timedelta = timedelta(hours=1),
        metrics: MetricsCollector = metrics_collector,
    ):
        self.store = store
        self.channels = channels
        self.recency_window = recency_window
        self.metrics = metrics

    def _deliver(self, candidate: ReminderWithTask, context: UrgencyContext) -> bool:
        binding = self.channels.get(candidate.channel)
        if binding is None:
            logger.error(
                f"No enabled '{candidate.channel}' channel for reminder {candidate.reminder_id}; "
                "recording a failed attempt"
            )
            return False

        message = binding.render(context)
        try:
            return bool(binding.channel.send(candidate.destination, message.subject, message.body))
        except Exception:
            # Channels report delivery problems as False; anything raised here is a channel bug
            logger.exception(f"Channel '{candidate.channel}' raised for reminder {candidate.reminder_id}")
            return False

    def dispatch(self, candidate: ReminderWithTask, now: datetime) -> DispatchOutcome:
        """
        Process one candidate.

        Args:
            candidate: Reminder joined with its task
            now: Current tick time (naive UTC)

        Returns:
            DispatchOutcome; `fired` is True only for a successful send

        Raises:
            QueryFailed: A guard query or the attempt log insert failed
        """
        reminder_id = candidate.reminder_id
        logger.info(
            f"Processing reminder {reminder_id}: task '{candidate.task_name}' "
            f"due {candidate.due_date.isoformat()} scheduled for {candidate.fire_at.isoformat()}"
        )

        recent = self.store.count_recent_sent(reminder_id, now - self.recency_window)
        if recent > 0:
            logger.info(f"Reminder {reminder_id} already sent within {self.recency_window}, skipping")
            self.metrics.reminder_skipped()
            return DispatchOutcome(reminder_id, fired=False, skipped_reason=SKIP_RECENTLY_SENT)

        total = self.store.count_total_sent(reminder_id)
        if total >= candidate.frequency:
            logger.info(
                f"Reminder {reminder_id} has reached frequency limit ({candidate.frequency}), "
                "will be cleaned up later"
            )
            self.metrics.reminder_skipped()
            return DispatchOutcome(reminder_id, fired=False, skipped_reason=SKIP_FREQUENCY_EXHAUSTED)

        context = UrgencyContext.build(
            due_date=candidate.due_date,
            now=now,
            student_name=candidate.student_name,
            task_name=candidate.task_name,
            course_name=candidate.course_name,
        )
        logger.info(
            f"Sending reminder {reminder_id} (attempt {total + 1}/{candidate.frequency}) - {context.urgency_text}"
        )

        sent = self._deliver(candidate, context)
        outcome = OUTCOME_SENT if sent else OUTCOME_FAILED
        self.store.insert_attempt_log(reminder_id, candidate.channel, candidate.destination, outcome, at=now)
        logger.info(f"Logged reminder attempt: {outcome.upper()} - {candidate.channel} to {candidate.destination}")

        if sent:
            self.metrics.reminder_sent()
        else:
            self.metrics.reminder_failed()
        return DispatchOutcome(reminder_id, fired=sent, outcome=outcome)
