"""Due-Window Selector: picks the reminders whose firing instant fell within the current tick."""
from datetime import datetime, timedelta
from typing import List
import logging

from lms_reminders.services.reminder_store import ReminderStore, ReminderWithTask

logger = logging.getLogger(__name__)


class DueWindowSelector:
    """
    Selects candidates for one tick.

    The window is (now - tick_interval, now], so an instant that fell between
    the previous tick and this one is still caught while future instants are
    not. Overlapping ticks may select the same reminder twice; the dispatch
    coordinator's recency guard is what keeps that from becoming a second send.
    """

    def __init__(self, store: ReminderStore, tick_interval: timedelta = timedelta(minutes=1)):
        self.store = store
        self.tick_interval = tick_interval

    def select(self, now: datetime) -> List[ReminderWithTask]:
        candidates = self.store.find_candidate_reminders(now, self.tick_interval)
        logger.info(f"Found {len(candidates)} reminders due for processing")
        return candidates
