"""
Metrics Collection for the reminder engine.

In-process counters for cycles, dispatch outcomes and cleanup deletions.
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator
import threading

from lms_reminders.core.clock import utcnow


class MetricsCollector:
    """Collects and manages metrics for the reminder engine."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        # Initialize counters
        self.metrics["cycles_run_total"] = 0
        self.metrics["cycles_skipped_total"] = 0
        self.metrics["reminders_sent_total"] = 0
        self.metrics["reminders_failed_total"] = 0
        self.metrics["reminders_skipped_total"] = 0
        self.metrics["reminders_deleted_total"] = 0
        self.metrics["attempt_logs_deleted_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": utcnow().isoformat()
            }

    def reminder_sent(self):
        self.increment_counter("reminders_sent_total")

    def reminder_failed(self):
        self.increment_counter("reminders_failed_total")

    def reminder_skipped(self):
        self.increment_counter("reminders_skipped_total")

    def cycle_run(self):
        self.increment_counter("cycles_run_total")

    def cycle_skipped(self):
        self.increment_counter("cycles_skipped_total")

    def rows_deleted(self, reminders: int, attempt_logs: int):
        """Record cleanup deletions."""
        self.increment_counter("reminders_deleted_total", reminders)
        self.increment_counter("attempt_logs_deleted_total", attempt_logs)

    @contextmanager
    def time_operation(self, metric_name: str) -> Iterator[None]:
        """Context manager accumulating the wall time of the enclosed block."""
        start_time = time.monotonic()
        try:
            yield
        finally:
            self.record_timer(metric_name, time.monotonic() - start_time)


# Global metrics instance
metrics_collector = MetricsCollector()
