"""Tests for the dispatch coordinator."""
from datetime import timedelta

import pytest
from sqlmodel import select

from lms_reminders.core.errors import QueryFailed
from lms_reminders.models.attempt_log import AttemptLog, OUTCOME_FAILED, OUTCOME_SENT
from lms_reminders.models.reminder import CHANNEL_WHATSAPP, Reminder
from lms_reminders.services.dispatch_coordinator import (
    DispatchCoordinator,
    SKIP_FREQUENCY_EXHAUSTED,
    SKIP_RECENTLY_SENT,
)
from lms_reminders.services.reminder_store import ReminderStore

from conftest import T0, add_log, add_reminder, add_student, add_task

TICK = timedelta(minutes=1)


def _candidate(session, **reminder_kwargs):
    student = add_student(session)
    task = add_task(session, T0 + timedelta(hours=2))
    add_reminder(session, task, student, lead_hours=2, **reminder_kwargs)
    [candidate] = ReminderStore(session).find_candidate_reminders(T0, TICK)
    return candidate


def _reminder(session, reminder_id):
    return session.get(Reminder, reminder_id)


def _logs(session):
    session.expire_all()
    return session.exec(select(AttemptLog).order_by(AttemptLog.id)).all()


@pytest.fixture
def coordinator(session, channels, metrics):
    return DispatchCoordinator(ReminderStore(session), channels, recency_window=timedelta(hours=1), metrics=metrics)


class TestDispatch:
    def test_successful_send_is_logged_as_sent(self, session, coordinator, email_channel, metrics):
        candidate = _candidate(session)

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.fired is True
        assert outcome.outcome == OUTCOME_SENT
        [(destination, subject, body)] = email_channel.calls
        assert destination == "ayu@example.com"
        assert subject == "📝 Reminder: Essay 1 - Due in 2 hours"
        assert "Ayu" in body
        [log] = _logs(session)
        assert (log.status, log.sent_at, log.channel) == (OUTCOME_SENT, T0, "email")
        assert metrics.get_metrics()["counters"]["reminders_sent_total"] == 1

    def test_routes_to_the_reminder_channel(self, session, coordinator, email_channel, whatsapp_channel):
        candidate = _candidate(session, channel=CHANNEL_WHATSAPP, destination="+6281234567890")

        coordinator.dispatch(candidate, T0)

        assert email_channel.calls == []
        [(destination, _, body)] = whatsapp_channel.calls
        assert destination == "+6281234567890"
        assert body.startswith("🔔 *Task Reminder*")

    def test_failed_send_is_logged_as_failed(self, session, coordinator, email_channel, metrics):
        email_channel.result = False
        candidate = _candidate(session, frequency=3)

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.fired is False
        assert outcome.outcome == OUTCOME_FAILED
        assert [log.status for log in _logs(session)] == [OUTCOME_FAILED]
        assert metrics.get_metrics()["counters"]["reminders_failed_total"] == 1

    def test_raising_channel_counts_as_failed(self, session, coordinator, email_channel):
        email_channel.error = RuntimeError("boom")
        candidate = _candidate(session)

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.outcome == OUTCOME_FAILED
        assert [log.status for log in _logs(session)] == [OUTCOME_FAILED]

    def test_missing_channel_counts_as_failed(self, session, metrics):
        candidate = _candidate(session)
        coordinator = DispatchCoordinator(ReminderStore(session), {}, metrics=metrics)

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.outcome == OUTCOME_FAILED
        assert [log.status for log in _logs(session)] == [OUTCOME_FAILED]


class TestGuards:
    def test_recent_send_skips(self, session, coordinator, email_channel):
        candidate = _candidate(session, frequency=3)
        add_log(session, _reminder(session, candidate.reminder_id), OUTCOME_SENT, T0 - timedelta(minutes=59))

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.fired is False
        assert outcome.skipped_reason == SKIP_RECENTLY_SENT
        assert email_channel.calls == []
        assert len(_logs(session)) == 1

    def test_send_older_than_recency_window_does_not_skip(self, session, coordinator, email_channel):
        candidate = _candidate(session, frequency=3)
        add_log(session, _reminder(session, candidate.reminder_id), OUTCOME_SENT, T0 - timedelta(hours=1))

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.fired is True
        assert len(email_channel.calls) == 1

    def test_recent_failure_does_not_skip(self, session, coordinator, email_channel):
        candidate = _candidate(session, frequency=3)
        add_log(session, _reminder(session, candidate.reminder_id), OUTCOME_FAILED, T0 - timedelta(minutes=1))

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.fired is True

    def test_exhausted_frequency_skips(self, session, coordinator, email_channel, metrics):
        candidate = _candidate(session, frequency=2)
        reminder = _reminder(session, candidate.reminder_id)
        add_log(session, reminder, OUTCOME_SENT, T0 - timedelta(hours=5))
        add_log(session, reminder, OUTCOME_SENT, T0 - timedelta(hours=3))

        outcome = coordinator.dispatch(candidate, T0)

        assert outcome.skipped_reason == SKIP_FREQUENCY_EXHAUSTED
        assert email_channel.calls == []
        assert metrics.get_metrics()["counters"]["reminders_skipped_total"] == 1

    def test_guard_query_failure_propagates(self, session, channels, email_channel):
        candidate = _candidate(session)

        class BrokenStore(ReminderStore):
            def count_recent_sent(self, reminder_id, since):
                raise QueryFailed("count_recent_sent", RuntimeError("timeout"))

        with pytest.raises(QueryFailed):
            DispatchCoordinator(BrokenStore(session), channels).dispatch(candidate, T0)
        assert email_channel.calls == []