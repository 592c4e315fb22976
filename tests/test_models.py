"""Tests for the table models' timestamp columns."""
from datetime import timedelta

import pytest
from sqlalchemy import DateTime
from sqlmodel import select

from lms_reminders.models.attempt_log import AttemptLog, OUTCOME_SENT
from lms_reminders.models.reminder import Reminder
from lms_reminders.models.task import Task

from conftest import T0, add_log, add_reminder, add_student, add_task


@pytest.mark.parametrize(
    "model, column",
    [(Task, "due_date"), (Reminder, "created_at"), (AttemptLog, "sent_at")],
)
def test_timestamps_are_naive_datetime_columns(model, column):
    column_type = model.__table__.c[column].type

    assert isinstance(column_type, DateTime)
    assert column_type.timezone is False


def test_naive_timestamps_round_trip(session):
    task = add_task(session, T0 + timedelta(hours=2))
    reminder = add_reminder(session, task, add_student(session))
    add_log(session, reminder, OUTCOME_SENT, sent_at=T0)
    session.expire_all()

    stored_task = session.exec(select(Task)).one()
    stored_reminder = session.exec(select(Reminder)).one()
    stored_log = session.exec(select(AttemptLog)).one()

    assert stored_task.due_date == T0 + timedelta(hours=2)
    assert stored_reminder.created_at == T0 - timedelta(days=1)
    assert stored_log.sent_at == T0
    assert stored_task.due_date.tzinfo is None
    assert stored_log.sent_at.tzinfo is None
