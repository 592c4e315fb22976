"""Shared fixtures: in-memory store, controllable clock, recording channels."""
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import pytest
from sqlmodel import Session

from lms_reminders.core.config import Settings
from lms_reminders.db.config import create_db_engine
from lms_reminders.db.init import init_db
from lms_reminders.models.attempt_log import AttemptLog
from lms_reminders.models.reminder import CHANNEL_EMAIL, CHANNEL_WHATSAPP, Reminder
from lms_reminders.models.student import Student
from lms_reminders.models.task import Task, TASK_PENDING
from lms_reminders.notifications.base_channel import ChannelBinding
from lms_reminders.notifications.message_builder import MessageBuilder
from lms_reminders.services.reminder_engine import ReminderEngine
from lms_reminders.utils.metrics import MetricsCollector

T0 = datetime(2026, 3, 2, 9, 0, 0)


class FakeClock:
    """Settable naive-UTC clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingChannel:
    """Channel double recording every send and returning a scripted result."""

    def __init__(self, name: str, result: bool = True, error: Optional[Exception] = None):
        self.name = name
        self.result = result
        self.error = error
        self.connected = True
        self.calls: List[Tuple[str, str, str]] = []

    def send(self, destination: str, subject: str, content: str) -> bool:
        self.calls.append((destination, subject, content))
        if self.error is not None:
            raise self.error
        return self.result

    def check_connection(self) -> bool:
        return self.connected


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return replace(
        Settings(),
        database_url="sqlite://",
        cron_secret="test-cron-secret",
        enable_scheduler=False,
    )


@pytest.fixture
def email_channel():
    return RecordingChannel(CHANNEL_EMAIL)


@pytest.fixture
def whatsapp_channel():
    return RecordingChannel(CHANNEL_WHATSAPP)


@pytest.fixture
def channels(email_channel, whatsapp_channel):
    builder = MessageBuilder("UTC")
    return {
        CHANNEL_EMAIL: ChannelBinding(channel=email_channel, render=builder.render_email),
        CHANNEL_WHATSAPP: ChannelBinding(channel=whatsapp_channel, render=builder.render_whatsapp),
    }


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def engine(db_engine, channels, settings, clock, metrics):
    return ReminderEngine(
        session_factory=lambda: Session(db_engine),
        channels=channels,
        settings=settings,
        clock=clock,
        metrics=metrics,
    )


def add_student(session: Session, name: str = "Ayu") -> Student:
    student = Student(name=name)
    session.add(student)
    session.commit()
    session.refresh(student)
    return student


def add_task(
    session: Session,
    due_date: datetime,
    status: str = TASK_PENDING,
    name: str = "Essay 1",
    course_name: str = "Academic Writing",
) -> Task:
    task = Task(name=name, course_name=course_name, due_date=due_date, status=status)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


def add_reminder(
    session: Session,
    task: Task,
    student: Student,
    lead_hours: int = 2,
    frequency: int = 1,
    channel: str = CHANNEL_EMAIL,
    destination: str = "ayu@example.com",
) -> Reminder:
    reminder = Reminder(
        student_id=student.id,
        task_id=task.id,
        task_name=task.name,
        lead_hours=lead_hours,
        frequency=frequency,
        channel=channel,
        destination=destination,
        created_at=T0 - timedelta(days=1),
    )
    session.add(reminder)
    session.commit()
    session.refresh(reminder)
    return reminder


def add_log(session: Session, reminder: Reminder, status: str, sent_at: datetime) -> AttemptLog:
    log = AttemptLog(
        reminder_id=reminder.id,
        channel=reminder.channel,
        destination=reminder.destination,
        status=status,
        sent_at=sent_at,
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    return log
