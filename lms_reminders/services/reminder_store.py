"""
Reminder Store Gateway.

The query surface the reminder engine needs against the relational store.
Every operation wraps driver errors in QueryFailed so a failing statement
only affects the reminder or cleanup step that issued it.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import delete, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import Session, select

from lms_reminders.core.errors import QueryFailed, StoreUnavailable
from lms_reminders.models.attempt_log import AttemptLog, OUTCOME_SENT
from lms_reminders.models.reminder import MAX_LEAD_HOURS, Reminder
from lms_reminders.models.student import Student
from lms_reminders.models.task import Task, TASK_SUBMITTED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderWithTask:
    """Typed projection of an active reminder joined with its task and student."""
    reminder_id: int
    student_id: int
    student_name: str
    task_id: int
    task_name: str
    course_name: str
    due_date: datetime
    task_status: str
    lead_hours: int
    frequency: int
    channel: str
    destination: str
    created_at: datetime

    @property
    def fire_at(self) -> datetime:
        """The instant the reminder is meant to go out."""
        return self.due_date - timedelta(hours=self.lead_hours)

    def in_firing_window(self, now: datetime, tick_interval: timedelta) -> bool:
        """True when the firing instant fell within the last tick: now - tick < fire_at <= now."""
        return now - tick_interval < self.fire_at <= now


# Deletion predicates over the reminders table

def task_submitted() -> ColumnElement:
    """Reminders whose task has been submitted."""
    return Reminder.task_id.in_(select(Task.id).where(Task.status == TASK_SUBMITTED))


def task_overdue(cutoff: datetime) -> ColumnElement:
    """Reminders whose unsubmitted task was due before the cutoff."""
    return Reminder.task_id.in_(
        select(Task.id).where(Task.due_date < cutoff, Task.status != TASK_SUBMITTED)
    )


def budget_exhausted() -> ColumnElement:
    """Reminders whose sent attempts have reached their frequency."""
    sent_count = (
        select(func.count(AttemptLog.id))
        .where(AttemptLog.reminder_id == Reminder.id, AttemptLog.status == OUTCOME_SENT)
        .correlate(Reminder)
        .scalar_subquery()
    )
    return sent_count >= Reminder.frequency


class ReminderStore:
    """Store gateway bound to one session for the duration of a cycle or request."""

    def __init__(self, session: Session, overdue_grace: timedelta = timedelta(hours=24)):
        self.session = session
        self.overdue_grace = overdue_grace

    def ping(self) -> None:
        """Acquire the connection for this session, raising StoreUnavailable if the store is unreachable."""
        try:
            self.session.connection().execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Store unreachable: {e}") from e

    def _fail(self, operation: str, error: SQLAlchemyError) -> QueryFailed:
        self.session.rollback()
        logger.error(f"Store operation {operation} failed: {error}")
        return QueryFailed(operation, error)

    def _active_reminders(self, due_after: datetime, due_until: datetime) -> List[ReminderWithTask]:
        """Active reminders on unsubmitted tasks due in (due_after, due_until]."""
        statement = (
            select(Reminder, Task, Student)
            .join(Task, Task.id == Reminder.task_id)
            .join(Student, Student.id == Reminder.student_id)
            .where(
                Reminder.active == True,  # noqa: E712
                Task.status != TASK_SUBMITTED,
                Task.due_date > due_after,
                Task.due_date <= due_until,
            )
        )
        rows = self.session.exec(statement).all()
        return [
            ReminderWithTask(
                reminder_id=reminder.id,
                student_id=reminder.student_id,
                student_name=student.name,
                task_id=task.id,
                task_name=task.name,
                course_name=task.course_name,
                due_date=task.due_date,
                task_status=task.status,
                lead_hours=reminder.lead_hours,
                frequency=reminder.frequency,
                channel=reminder.channel,
                destination=reminder.destination,
                created_at=reminder.created_at,
            )
            for reminder, task, student in rows
        ]

    def find_candidate_reminders(self, now: datetime, tick_interval: timedelta) -> List[ReminderWithTask]:
        """
        Active reminders on unresolved tasks whose firing window contains now.

        Args:
            now: Current tick time (naive UTC)
            tick_interval: Width of the firing window

        Returns:
            Candidates ordered by firing instant
        """
        try:
            rows = self._active_reminders(
                due_after=max(now - self.overdue_grace, now - tick_interval),
                due_until=now + timedelta(hours=MAX_LEAD_HOURS),
            )
        except SQLAlchemyError as e:
            raise self._fail("find_candidate_reminders", e) from e
        candidates = [row for row in rows if row.in_firing_window(now, tick_interval)]
        return sorted(candidates, key=lambda row: (row.fire_at, row.reminder_id))

    def find_upcoming_reminders(self, now: datetime, within: timedelta) -> List[ReminderWithTask]:
        """Reminders whose firing instant lies in (now, now + within], soonest first."""
        try:
            rows = self._active_reminders(due_after=now, due_until=now + within + timedelta(hours=MAX_LEAD_HOURS))
        except SQLAlchemyError as e:
            raise self._fail("find_upcoming_reminders", e) from e
        upcoming = [row for row in rows if now < row.fire_at <= now + within]
        return sorted(upcoming, key=lambda row: (row.fire_at, row.reminder_id))

    def count_recent_sent(self, reminder_id: int, since: datetime) -> int:
        """Number of sent attempts for the reminder strictly after `since`."""
        statement = select(func.count(AttemptLog.id)).where(
            AttemptLog.reminder_id == reminder_id,
            AttemptLog.status == OUTCOME_SENT,
            AttemptLog.sent_at > since,
        )
        try:
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise self._fail("count_recent_sent", e) from e

    def count_total_sent(self, reminder_id: int) -> int:
        """Number of sent attempts for the reminder over its lifetime."""
        statement = select(func.count(AttemptLog.id)).where(
            AttemptLog.reminder_id == reminder_id,
            AttemptLog.status == OUTCOME_SENT,
        )
        try:
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise self._fail("count_total_sent", e) from e

    def insert_attempt_log(
        self,
        reminder_id: int,
        channel: str,
        destination: str,
        outcome: str,
        at: Optional[datetime] = None,
    ) -> AttemptLog:
        """Record one dispatch attempt and commit it immediately."""
        log = AttemptLog(
            reminder_id=reminder_id,
            channel=channel,
            destination=destination,
            status=outcome,
        )
        if at is not None:
            log.sent_at = at
        try:
            self.session.add(log)
            self.session.commit()
            self.session.refresh(log)
        except SQLAlchemyError as e:
            raise self._fail("insert_attempt_log", e) from e
        return log

    def delete_reminders_where(self, predicate: ColumnElement) -> int:
        """Delete every reminder matching the predicate; returns the affected row count."""
        statement = delete(Reminder).where(predicate).execution_options(synchronize_session=False)
        try:
            result = self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_reminders_where", e) from e
        return result.rowcount or 0

    def delete_orphaned_logs(self) -> int:
        """Delete attempt logs whose reminder no longer exists."""
        statement = (
            delete(AttemptLog)
            .where(AttemptLog.reminder_id.not_in(select(Reminder.id)))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_orphaned_logs", e) from e
        return result.rowcount or 0

    def delete_reminders_for_task(self, task_id: int) -> int:
        """Delete every reminder attached to a task, along with their logs."""
        deleted = self.delete_reminders_where(Reminder.task_id == task_id)
        self.delete_orphaned_logs()
        return deleted
