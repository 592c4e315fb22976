"""Reminder service for the student-facing create/list/delete flow."""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from lms_reminders.core.clock import utcnow
from lms_reminders.models.attempt_log import AttemptLog
from lms_reminders.models.reminder import Reminder
from lms_reminders.models.student import Student
from lms_reminders.models.task import Task, TASK_SUBMITTED
from lms_reminders.services.reminder_store import ReminderStore


class ReminderConflict(Exception):
    """An active reminder already exists for this student and task."""


class TaskUnavailable(Exception):
    """The task does not exist or has already been submitted."""


class TaskPastDue(Exception):
    """The task's due date has already passed."""


class StudentNotFound(Exception):
    """The student does not exist."""


class ReminderService:
    """Service class for reminder CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def list_for_student(self, student_id: int) -> List[Tuple[Reminder, Task]]:
        """Active reminders of a student on unsubmitted tasks, soonest deadline first."""
        statement = (
            select(Reminder, Task)
            .join(Task, Task.id == Reminder.task_id)
            .where(
                Reminder.student_id == student_id,
                Reminder.active == True,  # noqa: E712
                Task.status != TASK_SUBMITTED,
            )
            .order_by(Task.due_date.asc(), Reminder.created_at.desc())
        )
        return list(self.session.exec(statement).all())

    def create(
        self,
        student_id: int,
        task_id: int,
        lead_hours: int,
        frequency: int,
        channel: str,
        destination: str,
        now: Optional[datetime] = None,
    ) -> Tuple[Reminder, Task]:
        """
        Create a reminder for a student's task.

        Raises:
            StudentNotFound: Unknown student
            ReminderConflict: An active reminder already exists for (student, task)
            TaskUnavailable: Task missing or already submitted
            TaskPastDue: Task due date already passed
        """
        now = now or utcnow()

        if self.session.get(Student, student_id) is None:
            raise StudentNotFound(f"Student {student_id} not found")

        existing = self.session.exec(
            select(Reminder.id).where(
                Reminder.student_id == student_id,
                Reminder.task_id == task_id,
                Reminder.active == True,  # noqa: E712
            )
        ).first()
        if existing is not None:
            raise ReminderConflict("A reminder already exists for this task")

        task = self.session.get(Task, task_id)
        if task is None or task.status == TASK_SUBMITTED:
            raise TaskUnavailable("Task not found or already submitted")
        if task.due_date < now:
            raise TaskPastDue("Cannot create reminder for past due tasks")

        reminder = Reminder(
            student_id=student_id,
            task_id=task_id,
            task_name=task.name,
            lead_hours=lead_hours,
            frequency=frequency,
            channel=channel,
            destination=destination,
            active=True,
            created_at=now,
        )
        self.session.add(reminder)
        self.session.commit()
        self.session.refresh(reminder)
        return reminder, task

    def delete(self, reminder_id: int) -> bool:
        """Delete a reminder and its attempt logs; False if it does not exist."""
        reminder = self.session.get(Reminder, reminder_id)
        if reminder is None:
            return False
        self.session.exec(
            delete(AttemptLog)
            .where(AttemptLog.reminder_id == reminder_id)
            .execution_options(synchronize_session=False)
        )
        self.session.delete(reminder)
        self.session.commit()
        return True

    def delete_for_task(self, task_id: int) -> int:
        """Delete every reminder of a task; returns how many were removed."""
        return ReminderStore(self.session).delete_reminders_for_task(task_id)
