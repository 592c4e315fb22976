"""Reminder management router."""
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlmodel import Session

from lms_reminders.db.config import get_session
from lms_reminders.models.reminder import Reminder
from lms_reminders.models.task import Task
from lms_reminders.schemas.reminder import ReminderCreate, ReminderResponse, UpcomingReminderResponse
from lms_reminders.services.reminder_service import (
    ReminderConflict,
    ReminderService,
    StudentNotFound,
    TaskPastDue,
    TaskUnavailable,
)
from lms_reminders.services.reminder_store import ReminderStore

router = APIRouter(tags=["Reminders"])


def get_reminder_service(session: Session = Depends(get_session)) -> ReminderService:
    """Dependency for getting ReminderService instance."""
    return ReminderService(session)


def _to_response(reminder: Reminder, task: Task) -> ReminderResponse:
    return ReminderResponse(
        id=reminder.id,
        student_id=reminder.student_id,
        task_id=reminder.task_id,
        task_name=reminder.task_name,
        course_name=task.course_name,
        due_date=task.due_date,
        lead_hours=reminder.lead_hours,
        frequency=reminder.frequency,
        channel=reminder.channel,
        destination=reminder.destination,
        active=reminder.active,
        created_at=reminder.created_at,
    )


@router.get("/reminders", response_model=List[ReminderResponse])
def list_reminders(
    student_id: int = Query(..., description="Student whose reminders to list"),
    service: ReminderService = Depends(get_reminder_service),
):
    """List a student's active reminders, soonest deadline first."""
    return [_to_response(reminder, task) for reminder, task in service.list_for_student(student_id)]


@router.post("/reminders", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def create_reminder(
    request: Request,
    reminder_data: ReminderCreate,
    service: ReminderService = Depends(get_reminder_service),
):
    """Create a reminder for a task that is still open."""
    try:
        reminder, task = service.create(
            student_id=reminder_data.student_id,
            task_id=reminder_data.task_id,
            lead_hours=reminder_data.lead_hours,
            frequency=reminder_data.frequency,
            channel=reminder_data.channel,
            destination=reminder_data.destination,
            now=request.app.state.reminder_engine.clock(),
        )
    except ReminderConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (StudentNotFound, TaskUnavailable) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TaskPastDue as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_response(reminder, task)


@router.get("/reminders/upcoming", response_model=List[UpcomingReminderResponse])
def upcoming_reminders(
    request: Request,
    within_minutes: int = Query(60, ge=1, le=7 * 24 * 60, description="Look-ahead window in minutes"),
    session: Session = Depends(get_session),
):
    """Reminders that will fire within the next `within_minutes` minutes."""
    engine = request.app.state.reminder_engine
    now = engine.clock()
    store = ReminderStore(session, overdue_grace=engine.settings.overdue_grace)
    return [
        UpcomingReminderResponse(
            id=row.reminder_id,
            student_id=row.student_id,
            student_name=row.student_name,
            task_id=row.task_id,
            task_name=row.task_name,
            course_name=row.course_name,
            due_date=row.due_date,
            lead_hours=row.lead_hours,
            reminder_time=row.fire_at,
            minutes_until_reminder=(row.fire_at - now) // timedelta(minutes=1),
            channel=row.channel,
            destination=row.destination,
        )
        for row in store.find_upcoming_reminders(now, timedelta(minutes=within_minutes))
    ]


@router.delete("/reminders/{reminder_id}")
def delete_reminder(
    reminder_id: int,
    service: ReminderService = Depends(get_reminder_service),
):
    """Delete a reminder and its attempt logs."""
    if not service.delete(reminder_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    return {"message": "Reminder deleted successfully"}


@router.delete("/tasks/{task_id}/reminders")
def delete_task_reminders(
    task_id: int,
    service: ReminderService = Depends(get_reminder_service),
):
    """Delete every reminder attached to a task."""
    deleted = service.delete_for_task(task_id)
    return {"message": f"Deleted {deleted} reminders for task {task_id}", "deleted": deleted}
