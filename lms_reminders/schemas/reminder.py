"""Reminder schemas for the reminder management API."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from lms_reminders.models.reminder import CHANNEL_KINDS, MAX_LEAD_HOURS


class ReminderCreate(BaseModel):
    """Schema for creating a reminder."""
    student_id: int
    task_id: int
    lead_hours: int = Field(..., ge=1, le=MAX_LEAD_HOURS)  # hours before the due date
    frequency: int = Field(..., ge=1, le=10)  # maximum successful notifications
    channel: str = Field(..., pattern=f"^({'|'.join(CHANNEL_KINDS)})$")
    destination: str = Field(..., min_length=3, max_length=255)  # e-mail address or phone number


class ReminderResponse(BaseModel):
    """Schema for reminder API responses, joined with the task."""
    id: int
    student_id: int
    task_id: int
    task_name: str
    course_name: Optional[str] = None
    due_date: Optional[datetime] = None
    lead_hours: int
    frequency: int
    channel: str
    destination: str
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UpcomingReminderResponse(BaseModel):
    """A reminder about to fire, for debugging the schedule."""
    id: int
    student_id: int
    student_name: str
    task_id: int
    task_name: str
    course_name: str
    due_date: datetime
    lead_hours: int
    reminder_time: datetime
    minutes_until_reminder: int
    channel: str
    destination: str
