"""Reminder model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from datetime import datetime
from typing import Optional

from lms_reminders.core.clock import utcnow

CHANNEL_EMAIL = "email"
CHANNEL_WHATSAPP = "whatsapp"
CHANNEL_KINDS = (CHANNEL_EMAIL, CHANNEL_WHATSAPP)
MAX_LEAD_HOURS = 24 * 30


class Reminder(SQLModel, table=True):
    """A student's standing request to be notified about one task."""

    __tablename__ = "reminders"

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(
        sa_column=Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    task_name: str = Field(max_length=200)  # snapshot of the task name at creation
    lead_hours: int = Field(ge=1)  # notify this many hours before the due date
    frequency: int = Field(ge=1)  # maximum number of successful notifications
    channel: str = Field(max_length=20)  # email, whatsapp
    destination: str = Field(max_length=255)  # e-mail address or phone number
    active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
