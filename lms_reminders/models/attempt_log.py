"""Attempt log model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from datetime import datetime
from typing import Optional

from lms_reminders.core.clock import utcnow

OUTCOME_SENT = "sent"
OUTCOME_FAILED = "failed"


class AttemptLog(SQLModel, table=True):
    """Immutable record of one dispatch attempt for a reminder."""

    __tablename__ = "attempt_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    reminder_id: int = Field(
        sa_column=Column(Integer, ForeignKey("reminders.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    channel: str = Field(max_length=20)
    destination: str = Field(max_length=255)
    status: str = Field(max_length=20, index=True)  # sent, failed
    sent_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=False), index=True, nullable=False)
    )
