"""Course task model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime
from datetime import datetime
from typing import Optional

TASK_PENDING = "pending"
TASK_SUBMITTED = "submitted"


class Task(SQLModel, table=True):
    """A gradeable deliverable owned by the course-management side; read-only to the engine."""

    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200, min_length=1)
    course_name: str = Field(max_length=200)
    due_date: datetime = Field(sa_column=Column(DateTime(timezone=False), index=True, nullable=False))  # naive UTC
    status: str = Field(default=TASK_PENDING, max_length=20, index=True)  # pending, submitted
