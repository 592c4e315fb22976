"""Student model for SQLModel."""
from sqlmodel import SQLModel, Field
from typing import Optional


class Student(SQLModel, table=True):
    """Student receiving reminders; the display name is used in the greeting line."""

    __tablename__ = "students"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
