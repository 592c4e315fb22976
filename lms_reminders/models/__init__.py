"""SQLModel tables for the reminder service."""
from .attempt_log import AttemptLog
from .reminder import Reminder
from .student import Student
from .task import Task

__all__ = ["AttemptLog", "Reminder", "Student", "Task"]
