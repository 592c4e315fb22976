"""Schemas for the cron trigger endpoints."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class CleanupReportResponse(BaseModel):
    submitted_reminders: int = 0
    overdue_reminders: int = 0
    completed_reminders: int = 0
    orphaned_logs: int = 0
    failed_steps: List[str] = []


class CycleResponse(BaseModel):
    """Result of one reminder processing cycle."""
    success: bool
    message: str
    processed: int  # reminders successfully sent
    total: int  # candidates considered
    errors: int = 0
    cleanup: Optional[CleanupReportResponse] = None
    timestamp: datetime


class SchedulerStatusResponse(BaseModel):
    status: str
    timestamp: datetime
    scheduler: Dict[str, Any]
    channels: List[str]
    metrics: Dict[str, Any]


class SampleEmailRequest(BaseModel):
    """Send a sample reminder e-mail to check the SMTP setup."""
    test_email: str = Field(..., min_length=3, max_length=255)
