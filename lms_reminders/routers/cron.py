"""Cron trigger endpoints for reminder processing."""
from datetime import timedelta
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from lms_reminders.core.clock import utcnow
from lms_reminders.core.errors import StoreUnavailable
from lms_reminders.middleware.auth import verify_cron_secret
from lms_reminders.models.reminder import CHANNEL_EMAIL
from lms_reminders.notifications.message_builder import UrgencyContext
from lms_reminders.schemas.cycle import (
    CleanupReportResponse,
    CycleResponse,
    SampleEmailRequest,
    SchedulerStatusResponse,
)
from lms_reminders.services.reminder_engine import CycleResult, ReminderEngine
from lms_reminders.services.reminder_scheduler import CycleScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def get_reminder_engine(request: Request) -> ReminderEngine:
    """Dependency returning the application's reminder engine."""
    return request.app.state.reminder_engine


def get_cycle_scheduler(request: Request) -> CycleScheduler:
    return request.app.state.cycle_scheduler


def _cycle_response(result: CycleResult) -> CycleResponse:
    return CycleResponse(
        success=True,
        message=result.message,
        processed=result.succeeded,
        total=result.attempted,
        errors=result.errors,
        cleanup=CleanupReportResponse(**result.cleanup.as_dict()),
        timestamp=utcnow(),
    )


def _store_unavailable(error: StoreUnavailable) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": False,
            "message": "Reminder store unavailable, cycle skipped",
            "error": str(error),
            "timestamp": utcnow().isoformat(),
        },
    )


@router.get("/process-reminders", response_model=CycleResponse)
def process_reminders(engine: ReminderEngine = Depends(get_reminder_engine)):
    """Periodic trigger, called once per tick by an external scheduler."""
    logger.info("Processing reminders via cron job...")
    try:
        result = engine.run_cycle()
    except StoreUnavailable as e:
        return _store_unavailable(e)
    return _cycle_response(result)


@router.get("/trigger", response_model=CycleResponse)
def trigger_reminders(engine: ReminderEngine = Depends(get_reminder_engine)):
    """Manual, ad hoc trigger."""
    try:
        result = engine.trigger_once()
    except StoreUnavailable as e:
        return _store_unavailable(e)
    return _cycle_response(result)


@router.post(
    "/reminders",
    response_model=CycleResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def process_reminders_guarded(engine: ReminderEngine = Depends(get_reminder_engine)):
    """Trigger guarded by the CRON_SECRET bearer token."""
    try:
        result = engine.run_cycle()
    except StoreUnavailable as e:
        return _store_unavailable(e)
    return _cycle_response(result)


@router.get("/status", response_model=SchedulerStatusResponse)
def scheduler_status(
    request: Request,
    scheduler: CycleScheduler = Depends(get_cycle_scheduler),
):
    """Scheduler state, enabled channels and dispatch counters."""
    engine: ReminderEngine = request.app.state.reminder_engine
    return SchedulerStatusResponse(
        status="OK",
        timestamp=utcnow(),
        scheduler=scheduler.get_status(),
        channels=sorted(engine.channels),
        metrics=engine.metrics.get_metrics(),
    )


@router.post("/test-email")
def send_test_email(
    body: SampleEmailRequest,
    engine: ReminderEngine = Depends(get_reminder_engine),
) -> Dict[str, Any]:
    """Send a sample reminder e-mail to check the SMTP configuration."""
    binding = engine.channels.get(CHANNEL_EMAIL)
    if binding is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email channel is not configured",
        )

    now = utcnow()
    context = UrgencyContext.build(
        due_date=now + timedelta(hours=24),
        now=now,
        student_name="Test Student",
        task_name="Test Assignment",
        course_name="Test Course",
    )
    message = binding.render(context)
    sent = binding.channel.send(body.test_email, f"🧪 Test {message.subject}", message.body)
    return {
        "success": sent,
        "message": "Test email sent successfully" if sent else "Failed to send test email",
        "test_email": body.test_email,
        "timestamp": now.isoformat(),
    }


@router.get("/test-reminders")
def test_reminder_setup(engine: ReminderEngine = Depends(get_reminder_engine)):
    """Check the SMTP connection, then run one cycle and report both."""
    binding = engine.channels.get(CHANNEL_EMAIL)
    email_ok = binding is not None and binding.channel.check_connection()
    if not email_ok:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Email service connection failed. Please check your SMTP configuration.",
                "checks": {"emailConnection": False, "databaseConnection": None, "processingResult": None},
                "timestamp": utcnow().isoformat(),
            },
        )

    try:
        result = engine.trigger_once()
    except StoreUnavailable as e:
        return _store_unavailable(e)

    return {
        "success": True,
        "message": "Reminder system test completed successfully",
        "checks": {
            "emailConnection": True,
            "databaseConnection": True,
            "processingResult": _cycle_response(result).model_dump(mode="json"),
        },
        "timestamp": utcnow().isoformat(),
    }
