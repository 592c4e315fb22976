"""Main FastAPI application for the LMS reminder service."""
from contextlib import asynccontextmanager
from typing import Callable, Optional
from datetime import datetime
import logging

from fastapi import FastAPI
from sqlalchemy.engine import Engine
from sqlmodel import Session

from lms_reminders import __version__
from lms_reminders.core.clock import utcnow
from lms_reminders.core.config import Settings, get_settings
from lms_reminders.db.init import init_db
from lms_reminders.middleware.cors import add_cors_middleware
from lms_reminders.notifications.base_channel import ChannelRegistry, build_channel_registry
from lms_reminders.routers import cron_router, reminders_router
from lms_reminders.services.reminder_engine import ReminderEngine
from lms_reminders.services.reminder_scheduler import CycleScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the periodic reminder job."""
    try:
        init_db(app.state.db_engine)
    except Exception as e:
        # The cycle reports StoreUnavailable on every tick until the store comes back
        logger.warning(f"Database initialization failed: {e}")

    if app.state.settings.enable_scheduler:
        app.state.cycle_scheduler.start()
    else:
        logger.info("Reminder scheduler disabled via settings (ENABLE_SCHEDULER=false)")

    logger.info("Application startup complete.")
    yield
    app.state.cycle_scheduler.stop()


def create_app(
    settings: Optional[Settings] = None,
    db_engine: Optional[Engine] = None,
    channels: Optional[ChannelRegistry] = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Process settings (defaults to the environment)
        db_engine: SQLAlchemy engine (defaults to DATABASE_URL)
        channels: Notification channel registry (defaults to the configured channels)
        clock: Source of the current naive-UTC time
    """
    settings = settings or get_settings()
    if db_engine is None:
        from lms_reminders.db.config import engine as db_engine
    if channels is None:
        channels = build_channel_registry(settings)

    app = FastAPI(
        title="LMS Task Reminder API",
        description="Deadline reminders for course tasks over e-mail and WhatsApp",
        version=__version__,
        lifespan=lifespan,
    )
    add_cors_middleware(app, settings.environment)

    engine = ReminderEngine(
        session_factory=lambda: Session(db_engine),
        channels=channels,
        settings=settings,
        clock=clock,
    )
    app.state.settings = settings
    app.state.db_engine = db_engine
    app.state.reminder_engine = engine
    app.state.cycle_scheduler = CycleScheduler(engine, interval_seconds=settings.tick_interval_seconds)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/")
    async def root():
        """Root endpoint - API welcome message."""
        return {
            "message": "Welcome to the LMS Task Reminder API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(cron_router, prefix="/api")  # /api/cron/...
    app.include_router(reminders_router, prefix="/api")  # /api/reminders, /api/tasks/{id}/reminders
    return app


logging.basicConfig(level=logging.INFO)

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lms_reminders.main:app",
        host="0.0.0.0",
        port=8000,
    )
