"""Routers package for the reminder service."""

from .cron import router as cron_router
from .reminders import router as reminders_router

__all__ = ["cron_router", "reminders_router"]
