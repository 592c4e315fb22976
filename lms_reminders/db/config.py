"""Database configuration for the reminder service."""
from typing import Generator
import logging

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, Session

from lms_reminders.core.config import get_settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLModel engine for the given URL.

    SQLite engines get foreign keys switched on so attempt logs cascade with
    their reminder; in-memory SQLite URLs share a single connection.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(database_url, echo=echo, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


DATABASE_URL = get_settings().database_url

if DATABASE_URL.startswith("postgresql"):
    logger.info("Using PostgreSQL database")
else:
    logger.info(f"Using database: {DATABASE_URL}")

engine = create_db_engine(DATABASE_URL)


def get_session(request: Request) -> Generator[Session, None, None]:
    """Dependency for getting database sessions bound to the application's engine."""
    with Session(request.app.state.db_engine) as session:
        yield session
