"""Initialize database tables."""
import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

# Table classes must be imported so they register on SQLModel.metadata
from lms_reminders.models import AttemptLog, Reminder, Student, Task  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind: Engine = None):
    """Create all tables in the database."""
    if bind is None:
        from lms_reminders.db.config import engine as bind

    SQLModel.metadata.create_all(bind)
    logger.info("Database tables ready")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
