"""Environment configuration for the reminder service."""
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from a local .env if present
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class SMTPSettings:
    """Mail channel connection settings."""
    host: str = "smtp.gmail.com"
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    sender: str = "LMS Reminder System <noreply@lms.com>"
    starttls: bool = True


@dataclass(frozen=True)
class TwilioSettings:
    """Chat-message channel settings (WhatsApp through Twilio)."""
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: str = "whatsapp:+14155238886"
    api_base: str = "https://api.twilio.com/2010-04-01"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""
    database_url: str = "sqlite:///./lms_reminders.db"
    cron_secret: Optional[str] = None
    tick_interval_seconds: int = 60
    recency_window_minutes: int = 60
    overdue_grace_hours: int = 24
    channel_send_timeout_seconds: float = 30.0
    enable_scheduler: bool = True
    display_timezone: str = "UTC"
    environment: str = "development"
    smtp: SMTPSettings = SMTPSettings()
    twilio: TwilioSettings = TwilioSettings()

    @property
    def tick_interval(self) -> timedelta:
        return timedelta(seconds=self.tick_interval_seconds)

    @property
    def recency_window(self) -> timedelta:
        return timedelta(minutes=self.recency_window_minutes)

    @property
    def overdue_grace(self) -> timedelta:
        return timedelta(hours=self.overdue_grace_hours)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        settings = cls(
            database_url=os.environ.get("DATABASE_URL", "sqlite:///./lms_reminders.db"),
            cron_secret=os.environ.get("CRON_SECRET") or None,
            tick_interval_seconds=_env_int("TICK_INTERVAL_SECONDS", 60),
            recency_window_minutes=_env_int("RECENCY_WINDOW_MINUTES", 60),
            overdue_grace_hours=_env_int("OVERDUE_GRACE_HOURS", 24),
            channel_send_timeout_seconds=float(os.environ.get("CHANNEL_SEND_TIMEOUT_SECONDS") or 30),
            enable_scheduler=_env_bool("ENABLE_SCHEDULER", True),
            display_timezone=os.environ.get("DISPLAY_TIMEZONE", "UTC"),
            environment=os.environ.get("ENVIRONMENT", "development"),
            smtp=SMTPSettings(
                host=os.environ.get("SMTP_HOST", "smtp.gmail.com"),
                port=_env_int("SMTP_PORT", 587),
                user=os.environ.get("SMTP_USER") or None,
                password=os.environ.get("SMTP_PASS") or None,
                sender=os.environ.get("SMTP_FROM", "LMS Reminder System <noreply@lms.com>"),
                starttls=_env_bool("SMTP_STARTTLS", True),
            ),
            twilio=TwilioSettings(
                account_sid=os.environ.get("TWILIO_ACCOUNT_SID") or None,
                auth_token=os.environ.get("TWILIO_AUTH_TOKEN") or None,
                from_number=os.environ.get("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886"),
            ),
        )
        settings.check_windows()
        return settings

    def check_windows(self) -> None:
        """Warn when the recency guard is narrower than one tick."""
        if self.recency_window < self.tick_interval:
            logger.warning(
                f"RECENCY_WINDOW_MINUTES ({self.recency_window_minutes}m) is shorter than "
                f"TICK_INTERVAL_SECONDS ({self.tick_interval_seconds}s); "
                "overlapping ticks may send duplicate reminders"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached process settings."""
    return Settings.from_env()
