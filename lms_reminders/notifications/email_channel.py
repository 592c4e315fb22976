"""E-mail notification channel using aiosmtplib."""
from email.message import EmailMessage
import asyncio
import logging
import re

import aiosmtplib

from lms_reminders.core.config import SMTPSettings
from lms_reminders.core.errors import ChannelSendFailed, ConfigurationInvalid
from lms_reminders.models.reminder import CHANNEL_EMAIL

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class EmailChannel:
    """Sends HTML reminders through an SMTP relay."""

    name = CHANNEL_EMAIL

    def __init__(self, config: SMTPSettings, timeout: float = 30.0):
        if not config.host:
            raise ConfigurationInvalid("SMTP_HOST is required for the email channel")
        if not config.user or not config.password:
            raise ConfigurationInvalid("SMTP_USER and SMTP_PASS are required for the email channel")

        self.config = config
        self.timeout = timeout
        # Port 465 speaks implicit TLS; everything else may upgrade with STARTTLS
        self.use_tls = config.port == 465
        self.start_tls = config.starttls and not self.use_tls

        logger.info(
            f"Email channel configured: host={config.host} port={config.port} "
            f"user={config.user} pass=***masked*** starttls={self.start_tls}"
        )

    def validate_recipient(self, recipient: str) -> bool:
        """Validate email address format."""
        return bool(EMAIL_PATTERN.match(recipient))

    def _build_message(self, destination: str, subject: str, content: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = destination
        message["Subject"] = subject
        message.set_content("This reminder is best viewed in an HTML-capable mail client.")
        message.add_alternative(content, subtype="html")
        return message

    async def _deliver(self, message: EmailMessage) -> None:
        try:
            errors, response = await aiosmtplib.send(
                message,
                hostname=self.config.host,
                port=self.config.port,
                username=self.config.user,
                password=self.config.password,
                use_tls=self.use_tls,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            raise ChannelSendFailed(self.name, message["To"], str(e) or e.__class__.__name__) from e
        if errors:
            raise ChannelSendFailed(self.name, message["To"], f"recipients refused: {errors}")
        logger.debug(f"SMTP response: {response}")

    def send(self, destination: str, subject: str, content: str) -> bool:
        """Send an HTML e-mail; delivery problems are logged and reported as False."""
        if not self.validate_recipient(destination):
            logger.warning(f"Invalid email address: {destination}")
            return False

        logger.info(f"Attempting to send email to: {destination}")
        try:
            asyncio.run(self._deliver(self._build_message(destination, subject, content)))
        except ChannelSendFailed as e:
            logger.error(f"Error sending email: {e}")
            return False

        logger.info(f"Email sent successfully to {destination}")
        return True

    async def _login(self) -> None:
        async with aiosmtplib.SMTP(
            hostname=self.config.host,
            port=self.config.port,
            use_tls=self.use_tls,
            start_tls=self.start_tls,
            timeout=self.timeout,
        ) as smtp:
            await smtp.login(self.config.user, self.config.password)

    def check_connection(self) -> bool:
        """Connect and authenticate against the relay without sending anything."""
        try:
            asyncio.run(self._login())
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error(f"SMTP connection check failed: {e or e.__class__.__name__}")
            return False
        logger.info("SMTP connection verified")
        return True
