"""WhatsApp notification channel through the Twilio Messages API."""
from typing import Any, Dict, Optional
import logging
import re

import httpx

from lms_reminders.core.config import TwilioSettings
from lms_reminders.core.errors import ChannelSendFailed, ConfigurationInvalid
from lms_reminders.models.reminder import CHANNEL_WHATSAPP

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{7,14}$')


class WhatsAppChannel:
    """Sends plain-text reminders as WhatsApp messages."""

    name = CHANNEL_WHATSAPP

    def __init__(
        self,
        config: TwilioSettings,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        sid = config.account_sid
        token = config.auth_token
        if not sid or not token:
            raise ConfigurationInvalid("Twilio credentials not found in environment variables")
        if not sid.startswith("AC") or len(sid) != 34:
            raise ConfigurationInvalid(
                'Invalid Twilio Account SID format. Account SID must start with "AC" '
                "and be 34 characters long."
            )
        if len(token) != 32:
            raise ConfigurationInvalid("Invalid Twilio Auth Token format. Auth Token should be 32 characters long.")

        self.config = config
        self.timeout = timeout
        self._transport = transport

    @property
    def messages_url(self) -> str:
        return f"{self.config.api_base}/Accounts/{self.config.account_sid}/Messages.json"

    def validate_recipient(self, recipient: str) -> bool:
        """Validate phone number format (E.164, optional leading +)."""
        number = recipient.strip()
        if number.startswith("whatsapp:"):
            number = number[len("whatsapp:"):]
        return bool(PHONE_PATTERN.match(number.replace(" ", "").replace("-", "")))

    @staticmethod
    def _address(recipient: str) -> str:
        recipient = recipient.strip()
        if recipient.startswith("whatsapp:"):
            return recipient
        return f"whatsapp:{recipient.replace(' ', '').replace('-', '')}"

    def _post(self, to: str, body: str) -> Dict[str, Any]:
        payload = {"From": self.config.from_number, "To": to, "Body": body}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                r = client.post(
                    self.messages_url,
                    data=payload,
                    auth=(self.config.account_sid, self.config.auth_token),
                )
        except httpx.TimeoutException as e:
            raise ChannelSendFailed(self.name, to, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ChannelSendFailed(self.name, to, str(e)) from e

        try:
            data = r.json()
        except ValueError:
            data = {"error": "Invalid JSON response", "text": r.text}
        if r.status_code >= 300:
            raise ChannelSendFailed(self.name, to, f"Twilio error {r.status_code}: {data}")
        return data

    def send(self, destination: str, subject: str, content: str) -> bool:
        """Send a WhatsApp message; the subject is not part of a chat message."""
        if not self.validate_recipient(destination):
            logger.warning(f"Invalid WhatsApp number: {destination}")
            return False

        try:
            data = self._post(self._address(destination), content)
        except ChannelSendFailed as e:
            logger.error(f"Error sending WhatsApp message: {e}")
            return False

        logger.info(f"WhatsApp message sent successfully: {data.get('sid')}")
        return True
