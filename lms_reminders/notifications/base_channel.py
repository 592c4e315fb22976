"""
Notification Channel interface.

Channels share one structural contract: `send(destination, subject, content)`
returns True on delivery and False on any ordinary delivery failure. They are
resolved once into a kind -> binding registry so the dispatcher never branches
on the channel kind.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol
import logging

from lms_reminders.core.config import Settings
from lms_reminders.core.errors import ConfigurationInvalid
from lms_reminders.models.reminder import CHANNEL_EMAIL, CHANNEL_WHATSAPP
from lms_reminders.notifications.message_builder import MessageBuilder, RenderedMessage, UrgencyContext

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    """Anything that can deliver rendered content to a destination address."""

    name: str

    def send(self, destination: str, subject: str, content: str) -> bool:
        """
        Attempt delivery.

        Args:
            destination: E-mail address or phone number
            subject: Subject line or short context (may be ignored by the channel)
            content: Rendered message body

        Returns:
            True if the transport accepted the message, False otherwise
        """
        ...


@dataclass(frozen=True)
class ChannelBinding:
    """A channel paired with the renderer producing its content."""
    channel: NotificationChannel
    render: Callable[[UrgencyContext], RenderedMessage]


ChannelRegistry = Dict[str, ChannelBinding]


def build_channel_registry(settings: Settings, builder: Optional[MessageBuilder] = None) -> ChannelRegistry:
    """
    Construct every configured channel.

    A channel whose credentials are missing or malformed is left out of the
    registry and logged; the other channel stays usable.
    """
    from lms_reminders.notifications.email_channel import EmailChannel
    from lms_reminders.notifications.whatsapp_channel import WhatsAppChannel

    builder = builder or MessageBuilder(settings.display_timezone)
    factories = {
        CHANNEL_EMAIL: (
            lambda: EmailChannel(settings.smtp, timeout=settings.channel_send_timeout_seconds),
            builder.render_email,
        ),
        CHANNEL_WHATSAPP: (
            lambda: WhatsAppChannel(settings.twilio, timeout=settings.channel_send_timeout_seconds),
            builder.render_whatsapp,
        ),
    }

    registry: ChannelRegistry = {}
    for kind, (factory, render) in factories.items():
        try:
            registry[kind] = ChannelBinding(channel=factory(), render=render)
            logger.info(f"Notification channel '{kind}' enabled")
        except ConfigurationInvalid as e:
            logger.error(f"Notification channel '{kind}' disabled: {e}")
    return registry
