"""Notification channels and reminder message rendering."""
from .base_channel import ChannelBinding, ChannelRegistry, NotificationChannel, build_channel_registry
from .message_builder import MessageBuilder, RenderedMessage, Urgency, UrgencyContext

__all__ = [
    "ChannelBinding",
    "ChannelRegistry",
    "MessageBuilder",
    "NotificationChannel",
    "RenderedMessage",
    "Urgency",
    "UrgencyContext",
    "build_channel_registry",
]
