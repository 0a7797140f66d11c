"""Notifications domain module - outgoing email contract and message templates"""

from .messages import (
    document_created_message,
    document_status_message,
    session_invitation_message,
)
from .ports.notification_port import NotificationError, NotificationPort

__all__ = [
    "NotificationError",
    "NotificationPort",
    "document_created_message",
    "document_status_message",
    "session_invitation_message",
]
