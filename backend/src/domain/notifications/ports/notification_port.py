"""Notification Port - Domain interface for outgoing email.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from typing import Sequence


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""
    pass


class NotificationPort(ABC):
    """Sends plain-text notifications to one or more recipients."""

    @abstractmethod
    def send(self, recipients: Sequence[str], subject: str, body: str) -> None:
        """Deliver a message.

        Raises:
            NotificationError: If delivery fails
        """
        pass
