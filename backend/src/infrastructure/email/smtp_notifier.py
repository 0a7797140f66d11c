"""SMTP Notifier - Implementation of NotificationPort using smtplib.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional, Sequence

from config import Settings, get_settings
from domain.notifications.ports.notification_port import NotificationError, NotificationPort

logger = logging.getLogger(__name__)


class SMTPNotifier(NotificationPort):
    """Sends notifications through an SMTP relay.

    When no host is configured the notifier is disabled: messages are logged
    and dropped, which keeps local development free of mail setup.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: str = "no-reply@notaryflow.local",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SMTPNotifier":
        settings = settings or get_settings()
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.EMAIL_FROM,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def send(self, recipients: Sequence[str], subject: str, body: str) -> None:
        recipients = [r for r in recipients if r]
        if not recipients:
            return

        if not self.enabled:
            logger.info(f"Email delivery disabled, dropping '{subject}' for {len(recipients)} recipient(s)")
            return

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email delivery failed: subject='{subject}', error={e}", exc_info=True)
            raise NotificationError(f"Failed to send email: {e}")

        logger.info(f"Email sent: subject='{subject}', recipients={len(recipients)}")


def get_notifier() -> NotificationPort:
    """Dependency for the outgoing email adapter"""
    return SMTPNotifier.from_settings()
