"""Post-commit email delivery for workflow events.

Notifications are sent only after the primary write is committed. A failed
delivery never undoes that write; it is reported as a partial failure that
still names the persisted resource.
"""

import logging
from typing import Optional, Sequence, Tuple
from uuid import UUID

from domain.notifications import NotificationError, NotificationPort
from errors import PartialFailureError
from observability.metrics import notifications_total

logger = logging.getLogger(__name__)


def deliver(
    notifier: Optional[NotificationPort],
    kind: str,
    recipients: Sequence[str],
    message: Tuple[str, str],
    resource_id: UUID,
    saved_message: str,
) -> None:
    """Send ``message`` or raise PartialFailureError.

    Args:
        notifier: Email adapter (None skips delivery)
        kind: Metric label for the notification type
        recipients: Email addresses
        message: (subject, body)
        resource_id: ID of the record that was already committed
        saved_message: Client message confirming what was saved

    Raises:
        PartialFailureError: Delivery failed after the write succeeded
    """
    if notifier is None or not recipients:
        return

    subject, body = message
    try:
        notifier.send(list(recipients), subject, body)
    except NotificationError as e:
        notifications_total.labels(kind=kind, status="error").inc()
        logger.error(f"Notification '{kind}' failed for {resource_id}: {e}")
        raise PartialFailureError(f"{saved_message}, but the notification email could not be sent", resource_id)

    notifications_total.labels(kind=kind, status="sent").inc()
