"""Email templates for workflow notifications.

Each function returns a ``(subject, body)`` tuple.
"""

from typing import Tuple
from uuid import UUID


def document_created_message(document_id: UUID, service_name: str) -> Tuple[str, str]:
    subject = "Notarization request received"
    body = (
        f"Your notarization request for \"{service_name}\" has been received.\n"
        f"Request ID: {document_id}\n"
        "You will be notified when its status changes."
    )
    return subject, body


def document_status_message(document_id: UUID, status: str, feedback: str = None) -> Tuple[str, str]:
    subject = f"Notarization request {status}"
    body = f"The status of notarization request {document_id} is now: {status}."
    if feedback:
        body += f"\nFeedback: {feedback}"
    return subject, body


def session_invitation_message(session_id: UUID, session_name: str, organizer: str) -> Tuple[str, str]:
    subject = f"Invitation to notarization session \"{session_name}\""
    body = (
        f"{organizer} invited you to the notarization session \"{session_name}\".\n"
        f"Session ID: {session_id}\n"
        "Sign in to accept or decline the invitation."
    )
    return subject, body
