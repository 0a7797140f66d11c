"""Session and invitee state rules.

Session Flow:
    draft → submitted      (creator sends it for notarization)
    draft → cancelled      (last live invitee declined)

Invitee Flow (per invitee, monotonic):
    pending → accepted | rejected

The functions here are pure: they take the stored invitee list and return a
new one, or raise SessionStateError. Persistence and authorization live in
``sessions.service``.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class SessionStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


class InviteeStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class JoinAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


# Invitees that still count towards the minimum of one participant
LIVE_INVITEE_STATUSES = frozenset({InviteeStatus.PENDING.value, InviteeStatus.ACCEPTED.value})


class SessionStateError(Exception):
    """Raised when a session or invitee change is not allowed."""
    pass


class NotInvitedError(SessionStateError):
    """The caller has no entry in the session's invitee list."""
    pass


def ensure_draft(status: str) -> None:
    if status != SessionStatus.DRAFT.value:
        raise SessionStateError(f"Session is {status} and can no longer be changed")


def find_invitee(users: List[Dict], email: str) -> Optional[Dict]:
    email = email.lower()
    return next((u for u in users if u.get("email") == email), None)


def count_live_invitees(users: List[Dict]) -> int:
    return sum(1 for u in users if u.get("status") in LIVE_INVITEE_STATUSES)


def new_invitees(emails: List[str]) -> List[Dict]:
    return [
        {"email": e.lower(), "status": InviteeStatus.PENDING.value, "userId": None, "respondedAt": None}
        for e in emails
    ]


def add_invitees(users: List[Dict], emails: List[str], creator_email: str) -> List[Dict]:
    """Append pending entries for new emails.

    Raises:
        SessionStateError: Email already invited, or the creator's own email
    """
    for email in emails:
        if email.lower() == creator_email.lower():
            raise SessionStateError("The session creator cannot be invited to their own session")
        if find_invitee(users, email):
            raise SessionStateError(f"{email} is already invited to this session")
    return [dict(u) for u in users] + new_invitees(emails)


def remove_invitee(users: List[Dict], email: str) -> List[Dict]:
    """Remove an invitee while keeping at least one live invitee.

    Raises:
        NotInvitedError: Email not in the list
        SessionStateError: The removal would leave no live invitee
    """
    if not find_invitee(users, email):
        raise NotInvitedError(f"{email} is not invited to this session")

    remaining = [dict(u) for u in users if u.get("email") != email.lower()]
    if count_live_invitees(remaining) == 0:
        raise SessionStateError("A session must keep at least one invitee")
    return remaining


def respond(users: List[Dict], email: str, action: str, user_id: str, now: datetime) -> List[Dict]:
    """Record an invitee's answer.

    Raises:
        SessionStateError: Unknown action or invitee already answered
        NotInvitedError: Email not in the list
    """
    try:
        parsed = JoinAction(action)
    except ValueError:
        raise SessionStateError(f"Invalid action '{action}'. Allowed actions: accept, reject")

    entry = find_invitee(users, email)
    if entry is None:
        raise NotInvitedError("You are not invited to this session")

    if entry.get("status") != InviteeStatus.PENDING.value:
        raise SessionStateError(f"You have already {entry['status']} this session")

    new_status = InviteeStatus.ACCEPTED if parsed == JoinAction.ACCEPT else InviteeStatus.REJECTED
    updated = []
    for u in users:
        u = dict(u)
        if u.get("email") == entry["email"]:
            u.update(status=new_status.value, userId=user_id, respondedAt=now.isoformat())
        updated.append(u)
    return updated


def status_after_response(users: List[Dict]) -> SessionStatus:
    """A draft with no live invitee left is cancelled."""
    return SessionStatus.DRAFT if count_live_invitees(users) > 0 else SessionStatus.CANCELLED
