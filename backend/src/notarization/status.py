"""Notarization document status state machine.

State Flow:
    pending → processing → digitalSignature → completed

Any non-terminal state can be moved to ``rejected``.
Terminal States: completed, rejected

A transition is keyed on (current status, action, role). The table below is
the only source of truth; anything not listed is refused and leaves the
document untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class DocumentStatus(str, Enum):
    """Notarization document status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    DIGITAL_SIGNATURE = "digitalSignature"
    COMPLETED = "completed"
    REJECTED = "rejected"


class DocumentAction(str, Enum):
    ACCEPT = "accept"
    FORWARD = "forward"
    REJECT = "reject"


TERMINAL_STATES = frozenset({DocumentStatus.COMPLETED, DocumentStatus.REJECTED})


@dataclass(frozen=True)
class Transition:
    """One row of the transition table.

    ``requires_signature``: both halves of the signature request must be approved.
    ``requires_feedback``: a non-empty feedback text must accompany the action.
    """
    from_status: DocumentStatus
    action: DocumentAction
    role: str
    to_status: DocumentStatus
    requires_signature: bool = False
    requires_feedback: bool = False


def _reject_rows() -> Tuple[Transition, ...]:
    return tuple(
        Transition(status, DocumentAction.REJECT, role, DocumentStatus.REJECTED, requires_feedback=True)
        for status in DocumentStatus
        if status not in TERMINAL_STATES
        for role in ("notary", "secretary")
    )


TRANSITIONS: Tuple[Transition, ...] = (
    Transition(DocumentStatus.PENDING, DocumentAction.ACCEPT, "notary", DocumentStatus.PROCESSING),
    Transition(
        DocumentStatus.PROCESSING, DocumentAction.FORWARD, "secretary", DocumentStatus.DIGITAL_SIGNATURE,
        requires_signature=True,
    ),
    Transition(DocumentStatus.DIGITAL_SIGNATURE, DocumentAction.ACCEPT, "notary", DocumentStatus.COMPLETED),
) + _reject_rows()


class StateTransitionError(Exception):
    """Raised when a requested transition cannot be applied."""
    pass


class InvalidTransitionError(StateTransitionError):
    """The action is not valid for the document's current state."""
    pass


class TransitionForbiddenError(StateTransitionError):
    """The transition exists, but not for the caller's role."""
    pass


def parse_action(action: str) -> DocumentAction:
    try:
        return DocumentAction(action)
    except ValueError:
        allowed = ", ".join(a.value for a in DocumentAction)
        raise InvalidTransitionError(f"Invalid action '{action}'. Allowed actions: {allowed}")


def resolve_transition(
    current_status: DocumentStatus,
    action: str,
    role: str,
    feedback: Optional[str] = None,
    signature_approved: bool = False,
) -> Transition:
    """Find the table row for (status, action, role) and check its guards.

    Args:
        current_status: Status currently stored on the document
        action: Requested action name
        role: Role of the caller
        feedback: Free text supplied with the action
        signature_approved: Whether the document's signature request is fully approved

    Returns:
        Transition: The matching row

    Raises:
        InvalidTransitionError: Unknown action, terminal state, no row for
            (status, action), missing feedback or unmet signature guard
        TransitionForbiddenError: A row exists for (status, action) but for
            another role
    """
    parsed = parse_action(action)

    if current_status in TERMINAL_STATES:
        raise InvalidTransitionError(
            f"Document is already {current_status.value} and cannot be changed"
        )

    candidates = [t for t in TRANSITIONS if t.from_status == current_status and t.action == parsed]
    if not candidates:
        raise InvalidTransitionError(
            f"Cannot {parsed.value} a document in status {current_status.value}"
        )

    match = next((t for t in candidates if t.role == role), None)
    if match is None:
        raise TransitionForbiddenError(
            f"Role '{role}' cannot {parsed.value} a document in status {current_status.value}"
        )

    if match.requires_feedback and not (feedback or "").strip():
        raise InvalidTransitionError(f"Feedback is required to {parsed.value} a document")

    if match.requires_signature and not signature_approved:
        raise InvalidTransitionError(
            "Signature must be approved by both the requester and the secretary before forwarding"
        )

    return match


def get_allowed_actions(status: DocumentStatus, role: str) -> List[DocumentAction]:
    return [t.action for t in TRANSITIONS if t.from_status == status and t.role == role]


def statuses_for_role(role: str) -> List[DocumentStatus]:
    """Statuses in which the role can move a document forward.

    This is the work queue shown to notaries and secretaries; rejection alone
    does not put a document in a role's queue.

    Example:
        >>> statuses_for_role("secretary")
        [<DocumentStatus.PROCESSING: 'processing'>]
    """
    seen = []
    for t in TRANSITIONS:
        if t.role == role and t.action != DocumentAction.REJECT and t.from_status not in seen:
            seen.append(t.from_status)
    return seen
