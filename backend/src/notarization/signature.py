"""Two-party signature approval.

A SignatureRequest has two independent halves, one approved by the
requester and one by a secretary. The request is fully approved once both are
set, whatever the order. Each half is flipped with a conditional update so
concurrent approvals never overwrite each other.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.signature_request import SignatureRequest
from observability.metrics import signature_approvals_total

logger = logging.getLogger(__name__)


class ApprovalParty(str, Enum):
    USER = "user"
    SECRETARY = "secretary"


def is_fully_approved(request: Optional[SignatureRequest]) -> bool:
    """True when both the requester and a secretary approved."""
    return request is not None and bool(request.user_approved) and bool(request.secretary_approved)


def is_approved_by(request: Optional[SignatureRequest], party: ApprovalParty) -> bool:
    if request is None:
        return False
    if party == ApprovalParty.USER:
        return bool(request.user_approved)
    return bool(request.secretary_approved)


def get_signature_request(
    db: Session,
    document_id: Optional[UUID] = None,
    session_id: Optional[UUID] = None,
) -> Optional[SignatureRequest]:
    query = db.query(SignatureRequest)
    if document_id is not None:
        query = query.filter(SignatureRequest.document_id == document_id)
    else:
        query = query.filter(SignatureRequest.session_id == session_id)
    return query.first()


def is_document_signature_approved(db: Session, document) -> bool:
    """Forwarding guard for a document.

    A document spawned by a session is also released by the fully approved
    request of that session.
    """
    if is_fully_approved(get_signature_request(db, document_id=document.id)):
        return True
    if document.session_id is None:
        return False
    return is_fully_approved(get_signature_request(db, session_id=document.session_id))


def _get_or_create(
    db: Session,
    document_id: Optional[UUID],
    session_id: Optional[UUID],
) -> SignatureRequest:
    existing = get_signature_request(db, document_id, session_id)
    if existing:
        return existing

    request = SignatureRequest(document_id=document_id, session_id=session_id)
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # Another approval created the row first
        db.rollback()
        return get_signature_request(db, document_id, session_id)

    db.refresh(request)
    return request


def approve_signature(
    db: Session,
    party: ApprovalParty,
    approver_id: UUID,
    document_id: Optional[UUID] = None,
    session_id: Optional[UUID] = None,
    amount: Optional[Decimal] = None,
    signature_image: Optional[str] = None,
) -> Tuple[SignatureRequest, bool]:
    """Approve one half of the signature request for a document or session.

    The request is created by whichever party approves first. Approving a
    half that is already approved is a no-op that keeps the original
    timestamp.

    Returns:
        Tuple of (current request, whether this call changed it)
    """
    if (document_id is None) == (session_id is None):
        raise ValueError("Exactly one of document_id or session_id is required")

    request = _get_or_create(db, document_id, session_id)
    now = datetime.now(timezone.utc)

    if party == ApprovalParty.USER:
        stmt = (
            update(SignatureRequest)
            .where(SignatureRequest.id == request.id, SignatureRequest.user_approved.is_(False))
            .values(
                user_approved=True,
                user_approved_at=now,
                user_approved_by=approver_id,
                amount=amount,
                signature_image=signature_image,
            )
        )
    else:
        stmt = (
            update(SignatureRequest)
            .where(SignatureRequest.id == request.id, SignatureRequest.secretary_approved.is_(False))
            .values(
                secretary_approved=True,
                secretary_approved_at=now,
                secretary_approved_by=approver_id,
            )
        )

    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    db.refresh(request)

    changed = result.rowcount == 1
    signature_approvals_total.labels(party=party.value, result="approved" if changed else "noop").inc()
    logger.info(
        f"Signature {'approved' if changed else 'already approved'}: "
        f"request={request.id}, party={party.value}, fully_approved={is_fully_approved(request)}",
        extra={"user_id": approver_id}
    )
    return request, changed
