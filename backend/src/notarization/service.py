"""Notarization document service.

Creates notarization requests, applies status transitions and serves the
history views. Every status change is a conditional update on the stored
status plus exactly one StatusTracking row, committed together.
"""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from domain.notifications import NotificationPort, document_created_message, document_status_message
from errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from models.base import utcnow
from models.notarization_document import NotarizationDocument
from models.status_tracking import StatusTracking
from models.user import User
from observability.metrics import document_transitions_total
from schemas import PageParams, apply_sort, paginate
from .notify import deliver
from .schemas import DocumentCreate
from .signature import is_document_signature_approved
from .status import (
    DocumentStatus,
    InvalidTransitionError,
    TERMINAL_STATES,
    TransitionForbiddenError,
    resolve_transition,
    statuses_for_role,
)

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "createdAt": NotarizationDocument.created_at,
    "updatedAt": NotarizationDocument.updated_at,
    "status": NotarizationDocument.status,
}


class NotarizationService:
    """Service for notarization document workflow and queries."""

    def __init__(self, db: Session, notifier: Optional[NotificationPort] = None):
        self.db = db
        self.notifier = notifier

    def get_document(self, document_id: UUID) -> NotarizationDocument:
        """Fetch a document.

        Raises:
            NotFoundError: If the document does not exist
        """
        document = self.db.query(NotarizationDocument).filter(
            NotarizationDocument.id == document_id
        ).first()
        if not document:
            raise NotFoundError("Document not found")
        return document

    def create_document(
        self,
        user: User,
        data: DocumentCreate,
        files: List[dict],
        session_id: Optional[UUID] = None,
        notify: bool = True,
    ) -> NotarizationDocument:
        """Store a new request in ``pending`` with its initial history row.

        The commit happens before the requester is emailed; if the email
        fails a PartialFailureError carrying the document id is raised.
        """
        document = self.build_document(user, data.model_dump(), files, session_id)
        self.db.commit()
        self.db.refresh(document)

        logger.info(
            f"Notarization document created: id={document.id}, files={len(files)}",
            extra={"user_id": user.id, "document_id": document.id}
        )

        if notify:
            deliver(
                self.notifier,
                kind="document_created",
                recipients=[document.requester_info.get("email") or user.email],
                message=document_created_message(document.id, data.notarizationService.name),
                resource_id=document.id,
                saved_message="Document created",
            )
        return document

    def build_document(
        self,
        user: User,
        data: Dict,
        files: List[dict],
        session_id: Optional[UUID] = None,
    ) -> NotarizationDocument:
        """Add a pending document and its creation row to the session without committing."""
        if not files:
            raise BadRequestError("No files uploaded")

        document = NotarizationDocument(
            user_id=user.id,
            notarization_service=data["notarizationService"],
            notarization_field=data["notarizationField"],
            requester_info=data["requesterInfo"],
            files=files,
            status=DocumentStatus.PENDING.value,
            session_id=session_id,
        )
        self.db.add(document)
        self.db.flush()

        self.db.add(StatusTracking(
            document_id=document.id,
            status=DocumentStatus.PENDING.value,
            actor_id=user.id,
            actor_role=user.role,
        ))
        return document

    def forward_document_status(
        self,
        document_id: UUID,
        action: str,
        user: User,
        feedback: Optional[str] = None,
    ) -> NotarizationDocument:
        """Apply one workflow transition on behalf of ``user``.

        Raises:
            NotFoundError: Unknown document
            ForbiddenError: The transition exists but not for the user's role
            BadRequestError: Invalid action, terminal state, missing feedback
                or signature not fully approved
            ConflictError: The status changed between read and write
        """
        document = self.get_document(document_id)
        current = DocumentStatus(document.status)

        try:
            transition = resolve_transition(
                current,
                action,
                user.role,
                feedback=feedback,
                signature_approved=is_document_signature_approved(self.db, document),
            )
        except TransitionForbiddenError as e:
            document_transitions_total.labels(from_status=current.value, action=action, result="refused").inc()
            logger.warning(f"Transition refused: {e}", extra={"document_id": document.id, "user_id": user.id})
            raise ForbiddenError(str(e))
        except InvalidTransitionError as e:
            document_transitions_total.labels(from_status=current.value, action=action, result="refused").inc()
            logger.warning(f"Transition refused: {e}", extra={"document_id": document.id, "user_id": user.id})
            raise BadRequestError(str(e))

        result = self.db.execute(
            update(NotarizationDocument)
            .where(
                NotarizationDocument.id == document.id,
                NotarizationDocument.status == current.value,
            )
            .values(status=transition.to_status.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            document_transitions_total.labels(from_status=current.value, action=action, result="conflict").inc()
            raise ConflictError("Document status was changed by another request, reload and try again")

        self.db.add(StatusTracking(
            document_id=document.id,
            status=transition.to_status.value,
            actor_id=user.id,
            actor_role=user.role,
            action=transition.action.value,
            feedback=feedback,
        ))
        self.db.commit()
        self.db.refresh(document)

        document_transitions_total.labels(from_status=current.value, action=action, result="applied").inc()
        logger.info(
            f"Document status updated: {current.value} -> {document.status} ({transition.action.value})",
            extra={"document_id": document.id, "user_id": user.id}
        )

        deliver(
            self.notifier,
            kind="document_status",
            recipients=[document.requester_info.get("email")],
            message=document_status_message(document.id, document.status, feedback),
            resource_id=document.id,
            saved_message=f"Document status updated to {document.status}",
        )
        return document

    def get_history(self, user_id: UUID) -> List[NotarizationDocument]:
        """Documents created by a user, newest first."""
        return self.db.query(NotarizationDocument).filter(
            NotarizationDocument.user_id == user_id
        ).order_by(NotarizationDocument.created_at.desc()).all()

    def get_status_history(self, document_ids: List[UUID]) -> Dict[UUID, List[StatusTracking]]:
        """Status timelines for several documents, oldest entry first."""
        timelines: Dict[UUID, List[StatusTracking]] = {doc_id: [] for doc_id in document_ids}
        if not document_ids:
            return timelines

        rows = self.db.query(StatusTracking).filter(
            StatusTracking.document_id.in_(document_ids)
        ).order_by(StatusTracking.timestamp.asc()).all()
        for row in rows:
            timelines[row.document_id].append(row)
        return timelines

    def get_history_with_status(self, user_id: UUID) -> List[Tuple[NotarizationDocument, List[StatusTracking]]]:
        documents = self.get_history(user_id)
        timelines = self.get_status_history([d.id for d in documents])
        return [(d, timelines[d.id]) for d in documents]

    def get_document_status(self, document_id: UUID) -> Tuple[NotarizationDocument, List[StatusTracking]]:
        """Current status and timeline of a document.

        Raises:
            NotFoundError: If the document does not exist or has no status history
        """
        document = self.db.query(NotarizationDocument).filter(
            NotarizationDocument.id == document_id
        ).first()
        timeline = self.get_status_history([document_id])[document_id] if document else []
        if not document or not timeline:
            raise NotFoundError("Document not found or does not have notarization status")
        return document, timeline

    def get_documents_by_role(self, role: str) -> List[NotarizationDocument]:
        """Work queue for a role: documents it can move forward, oldest first."""
        statuses = [s.value for s in statuses_for_role(role)]
        if not statuses:
            return []
        return self.db.query(NotarizationDocument).filter(
            NotarizationDocument.status.in_(statuses)
        ).order_by(NotarizationDocument.created_at.asc()).all()

    def get_approve_history(self, user_id: UUID) -> List[Tuple[StatusTracking, NotarizationDocument]]:
        """Transitions performed by a user, newest first."""
        return self.db.query(StatusTracking, NotarizationDocument).join(
            NotarizationDocument, NotarizationDocument.id == StatusTracking.document_id
        ).filter(
            StatusTracking.actor_id == user_id,
            StatusTracking.action.isnot(None),
        ).order_by(StatusTracking.timestamp.desc()).all()

    def list_documents(self, params: PageParams, status: Optional[str] = None,
                       user_id: Optional[UUID] = None) -> dict:
        """Paginated list of all documents."""
        query = self.db.query(NotarizationDocument)
        if status:
            query = query.filter(NotarizationDocument.status == status)
        if user_id:
            query = query.filter(NotarizationDocument.user_id == user_id)

        query = apply_sort(query, params.sortBy, SORTABLE_COLUMNS, NotarizationDocument.created_at.desc())
        return paginate(query, params)

    def ensure_open_for_signature(self, document: NotarizationDocument) -> None:
        """Signatures can only be collected while the document is still in the workflow."""
        if DocumentStatus(document.status) in TERMINAL_STATES:
            raise BadRequestError(f"Document is already {document.status}")
