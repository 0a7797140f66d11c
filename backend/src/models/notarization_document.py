"""NotarizationDocument SQLAlchemy model

A notarization request: the requester's files plus the service/field they
want notarized. Its ``status`` moves through the workflow defined in
``notarization.status``; every change is mirrored by a StatusTracking row.
"""

import uuid

from sqlalchemy import Column, Text, DateTime, Uuid, ForeignKey, Index

from .base import Base, PortableJSONB, utcnow


class NotarizationDocument(Base):
    """Notarization request created by a user or spawned by a session.

    Documents are never hard-deleted; a rejected request stays in the
    ``rejected`` state for history.
    """
    __tablename__ = "notarization_document"
    __table_args__ = (
        Index("ix_notarization_document_user_id", "user_id"),
        Index("ix_notarization_document_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    notarization_service = Column(PortableJSONB, nullable=False)  # {id, name, fieldId, description, price}
    notarization_field = Column(PortableJSONB, nullable=False)  # {id, name, description}
    requester_info = Column(PortableJSONB, nullable=False)  # {citizenId, phoneNumber, email}
    files = Column(PortableJSONB, nullable=False, default=list)  # [{filename, storageUrl, createdAt}]
    status = Column(Text, nullable=False, default="pending")
    session_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
