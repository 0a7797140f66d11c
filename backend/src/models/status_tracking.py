"""StatusTracking SQLAlchemy model

Append-only history of notarization status changes. Rows are written once and
never updated.
"""

import uuid

from sqlalchemy import Column, Text, DateTime, Uuid, ForeignKey, Index

from .base import Base, utcnow


class StatusTracking(Base):
    __tablename__ = "status_tracking"
    __table_args__ = (
        Index("ix_status_tracking_document_id", "document_id"),
        Index("ix_status_tracking_actor_id", "actor_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(
        Uuid,
        ForeignKey("notarization_document.id", ondelete="CASCADE"),
        nullable=False
    )
    status = Column(Text, nullable=False)
    actor_id = Column(Uuid, nullable=True)
    actor_role = Column(Text, nullable=True)
    action = Column(Text, nullable=True)  # NULL for the creation row
    feedback = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)
