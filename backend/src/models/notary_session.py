"""NotarySession SQLAlchemy model

A scheduled notarization appointment with invited participants. Invitees are
embedded as a JSON list; every write to that list is guarded by ``version``.
"""

import uuid

from sqlalchemy import Column, Text, Date, Time, DateTime, Integer, Uuid, ForeignKey, Index

from .base import Base, PortableJSONB, utcnow


class NotarySession(Base):
    __tablename__ = "notary_session"
    __table_args__ = (
        Index("ix_notary_session_created_by", "created_by"),
        Index("ix_notary_session_dates", "start_date", "end_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_name = Column(Text, nullable=False)
    notary_field = Column(PortableJSONB, nullable=False)
    notary_service = Column(PortableJSONB, nullable=False)
    start_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_date = Column(Date, nullable=False)
    end_time = Column(Time, nullable=False)
    users = Column(PortableJSONB, nullable=False, default=list)  # [{email, status, userId, respondedAt}]
    files = Column(PortableJSONB, nullable=False, default=list)  # [{filename, storageUrl, createdAt}]
    created_by = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    status = Column(Text, nullable=False, default="draft")
    document_id = Column(Uuid, nullable=True)  # Set when sent for notarization
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
