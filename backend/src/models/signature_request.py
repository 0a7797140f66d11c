"""SignatureRequest SQLAlchemy model

Two-party approval that gates the digital signature of a notarization
document or a session. Each half is flipped exactly once.
"""

import uuid

from sqlalchemy import Column, Text, Boolean, Numeric, DateTime, Uuid, CheckConstraint

from .base import Base, utcnow


class SignatureRequest(Base):
    __tablename__ = "signature_request"
    __table_args__ = (
        CheckConstraint(
            "(document_id IS NULL) <> (session_id IS NULL)",
            name="ck_signature_request_single_target"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid, nullable=True, unique=True)
    session_id = Column(Uuid, nullable=True, unique=True)
    amount = Column(Numeric(14, 2), nullable=True)
    signature_image = Column(Text, nullable=True)  # Storage URL
    user_approved = Column(Boolean, nullable=False, default=False)
    user_approved_at = Column(DateTime(timezone=True), nullable=True)
    user_approved_by = Column(Uuid, nullable=True)
    secretary_approved = Column(Boolean, nullable=False, default=False)
    secretary_approved_at = Column(DateTime(timezone=True), nullable=True)
    secretary_approved_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def approval_status(self) -> dict:
        """Nested view of both approval halves."""
        return {
            "user": {
                "approved": self.user_approved,
                "approvedAt": self.user_approved_at,
            },
            "secretary": {
                "approved": self.secretary_approved,
                "approvedAt": self.secretary_approved_at,
                "approvedBy": self.secretary_approved_by,
            },
        }
