"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, DateTime, Uuid, CheckConstraint
from sqlalchemy.orm import validates

from .base import Base, PortableJSONB, utcnow


class User(Base):
    """Account of anyone taking part in a notarization.

    The role decides which workflow actions the user may perform (see
    ``auth.roles.ROLE_PERMISSIONS``). Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="user")
    password_hash = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="active")
    citizen_id = Column(Text, nullable=True)
    phone_number = Column(Text, nullable=True)
    address = Column(PortableJSONB, nullable=True)  # {province, district, town, street}
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'admin', 'notary', 'secretary')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'deleted')",
            name='ck_user_status'
        ),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

