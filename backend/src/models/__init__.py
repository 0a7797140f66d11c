"""SQLAlchemy Models for NotaryFlow"""

from .base import Base
from .user import User
from .notarization_document import NotarizationDocument
from .status_tracking import StatusTracking
from .notary_session import NotarySession
from .signature_request import SignatureRequest

__all__ = [
    "Base",
    "User",
    "NotarizationDocument",
    "StatusTracking",
    "NotarySession",
    "SignatureRequest",
]
