"""Pydantic schemas for notarization endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class NotarizationServiceInfo(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    fieldId: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)


class NotarizationFieldInfo(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class RequesterInfo(BaseModel):
    citizenId: str = Field(..., min_length=1)
    phoneNumber: str = Field(..., min_length=1)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class DocumentCreate(BaseModel):
    """Decoded body of ``POST /notarization/upload-files``."""
    notarizationService: NotarizationServiceInfo
    notarizationField: NotarizationFieldInfo
    requesterInfo: RequesterInfo


class FileEntry(BaseModel):
    filename: str
    storageUrl: str
    createdAt: datetime


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    userId: UUID = Field(validation_alias="user_id")
    notarizationService: dict = Field(validation_alias="notarization_service")
    notarizationField: dict = Field(validation_alias="notarization_field")
    requesterInfo: dict = Field(validation_alias="requester_info")
    files: List[FileEntry]
    status: str
    sessionId: Optional[UUID] = Field(None, validation_alias="session_id")
    createdAt: datetime = Field(validation_alias="created_at")
    updatedAt: datetime = Field(validation_alias="updated_at")


class StatusTrackingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    timestamp: datetime
    action: Optional[str] = None
    actorRole: Optional[str] = Field(None, validation_alias="actor_role")
    feedback: Optional[str] = None


class DocumentStatusResponse(BaseModel):
    """Current status of one document plus its full timeline."""
    documentId: UUID
    status: str
    updatedAt: datetime
    history: List[StatusTrackingResponse]


class DocumentWithStatusResponse(DocumentResponse):
    history: List[StatusTrackingResponse] = []


class QueuedDocumentResponse(DocumentResponse):
    """A queued document with the workflow actions open to the caller's role."""
    allowedActions: List[str] = []


class ForwardStatusRequest(BaseModel):
    action: str = Field(..., min_length=1, examples=["accept"])
    feedback: Optional[str] = Field(None, max_length=2000)


class ForwardStatusResponse(BaseModel):
    message: str
    documentId: UUID
    status: str


class ApproveHistoryEntry(BaseModel):
    """One action the caller took on a document."""
    documentId: UUID
    action: Optional[str]
    status: str
    feedback: Optional[str] = None
    timestamp: datetime
    currentStatus: str
    notarizationService: dict
    requesterInfo: dict


class SignatureApprovalHalf(BaseModel):
    approved: bool
    approvedAt: Optional[datetime] = None


class SecretaryApprovalHalf(SignatureApprovalHalf):
    approvedBy: Optional[UUID] = None


class ApprovalStatus(BaseModel):
    user: SignatureApprovalHalf
    secretary: SecretaryApprovalHalf


class SignatureRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    documentId: Optional[UUID] = Field(None, validation_alias="document_id")
    sessionId: Optional[UUID] = Field(None, validation_alias="session_id")
    amount: Optional[float] = None
    signatureImage: Optional[str] = Field(None, validation_alias="signature_image")
    approvalStatus: ApprovalStatus = Field(validation_alias="approval_status")
    fullyApproved: bool = False
