"""Pydantic schemas for session endpoints"""

from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from notarization.schemas import FileEntry


class Invitee(BaseModel):
    email: EmailStr


class SessionCreate(BaseModel):
    sessionName: str = Field(..., min_length=1, max_length=200)
    notaryField: dict
    notaryService: dict
    startDate: date
    startTime: time
    endDate: date
    endTime: time
    users: List[Invitee] = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionName": "Property transfer",
                "notaryField": {"id": "f1", "name": "Real estate"},
                "notaryService": {"id": "s1", "name": "Sale contract", "price": 500000},
                "startDate": "2024-10-10",
                "startTime": "14:00",
                "endDate": "2024-10-10",
                "endTime": "15:00",
                "users": [{"email": "buyer@example.com"}],
            }
        }
    )

    @field_validator("users")
    @classmethod
    def unique_emails(cls, value: List[Invitee]) -> List[Invitee]:
        emails = [u.email.lower() for u in value]
        if len(set(emails)) != len(emails):
            raise ValueError("duplicate invitee emails")
        return value

    @model_validator(mode="after")
    def end_after_start(self):
        if datetime.combine(self.endDate, self.endTime) <= datetime.combine(self.startDate, self.startTime):
            raise ValueError("session must end after it starts")
        return self


class AddUsersRequest(BaseModel):
    emails: List[EmailStr] = Field(..., min_length=1)


class DeleteUserRequest(BaseModel):
    email: EmailStr


class JoinSessionRequest(BaseModel):
    action: str = Field(..., examples=["accept"])


class InviteeResponse(BaseModel):
    email: str
    status: str
    userId: Optional[UUID] = None
    respondedAt: Optional[datetime] = None


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sessionName: str = Field(validation_alias="session_name")
    notaryField: dict = Field(validation_alias="notary_field")
    notaryService: dict = Field(validation_alias="notary_service")
    startDate: date = Field(validation_alias="start_date")
    startTime: time = Field(validation_alias="start_time")
    endDate: date = Field(validation_alias="end_date")
    endTime: time = Field(validation_alias="end_time")
    users: List[InviteeResponse]
    files: List[FileEntry]
    createdBy: UUID = Field(validation_alias="created_by")
    status: str
    documentId: Optional[UUID] = Field(None, validation_alias="document_id")
    createdAt: datetime = Field(validation_alias="created_at")


class SessionFilesResponse(BaseModel):
    message: str
    files: List[FileEntry]


class SendSessionResponse(BaseModel):
    message: str
    session: SessionResponse
    status: str
    documentId: UUID

