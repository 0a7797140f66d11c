"""Session API endpoints.

A session is an appointment prepared by its creator: invite people, collect
their answers and files, then send everything for notarization.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from auth.dependencies import require_permission
from database import get_db
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.notifications import NotificationPort
from errors import BadRequestError, ForbiddenError
from infrastructure.email.smtp_notifier import get_notifier
from models.user import User
from notarization.router import approve_user_signature, signature_image_file, signature_response
from notarization.schemas import SignatureRequestResponse
from notarization.signature import ApprovalParty, approve_signature
from uploads.files import ValidatedFile, get_storage, store_files, validate_uploads
from .schemas import (
    AddUsersRequest,
    DeleteUserRequest,
    JoinSessionRequest,
    SendSessionResponse,
    SessionCreate,
    SessionFilesResponse,
    SessionResponse,
)
from .service import SessionService, is_creator
from .status import SessionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["Sessions"])


def get_session_service(
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
) -> SessionService:
    return SessionService(db, notifier)


async def session_files(files: Optional[List[UploadFile]] = File(None)) -> List[ValidatedFile]:
    return await validate_uploads(files, required=True)


@router.post("/createSession", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    body: SessionCreate,
    current_user: User = Depends(require_permission("createSession")),
    service: SessionService = Depends(get_session_service),
):
    """Create a draft session and email every invitee."""
    return service.create_session(current_user, body)


@router.patch("/addUser/{session_id}", response_model=SessionResponse)
def add_user(
    session_id: UUID,
    body: AddUsersRequest,
    current_user: User = Depends(require_permission("addUserToSession")),
    service: SessionService = Depends(get_session_service),
):
    return service.add_users(session_id, current_user, body.emails)


@router.patch("/deleteUser/{session_id}", response_model=SessionResponse)
def delete_user(
    session_id: UUID,
    body: DeleteUserRequest,
    current_user: User = Depends(require_permission("deleteUserOutOfSession")),
    service: SessionService = Depends(get_session_service),
):
    """Remove an invitee. At least one live invitee must remain."""
    return service.delete_user(session_id, current_user, body.email)


@router.post("/joinSession/{session_id}", response_model=SessionResponse)
def join_session(
    session_id: UUID,
    body: JoinSessionRequest,
    current_user: User = Depends(require_permission("joinSession")),
    service: SessionService = Depends(get_session_service),
):
    """Accept or reject an invitation (`action`: `accept` | `reject`)."""
    return service.join_session(session_id, current_user, body.action)


@router.get("/getAllSessions", response_model=List[SessionResponse])
def get_all_sessions(
    current_user: User = Depends(require_permission("getSessions")),
    service: SessionService = Depends(get_session_service),
):
    return service.get_all_sessions(current_user)


@router.get("/getActiveSessions", response_model=List[SessionResponse])
def get_active_sessions(
    current_user: User = Depends(require_permission("getSessions")),
    service: SessionService = Depends(get_session_service),
):
    """Sessions taking place right now."""
    return service.get_active_sessions(current_user)


@router.get("/getSessionsByUserId", response_model=List[SessionResponse])
def get_sessions_by_user_id(
    current_user: User = Depends(require_permission("getSessionsByUserId")),
    service: SessionService = Depends(get_session_service),
):
    return service.get_sessions_by_user(current_user)


@router.get("/getSessionsByDate", response_model=List[SessionResponse])
def get_sessions_by_date(
    day: date = Query(..., alias="date"),
    current_user: User = Depends(require_permission("getSessions")),
    service: SessionService = Depends(get_session_service),
):
    """Sessions spanning the given day (`date=YYYY-MM-DD`)."""
    return service.get_sessions_by_date(current_user, day)


@router.get("/getSessionsByMonth", response_model=List[SessionResponse])
def get_sessions_by_month(
    day: date = Query(..., alias="date"),
    current_user: User = Depends(require_permission("getSessions")),
    service: SessionService = Depends(get_session_service),
):
    """Sessions overlapping the month of the given day."""
    return service.get_sessions_by_month(current_user, day)


@router.get("/getSessionBySessionId/{session_id}", response_model=SessionResponse)
def get_session_by_session_id(
    session_id: UUID,
    current_user: User = Depends(require_permission("getSessionBySessionId")),
    service: SessionService = Depends(get_session_service),
):
    return service.get_visible_session(session_id, current_user)


@router.post(
    "/upload-session-document/{session_id}",
    response_model=SessionFilesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_session_document(
    session_id: UUID,
    current_user: User = Depends(require_permission("uploadSessionDocument")),
    files: List[ValidatedFile] = Depends(session_files),
    storage: ObjectStoragePort = Depends(get_storage),
    service: SessionService = Depends(get_session_service),
):
    """Attach files to a draft session. Creator or accepted invitees only."""
    session = service.get_session(session_id)
    service.ensure_can_upload(session, current_user)

    entries = await store_files(storage, f"sessions/{session.id}", files)
    session = service.add_files(session, current_user, entries)
    return SessionFilesResponse(message="Files uploaded successfully", files=session.files)


@router.post("/send-session-for-notarization/{session_id}", response_model=SendSessionResponse)
def send_session_for_notarization(
    session_id: UUID,
    current_user: User = Depends(require_permission("sendSessionForNotarization")),
    service: SessionService = Depends(get_session_service),
):
    """Submit the session and create its pending notarization document."""
    session, document = service.send_for_notarization(session_id, current_user)
    return SendSessionResponse(
        message="Session sent for notarization successfully",
        session=SessionResponse.model_validate(session),
        status=document.status,
        documentId=document.id,
    )


def _ensure_open(session) -> None:
    if session.status == SessionStatus.CANCELLED.value:
        raise BadRequestError("Session is cancelled")


@router.post(
    "/approve-signature-by-user/{session_id}",
    response_model=SignatureRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def approve_session_signature_by_user(
    session_id: UUID,
    current_user: User = Depends(require_permission("approveSignatureByUser")),
    signature: Optional[ValidatedFile] = Depends(signature_image_file),
    amount: Decimal = Form(..., ge=0),
    storage: ObjectStoragePort = Depends(get_storage),
    service: SessionService = Depends(get_session_service),
):
    """Creator's half of the session signature approval."""
    session = service.get_session(session_id)
    if not is_creator(session, current_user):
        raise ForbiddenError("Only the session creator can approve this signature")
    _ensure_open(session)

    request = await approve_user_signature(
        service.db,
        storage,
        signature,
        current_user.id,
        amount,
        prefix=f"signatures/sessions/{session.id}",
        session_id=session.id,
    )
    return signature_response(request)


@router.post("/approve-signature-by-secretary/{session_id}", response_model=SignatureRequestResponse)
def approve_session_signature_by_secretary(
    session_id: UUID,
    current_user: User = Depends(require_permission("approveSignatureBySecretary")),
    service: SessionService = Depends(get_session_service),
):
    """Secretary's half of the session signature approval."""
    session = service.get_session(session_id)
    _ensure_open(session)

    request, _ = approve_signature(
        service.db,
        ApprovalParty.SECRETARY,
        current_user.id,
        session_id=session.id,
    )
    return signature_response(request)
