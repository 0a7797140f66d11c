"""Notarization API endpoints.

Requesters upload documents and follow their history; notaries and
secretaries work the queue and move documents through the workflow;
requester and secretary co-approve the digital signature.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth.dependencies import require_permission
from database import get_db
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.notifications import NotificationPort
from errors import ForbiddenError
from infrastructure.email.smtp_notifier import get_notifier
from models.user import User
from schemas import Page, PageParams
from uploads.files import (
    ValidatedFile,
    discard_files,
    get_storage,
    store_file,
    store_files,
    validate_upload,
    validate_uploads,
)
from .form_fields import parse_document_form
from .schemas import (
    ApproveHistoryEntry,
    DocumentResponse,
    DocumentStatusResponse,
    DocumentWithStatusResponse,
    ForwardStatusRequest,
    ForwardStatusResponse,
    QueuedDocumentResponse,
    SignatureRequestResponse,
    StatusTrackingResponse,
)
from .service import NotarizationService
from .signature import ApprovalParty, approve_signature, get_signature_request, is_approved_by, is_fully_approved
from .status import DocumentStatus, get_allowed_actions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notarization", tags=["Notarization"])


def get_notarization_service(
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
) -> NotarizationService:
    return NotarizationService(db, notifier)


async def document_files(files: Optional[List[UploadFile]] = File(None)) -> List[ValidatedFile]:
    """Boundary check of uploaded files, resolved before the endpoint body runs."""
    return await validate_uploads(files, required=True)


async def signature_image_file(signatureImage: Optional[UploadFile] = File(None)) -> Optional[ValidatedFile]:
    if signatureImage is None or not signatureImage.filename:
        return None
    return await validate_upload(signatureImage)


def signature_response(request) -> SignatureRequestResponse:
    return SignatureRequestResponse.model_validate(request).model_copy(
        update={"fullyApproved": is_fully_approved(request)}
    )


async def approve_user_signature(
    db: Session,
    storage: ObjectStoragePort,
    signature: Optional[ValidatedFile],
    approver_id: UUID,
    amount: Decimal,
    prefix: str,
    document_id: Optional[UUID] = None,
    session_id: Optional[UUID] = None,
):
    """Requester half of a signature request, with the optional image.

    The image is stored before the conditional update; when a concurrent
    approval wins, the stored image is removed again.
    """
    existing = get_signature_request(db, document_id=document_id, session_id=session_id)
    if is_approved_by(existing, ApprovalParty.USER):
        return existing

    stored = await store_file(storage, prefix, signature) if signature is not None else None

    request, changed = approve_signature(
        db,
        ApprovalParty.USER,
        approver_id,
        document_id=document_id,
        session_id=session_id,
        amount=amount,
        signature_image=stored.url if stored else None,
    )
    if stored is not None and not changed:
        await discard_files(storage, [stored])
    return request


def with_history(document, timeline) -> DocumentWithStatusResponse:
    return DocumentWithStatusResponse(
        **DocumentResponse.model_validate(document).model_dump(),
        history=[StatusTrackingResponse.model_validate(t) for t in timeline],
    )


@router.post(
    "/upload-files",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a notarization request",
    description="""
Multipart upload of the files to notarize.

`notarizationService`, `notarizationField` and `requesterInfo` are JSON
strings. Files must be jpeg/jpg/png/pdf and at most 5 MB each.

The request is stored in status `pending` and the requester is emailed.
If only the email fails the response is a 500 whose message contains the
new document id.
    """,
)
async def upload_files(
    current_user: User = Depends(require_permission("uploadDocuments")),
    files: List[ValidatedFile] = Depends(document_files),
    notarizationService: Optional[str] = Form(None),
    notarizationField: Optional[str] = Form(None),
    requesterInfo: Optional[str] = Form(None),
    storage: ObjectStoragePort = Depends(get_storage),
    service: NotarizationService = Depends(get_notarization_service),
):
    data = parse_document_form(notarizationService, notarizationField, requesterInfo)
    entries = await store_files(storage, f"notarizations/{current_user.id}", files)
    return service.create_document(current_user, data, entries)


@router.get("/history", response_model=List[DocumentResponse])
def get_history(
    current_user: User = Depends(require_permission("viewNotarizationHistory")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Notarization requests created by the caller, newest first."""
    return service.get_history(current_user.id)


@router.get("/history-with-status", response_model=List[DocumentWithStatusResponse])
def get_history_with_status(
    current_user: User = Depends(require_permission("viewNotarizationHistory")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """The caller's requests together with their status timelines."""
    return [with_history(d, timeline) for d, timeline in service.get_history_with_status(current_user.id)]


@router.get("/history/{user_id}", response_model=List[DocumentResponse])
def get_history_by_user_id(
    user_id: UUID,
    current_user: User = Depends(require_permission("getUsers")),
    service: NotarizationService = Depends(get_notarization_service),
):
    return service.get_history(user_id)


@router.get("/getStatusById/{document_id}", response_model=DocumentStatusResponse)
def get_status_by_id(
    document_id: UUID,
    service: NotarizationService = Depends(get_notarization_service),
):
    """Public status lookup by document id (no authentication)."""
    document, timeline = service.get_document_status(document_id)
    return DocumentStatusResponse(
        documentId=document.id,
        status=document.status,
        updatedAt=document.updated_at,
        history=[StatusTrackingResponse.model_validate(t) for t in timeline],
    )


@router.get("/getDocumentByRole", response_model=List[QueuedDocumentResponse])
def get_document_by_role(
    current_user: User = Depends(require_permission("getDocumentsByRole")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Documents waiting for an action from the caller's role, with the actions it may take."""
    return [
        QueuedDocumentResponse(
            **DocumentResponse.model_validate(d).model_dump(),
            allowedActions=[a.value for a in get_allowed_actions(DocumentStatus(d.status), current_user.role)],
        )
        for d in service.get_documents_by_role(current_user.role)
    ]


@router.patch("/forwardDocumentStatus/{document_id}", response_model=ForwardStatusResponse)
def forward_document_status(
    document_id: UUID,
    body: ForwardStatusRequest,
    current_user: User = Depends(require_permission("forwardDocumentStatus")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Apply a workflow action (`accept`, `forward`, `reject`) to a document.

    Rejection requires `feedback`. Forwarding to digital signature requires
    the signature to be approved by both the requester and a secretary.
    """
    document = service.forward_document_status(document_id, body.action, current_user, body.feedback)
    return ForwardStatusResponse(
        message=f"Document status updated to {document.status}",
        documentId=document.id,
        status=document.status,
    )


@router.get("/getAllNotarization", response_model=Page[DocumentResponse])
def get_all_notarizations(
    status_filter: Optional[str] = Query(None, alias="status"),
    userId: Optional[UUID] = None,
    sortBy: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    current_user: User = Depends(require_permission("getAllNotarizations")),
    service: NotarizationService = Depends(get_notarization_service),
):
    params = PageParams(sortBy=sortBy, limit=limit, page=page)
    return service.list_documents(params, status=status_filter, user_id=userId)


@router.get("/getApproveHistory", response_model=List[ApproveHistoryEntry])
def get_approve_history(
    current_user: User = Depends(require_permission("getApproveHistory")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Every workflow action the caller performed, newest first."""
    return [
        ApproveHistoryEntry(
            documentId=row.document_id,
            action=row.action,
            status=row.status,
            feedback=row.feedback,
            timestamp=row.timestamp,
            currentStatus=document.status,
            notarizationService=document.notarization_service,
            requesterInfo=document.requester_info,
        )
        for row, document in service.get_approve_history(current_user.id)
    ]


@router.post(
    "/approve-signature-by-user",
    response_model=SignatureRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def approve_signature_by_user(
    current_user: User = Depends(require_permission("approveSignatureByUser")),
    signature: Optional[ValidatedFile] = Depends(signature_image_file),
    documentId: UUID = Form(...),
    amount: Decimal = Form(..., ge=0),
    storage: ObjectStoragePort = Depends(get_storage),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Requester's half of the signature approval, with amount and signature image."""
    document = service.get_document(documentId)
    if document.user_id != current_user.id:
        raise ForbiddenError("Only the requester can approve this signature")
    service.ensure_open_for_signature(document)

    request = await approve_user_signature(
        service.db,
        storage,
        signature,
        current_user.id,
        amount,
        prefix=f"signatures/{document.id}",
        document_id=document.id,
    )
    return signature_response(request)


class SecretaryApprovalRequest(BaseModel):
    documentId: UUID


@router.post("/approve-signature-by-secretary", response_model=SignatureRequestResponse)
def approve_signature_by_secretary(
    body: SecretaryApprovalRequest,
    current_user: User = Depends(require_permission("approveSignatureBySecretary")),
    service: NotarizationService = Depends(get_notarization_service),
):
    """Secretary's half of the signature approval."""
    document = service.get_document(body.documentId)
    service.ensure_open_for_signature(document)

    request, _ = approve_signature(
        service.db,
        ApprovalParty.SECRETARY,
        current_user.id,
        document_id=document.id,
    )
    return signature_response(request)
