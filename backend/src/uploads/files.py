"""Multipart file intake shared by notarization and session endpoints.

Files are buffered fully in memory, so every upload is size- and
type-checked here, at the HTTP boundary, before any workflow code runs.
Accepted files are pushed to object storage and described by the
``{filename, storageUrl, createdAt}`` entries stored on documents and sessions.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from typing import List, Optional

from fastapi import UploadFile

from domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError, StoredFile
from domain.documents.validation import (
    UNSUPPORTED_TYPE_MESSAGE,
    is_supported_file_type,
    max_batch_files,
    max_file_size,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)
from errors import BadRequestError, InternalError, PayloadTooLargeError
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import load_storage_config
from observability.metrics import files_uploaded_total

logger = logging.getLogger(__name__)


@dataclass
class ValidatedFile:
    """An upload that passed the boundary checks, held in memory."""
    filename: str
    mime_type: str
    content: bytes


def get_storage() -> ObjectStoragePort:
    """Dependency for object storage adapter"""
    return S3StorageAdapter.from_config(load_storage_config())


async def validate_upload(upload: UploadFile) -> ValidatedFile:
    """Read and validate a single upload.

    Raises:
        BadRequestError: Bad filename, unsupported type or empty file
        PayloadTooLargeError: File over the configured size limit
    """
    is_valid, error_msg = validate_filename(upload.filename or "")
    if not is_valid:
        raise BadRequestError(error_msg)

    if not is_supported_file_type(upload.filename, upload.content_type):
        raise BadRequestError(UNSUPPORTED_TYPE_MESSAGE)

    limit = max_file_size()
    # Read one byte past the limit so oversize files are caught without buffering them whole
    content = await upload.read(limit + 1)

    is_valid, error_msg = validate_file_size(len(content), limit)
    if not is_valid:
        if len(content) > limit:
            raise PayloadTooLargeError(f"File too large: {upload.filename}. {error_msg}")
        raise BadRequestError(error_msg)

    return ValidatedFile(
        filename=sanitize_filename(upload.filename),
        mime_type=upload.content_type.lower(),
        content=content,
    )


async def validate_uploads(uploads: Optional[List[UploadFile]], required: bool = True) -> List[ValidatedFile]:
    """Validate a batch of uploads.

    Raises:
        BadRequestError: No files when ``required``, or too many files
    """
    uploads = [u for u in (uploads or []) if u.filename]
    if required and not uploads:
        raise BadRequestError("No files uploaded")

    if len(uploads) > max_batch_files():
        raise BadRequestError(f"Too many files. Maximum {max_batch_files()} files per request.")

    return [await validate_upload(u) for u in uploads]


def file_entry(stored: StoredFile, filename: str) -> dict:
    """Entry stored in the ``files`` list of documents and sessions."""
    return {
        "filename": filename,
        "storageUrl": stored.url,
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }


async def store_file(storage: ObjectStoragePort, prefix: str, f: ValidatedFile) -> StoredFile:
    """Push one validated file to object storage.

    Raises:
        InternalError: If the storage backend fails
    """
    try:
        stored = await storage.store_file(
            file=BytesIO(f.content),
            prefix=prefix,
            filename=f.filename,
            mime_type=f.mime_type,
        )
    except StorageError as e:
        logger.error(f"Upload to object storage failed: prefix={prefix}, error={e}", exc_info=True)
        files_uploaded_total.labels(status="error").inc()
        raise InternalError("Failed to store uploaded files")

    files_uploaded_total.labels(status="success").inc()
    return stored


async def store_files(storage: ObjectStoragePort, prefix: str, files: List[ValidatedFile]) -> List[dict]:
    """Push validated files to object storage.

    All-or-nothing: when one upload fails, files already stored by this call
    are removed again before the error is raised.

    Raises:
        InternalError: If the storage backend fails
    """
    stored: List[StoredFile] = []
    entries = []
    try:
        for f in files:
            result = await store_file(storage, prefix, f)
            stored.append(result)
            entries.append(file_entry(result, f.filename))
    except InternalError:
        await discard_files(storage, stored)
        raise

    logger.info(f"Stored {len(stored)} file(s): prefix={prefix}")
    return entries


async def discard_files(storage: ObjectStoragePort, stored: List[StoredFile]) -> None:
    """Best-effort removal of files whose owning record was never written."""
    for s in stored:
        try:
            await storage.delete_file(s.storage_key)
        except StorageError as e:
            logger.warning(f"Could not remove orphaned file {s.storage_key}: {e}")
