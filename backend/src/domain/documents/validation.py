"""File validation utilities for notarization uploads

Uploads are restricted to images and PDFs; both the declared MIME type and
the filename extension must match the allow-list.
"""

import os
import re
from typing import Optional, Tuple

from config import get_settings


SUPPORTED_MIME_TYPES = {
    'image/jpeg',
    'image/jpg',
    'image/png',
    'application/pdf',
}

SUPPORTED_EXTENSIONS = {'.jpeg', '.jpg', '.png', '.pdf'}

UNSUPPORTED_TYPE_MESSAGE = "Only images and PDFs are allowed"


def max_file_size() -> int:
    return get_settings().MAX_UPLOAD_SIZE_BYTES


def max_batch_files() -> int:
    return get_settings().MAX_BATCH_UPLOAD_FILES


def is_supported_file_type(filename: str, mime_type: Optional[str]) -> bool:
    """Check both the MIME type and the extension against the allow-list.

    Example:
        >>> is_supported_file_type('scan.pdf', 'application/pdf')
        True
        >>> is_supported_file_type('scan.pdf', 'text/plain')
        False
        >>> is_supported_file_type('scan.exe', 'image/png')
        False
    """
    ext = os.path.splitext(filename or "")[1].lower()
    return (mime_type or "").lower() in SUPPORTED_MIME_TYPES and ext in SUPPORTED_EXTENSIONS


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (False, 'File is empty (0 bytes)')
    """
    if max_size is None:
        max_size = max_file_size()

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: str) -> Tuple[bool, Optional[str]]:
    """Validate filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No path traversal (../, ..\\)
    - No null bytes or control characters

    Example:
        >>> validate_filename('contract.pdf')
        (True, None)
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('hop dong (ban sao).pdf')
        'hop_dong_ban_sao_.pdf'
    """
    filename = os.path.basename(filename)

    filename = re.sub(r'[^\w\s.-]', '_', filename)
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename
