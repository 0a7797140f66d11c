"""Documents domain module - uploaded file rules and the object storage port"""

from .validation import (
    SUPPORTED_EXTENSIONS,
    SUPPORTED_MIME_TYPES,
    UNSUPPORTED_TYPE_MESSAGE,
    is_supported_file_type,
    max_batch_files,
    max_file_size,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "SUPPORTED_MIME_TYPES",
    "UNSUPPORTED_TYPE_MESSAGE",
    "is_supported_file_type",
    "max_batch_files",
    "max_file_size",
    "sanitize_filename",
    "validate_file_size",
    "validate_filename",
]
