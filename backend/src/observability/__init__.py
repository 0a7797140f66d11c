"""Observability module for NotaryFlow.

Provides structured logging, metrics, and health checks.
"""

from .logging_config import configure_logging
from .metrics import (
    document_transitions_total,
    files_uploaded_total,
    notifications_total,
    session_events_total,
    signature_approvals_total,
)
from .request_id import get_request_id, set_request_id, generate_request_id
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    # Metrics
    "document_transitions_total",
    "files_uploaded_total",
    "notifications_total",
    "session_events_total",
    "signature_approvals_total",
    # Request ID
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Middleware
    "RequestIDMiddleware",
]
