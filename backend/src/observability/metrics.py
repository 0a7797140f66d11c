"""Prometheus metrics for NotaryFlow.

Defines operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter

# Workflow metrics
document_transitions_total = Counter(
    "notaryflow_document_transitions_total",
    "Notarization status transitions attempted",
    ["from_status", "action", "result"]  # result: applied|refused|conflict
)

session_events_total = Counter(
    "notaryflow_session_events_total",
    "Session lifecycle events",
    ["event"]  # created|joined|rejected|cancelled|submitted
)

signature_approvals_total = Counter(
    "notaryflow_signature_approvals_total",
    "Signature approval calls",
    ["party", "result"]  # party: user|secretary, result: approved|noop
)

# Side-effect metrics
files_uploaded_total = Counter(
    "notaryflow_files_uploaded_total",
    "Files pushed to object storage",
    ["status"]  # success|error
)

notifications_total = Counter(
    "notaryflow_notifications_total",
    "Outgoing email notifications",
    ["kind", "status"]  # status: sent|error
)
