"""User roles and the static role → permission table for NotaryFlow.

Roles:
- USER: Requests notarizations, organizes sessions, approves their own signatures
- ADMIN: User management and read access across all notarizations
- NOTARY: Accepts and completes notarization requests
- SECRETARY: Forwards processed requests to digital signature, co-approves signatures

Permission Matrix (excerpt):
┌─────────────────────────────┬──────┬───────┬────────┬───────────┐
│ Action                      │ USER │ ADMIN │ NOTARY │ SECRETARY │
├─────────────────────────────┼──────┼───────┼────────┼───────────┤
│ uploadDocuments             │  ✓   │   ✓   │        │           │
│ createSession               │  ✓   │       │        │           │
│ getDocumentsByRole          │      │       │   ✓    │     ✓     │
│ forwardDocumentStatus       │      │       │   ✓    │     ✓     │
│ approveSignatureByUser      │  ✓   │       │        │           │
│ approveSignatureBySecretary │      │       │        │     ✓     │
│ manageUsers                 │      │   ✓   │        │           │
└─────────────────────────────┴──────┴───────┴────────┴───────────┘
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping


class UserRole(str, Enum):
    """User roles in NotaryFlow.

    Values are stored as TEXT in the database and must match exactly.
    """
    USER = "user"
    ADMIN = "admin"
    NOTARY = "notary"
    SECRETARY = "secretary"


# Roles that can see every session/document rather than only their own
PRIVILEGED_ROLES: FrozenSet[UserRole] = frozenset({
    UserRole.ADMIN,
    UserRole.NOTARY,
    UserRole.SECRETARY,
})


ROLE_PERMISSIONS: Mapping[UserRole, FrozenSet[str]] = MappingProxyType({
    UserRole.USER: frozenset({
        "uploadDocuments",
        "viewNotarizationHistory",
        "createSession",
        "addUserToSession",
        "deleteUserOutOfSession",
        "joinSession",
        "getSessions",
        "getSessionsByUserId",
        "getSessionBySessionId",
        "uploadSessionDocument",
        "sendSessionForNotarization",
        "approveSignatureByUser",
        "searchUsers",
    }),
    UserRole.ADMIN: frozenset({
        "getUsers",
        "manageUsers",
        "uploadDocuments",
        "viewNotarizationHistory",
        "manageRoles",
        "getAllNotarizations",
        "getSessions",
        "getSessionBySessionId",
        "addUserToSession",
        "deleteUserOutOfSession",
        "searchUsers",
    }),
    UserRole.NOTARY: frozenset({
        "getDocumentsByRole",
        "forwardDocumentStatus",
        "getApproveHistory",
        "getSessions",
        "getSessionBySessionId",
    }),
    UserRole.SECRETARY: frozenset({
        "getDocumentsByRole",
        "forwardDocumentStatus",
        "getApproveHistory",
        "approveSignatureBySecretary",
        "getSessions",
        "getSessionBySessionId",
    }),
})


def has_permission(role: str, action: str) -> bool:
    """Check whether a role may perform an action.

    Unknown roles have no permissions.

    Examples:
        >>> has_permission("notary", "forwardDocumentStatus")
        True
        >>> has_permission("user", "forwardDocumentStatus")
        False
    """
    try:
        user_role = UserRole(role)
    except ValueError:
        return False
    return action in ROLE_PERMISSIONS[user_role]


def is_privileged(role: str) -> bool:
    """Return True for roles that see all sessions and documents."""
    return role in {r.value for r in PRIVILEGED_ROLES}
