"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Loading the current authenticated user
- Enforcing the role → permission table before any business logic runs

Usage:
    @router.get("/history")
    def history(user: User = Depends(require_permission("viewNotarizationHistory"))):
        ...
"""

import logging
from typing import Callable, Annotated, Optional
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from errors import ForbiddenError, UnauthorizedError
from models.user import User
from .jwt import decode_token
from .roles import has_permission

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 instead of 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate JWT token, returning the authenticated user.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Validates token signature and expiration
    3. Loads user from database
    4. Checks user is active
    5. Returns User object for use in endpoint

    Raises:
        UnauthorizedError: If token is missing, invalid, expired, or user not found
        ForbiddenError: If the account is not active
    """
    if credentials is None:
        raise UnauthorizedError()

    try:
        payload = decode_token(credentials.credentials)
        user_id = UUID(payload.get("sub") or "")
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")
    except ValueError:
        raise UnauthorizedError("Invalid token claims")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError("User not found")

    if user.status != "active":
        raise ForbiddenError("User account is not active")

    return user


def require_permission(action: str) -> Callable:
    """Create a dependency that enforces the role → permission table.

    Args:
        action: Permission name (e.g. "forwardDocumentStatus")

    Returns:
        Callable: FastAPI dependency returning the authorized user

    Example:
        @router.patch("/forwardDocumentStatus/{document_id}")
        def forward(user: User = Depends(require_permission("forwardDocumentStatus"))):
            ...
    """

    def permission_dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, action):
            logger.warning(
                f"Permission denied: user={current_user.id}, "
                f"role={current_user.role}, action={action}"
            )
            raise ForbiddenError("Forbidden")
        return current_user

    return permission_dependency


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
