"""API error taxonomy.

Every error the API reports to a client is an ``ApiError``: an HTTPException
carrying a stable machine-readable ``code`` next to the human message. The
exception handler in ``main`` renders all of them as ``{"code", "message"}``.
"""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base class for errors returned to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        self.message = message


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"

    def __init__(self, message: str = "Please authenticate"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(ApiError):
    """Raised when a conditional write lost a race against another request."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class PayloadTooLargeError(ApiError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "payload_too_large"


class TooManyRequestsError(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "too_many_requests"


class InternalError(ApiError):
    pass


class PartialFailureError(ApiError):
    """The primary write succeeded but a downstream side effect failed.

    The message always names the persisted resource so the client knows the
    write went through and must not be retried blindly.
    """

    code = "partial_failure"

    def __init__(self, message: str, resource_id: UUID):
        super().__init__(f"{message} (id: {resource_id})")
        self.resource_id = resource_id
