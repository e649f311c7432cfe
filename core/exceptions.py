"""
Custom Exception Classes for the VidShare API.

This module defines the exception hierarchy used by the services and the HTTP
layer. Services raise these exceptions; `ErrorHandlingMiddleware` turns them
into JSON error responses.

Key Components:
- `VidShareAPIException`: The root of the hierarchy. Carries a message, an
  error code, optional structured details and an HTTP status code.
- `NotFoundError` and its subclasses (`ChannelNotFoundError`,
  `VideoNotFoundError`, `UserNotFoundError`): the requested entity is absent.
- `InvalidArgumentError`: malformed pagination, sort, identifier or body input.
- `UpstreamFailureError`: the database could not be reached or a query failed.
  The driver error is chained as `__cause__` and is never retried.
- `to_http_exception`: maps an exception to FastAPI's `HTTPException`.
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException


class VidShareAPIException(Exception):
    """Base exception class for VidShare API"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "VIDSHARE_API_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(VidShareAPIException):
    """Raised when a requested entity does not exist"""

    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class ChannelNotFoundError(NotFoundError):
    """Raised when no channel matches a username"""

    def __init__(self, username: str):
        super().__init__(
            f"Channel does not exist: {username}", {"username": username}
        )
        self.error_code = "CHANNEL_NOT_FOUND"


class VideoNotFoundError(NotFoundError):
    """Raised when a video cannot be found"""

    def __init__(self, video_id: str):
        super().__init__("Video not found", {"video_id": video_id})
        self.error_code = "VIDEO_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """Raised when a user account cannot be found"""

    def __init__(self, identifier: str):
        super().__init__("User not found", {"identifier": identifier})
        self.error_code = "USER_NOT_FOUND"


class InvalidArgumentError(VidShareAPIException):
    """Raised when caller input is malformed"""

    status_code = 400

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value for '{field}': {reason}",
            "INVALID_ARGUMENT",
            {"field": field, "value": str(value), "reason": reason},
        )


class ConflictError(VidShareAPIException):
    """Raised when a unique field is already taken"""

    status_code = 409

    def __init__(self, message: str, fields: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFLICT", fields)


class AuthenticationError(VidShareAPIException):
    """Raised when authentication fails"""

    status_code = 401

    def __init__(self, reason: str):
        super().__init__(
            f"Authentication failed: {reason}",
            "AUTHENTICATION_ERROR",
            {"reason": reason},
        )


class PermissionDeniedError(VidShareAPIException):
    """Raised when a user acts on a resource they do not own"""

    status_code = 403

    def __init__(self, action: str, resource_id: str):
        super().__init__(
            f"You are not allowed to {action} this resource",
            "PERMISSION_DENIED",
            {"action": action, "resource_id": resource_id},
        )


class UpstreamFailureError(VidShareAPIException):
    """Raised when database operations fail"""

    status_code = 503

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Database operation '{operation}' failed: {reason}",
            "UPSTREAM_FAILURE",
            {"operation": operation, "reason": reason},
        )


def to_http_exception(exc: VidShareAPIException) -> HTTPException:
    """Convert VidShareAPIException to FastAPI HTTPException"""

    status_code_map = {
        "NOT_FOUND": 404,
        "CHANNEL_NOT_FOUND": 404,
        "VIDEO_NOT_FOUND": 404,
        "USER_NOT_FOUND": 404,
        "INVALID_ARGUMENT": 400,
        "AUTHENTICATION_ERROR": 401,
        "PERMISSION_DENIED": 403,
        "CONFLICT": 409,
        "UPSTREAM_FAILURE": 503,
    }

    status_code = status_code_map.get(exc.error_code, exc.status_code)

    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )
