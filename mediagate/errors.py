"""Structured error taxonomy shared by adapters, the engine and the API.

Every failure is classified where it originates (normally the adapter
that talked to the provider) and carries its code untouched up to the
HTTP boundary, where it is rendered as::

    {"success": false, "error": "<message>", "code": "<ErrorCode>"}
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to API clients."""

    INVALID_REQUEST = "INVALID_REQUEST"
    AUTH_ERROR = "AUTH_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MediaGatewayError(Exception):
    """Base class for all classified gateway errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(MediaGatewayError):
    """A required field is missing or malformed."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class NotFoundError(MediaGatewayError):
    """Unknown operation, execution or file."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class DependencyError(MediaGatewayError):
    """A sequential workflow step ran before one of its dependencies."""

    code = ErrorCode.DEPENDENCY_ERROR
    status_code = 400

    def __init__(self, dependency_id: str, step_id: str):
        super().__init__(f"Dependency {dependency_id} not executed for step {step_id}")
        self.dependency_id = dependency_id
        self.step_id = step_id


class StorageError(MediaGatewayError):
    """Writing or reading a local media file failed."""

    code = ErrorCode.STORAGE_ERROR
    status_code = 500


class UpstreamError(MediaGatewayError):
    """The generation provider failed (generic server-side failure)."""

    code = ErrorCode.UPSTREAM_ERROR
    status_code = 500

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class AuthError(UpstreamError):
    """The provider rejected our credentials."""

    code = ErrorCode.AUTH_ERROR
    status_code = 401


class RateLimitedError(UpstreamError):
    """The provider throttled the request."""

    code = ErrorCode.RATE_LIMITED
    status_code = 429


class UpstreamBadRequestError(UpstreamError):
    """The provider rejected the request parameters."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400


def classify_upstream_status(status: Optional[int], message: str) -> MediaGatewayError:
    """Map a provider HTTP status to the matching gateway error."""
    if status in (401, 403):
        return AuthError(message, upstream_status=status)
    if status == 429:
        return RateLimitedError(message, upstream_status=status)
    if status == 400:
        return UpstreamBadRequestError(message, upstream_status=status)
    if status == 404:
        return NotFoundError(message)
    return UpstreamError(message, upstream_status=status)
