"""API exception hierarchy for consistent error handling.

Boundary-only failures inherit from MceptionAPIError, which provides the
status_code and error_code used by the global exception handler. Errors
raised by the configuration service are mapped in ``status_for``.
"""

from mception.api.models.errors import ErrorCode
from mception.errors import MceptionError, NotFoundError


class MceptionAPIError(Exception):
    """Base exception for errors raised by the HTTP layer itself."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RequestRejectedError(MceptionAPIError):
    """Raised when a request's confirmation flag is not set."""

    status_code = 400
    error_code = ErrorCode.REQUEST_REJECTED


class TargetNotAllowedError(MceptionAPIError):
    """Raised when an agent addresses an MCP outside its allow-list."""

    status_code = 403
    error_code = ErrorCode.FORBIDDEN


class ForwardingNotImplementedError(MceptionAPIError):
    """Raised by the reserved forwarding endpoints."""

    status_code = 501
    error_code = ErrorCode.NOT_IMPLEMENTED


def require_confirmation(flag: bool, flag_name: str) -> None:
    """Reject a request whose confirmation flag is false.

    Raises:
        RequestRejectedError: If ``flag`` is not set
    """
    if not flag:
        raise RequestRejectedError(f"Request rejected: '{flag_name}' must be true")


def status_for(exc: MceptionError) -> tuple[int, ErrorCode]:
    """Map a core error to an HTTP status and error code."""
    if isinstance(exc, NotFoundError):
        return 404, ErrorCode.NOT_FOUND
    return 500, ErrorCode.INTERNAL_ERROR
