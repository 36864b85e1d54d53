"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Machine-readable error codes for API responses."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request body or parameters failed validation."""

    REQUEST_REJECTED = "REQUEST_REJECTED"
    """The request's confirmation flag was false or absent."""

    NOT_FOUND = "NOT_FOUND"
    """The leaf MCP, agent or allow-list entry does not exist."""

    FORBIDDEN = "FORBIDDEN"
    """The target is outside the agent's allow-list."""

    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    """The endpoint is reserved for request forwarding."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Any other failure."""


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    message: str


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "NOT_FOUND",
                "message": "Agent with ID 'a' not found"
            }
        }
    """

    error: ErrorBody
