"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel

from rentdesk.identity.models import AgentEditError


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request validation failed (malformed JSON, missing fields, etc.)."""

    AGENT_EDIT_REJECTED = "AGENT_EDIT_REJECTED"
    """One or more edits failed validation or collide with another agent."""

    AGENT_EDIT_UNVERIFIED = "AGENT_EDIT_UNVERIFIED"
    """Uniqueness could not be verified; resubmit unchanged."""

    BATCH_NOT_FOUND = "BATCH_NOT_FOUND"
    """The specified edit batch does not exist."""

    BATCH_ALREADY_UNDONE = "BATCH_ALREADY_UNDONE"
    """The edit batch has already been undone."""

    BATCH_SUPERSEDED = "BATCH_SUPERSEDED"
    """A newer edit batch touched the same agents or phones."""

    UNDO_WINDOW_EXPIRED = "UNDO_WINDOW_EXPIRED"
    """The undo window of the batch has elapsed."""

    PROPAGATION_FAILED = "PROPAGATION_FAILED"
    """Applying the batch stopped partway."""

    UNDO_FAILED = "UNDO_FAILED"
    """Reverting the batch stopped partway; the batch stays undoable."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information for request validation failures."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    """Machine-readable error code."""

    message: str
    """Human-readable error message."""

    retryable: bool = False
    """Whether repeating the same request may succeed."""

    details: list[ErrorDetail] | None = None
    """Additional error details for request validation failures."""

    agent_errors: list[AgentEditError] | None = None
    """Per-agent reasons when an edit batch is rejected."""


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "UNDO_WINDOW_EXPIRED",
                "message": "Edit batch ... can no longer be undone",
                "retryable": false
            }
        }
    """

    error: ErrorBody
