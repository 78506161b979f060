"""API exception hierarchy for consistent error handling.

All API exceptions inherit from RentdeskAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from rentdesk.api.models.errors import ErrorCode
from rentdesk.identity.errors import (
    BatchAlreadyUndoneError,
    BatchApplyError,
    BatchNotFoundError,
    BatchSupersededError,
    IdentityEditError,
    UndoFailedError,
    UndoWindowExpiredError,
)
from rentdesk.identity.models import AgentEditError, EditErrorKind


class RentdeskAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(RentdeskAPIError):
    """Raised when request validation fails."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class EditRejectedError(RentdeskAPIError):
    """Raised when a batch is refused before anything is written."""

    status_code = 422
    error_code = ErrorCode.AGENT_EDIT_REJECTED

    def __init__(self, errors: list[AgentEditError]) -> None:
        unverified = any(e.kind == EditErrorKind.VERIFICATION for e in errors)
        if unverified:
            message = "Some edits could not be verified; please retry"
        else:
            message = f"{len(errors)} agent edit(s) need attention"
        super().__init__(message)
        self.agent_errors = errors
        if unverified:
            self.error_code = ErrorCode.AGENT_EDIT_UNVERIFIED
            self.retryable = True


class BatchNotFoundAPIError(RentdeskAPIError):
    status_code = 404
    error_code = ErrorCode.BATCH_NOT_FOUND


class BatchAlreadyUndoneAPIError(RentdeskAPIError):
    status_code = 409
    error_code = ErrorCode.BATCH_ALREADY_UNDONE


class BatchSupersededAPIError(RentdeskAPIError):
    status_code = 409
    error_code = ErrorCode.BATCH_SUPERSEDED


class UndoWindowExpiredAPIError(RentdeskAPIError):
    status_code = 410
    error_code = ErrorCode.UNDO_WINDOW_EXPIRED


class PropagationFailedAPIError(RentdeskAPIError):
    status_code = 500
    error_code = ErrorCode.PROPAGATION_FAILED
    retryable = True


class UndoFailedAPIError(RentdeskAPIError):
    status_code = 500
    error_code = ErrorCode.UNDO_FAILED
    retryable = True


_DOMAIN_ERRORS: dict[type[IdentityEditError], type[RentdeskAPIError]] = {
    BatchNotFoundError: BatchNotFoundAPIError,
    BatchAlreadyUndoneError: BatchAlreadyUndoneAPIError,
    BatchSupersededError: BatchSupersededAPIError,
    UndoWindowExpiredError: UndoWindowExpiredAPIError,
    BatchApplyError: PropagationFailedAPIError,
    UndoFailedError: UndoFailedAPIError,
}


def from_domain_error(error: IdentityEditError) -> RentdeskAPIError:
    """Translate an engine error into the API error reported to the caller."""
    api_error = _DOMAIN_ERRORS.get(type(error), RentdeskAPIError)
    return api_error(error.message)
