"""Exceptions raised by the identity edit engine.

Validation and conflict problems are returned as AgentEditError data, not
raised. These exceptions cover faults and business-rule rejections that stop
a whole submission or undo.
"""

from uuid import UUID

from rentdesk.identity.models.enums import PropagationDirection, PropagationStep


class IdentityEditError(Exception):
    """Base exception for identity edit operations."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PropagationError(IdentityEditError):
    """Raised when a propagation step fails.

    Steps completed before the failure stay applied; the history record
    written first makes the partial edit discoverable.
    """

    retryable = True

    def __init__(
        self,
        agent_id: UUID,
        step: PropagationStep,
        direction: PropagationDirection,
        completed_steps: list[PropagationStep],
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Propagation {direction.value} for agent {agent_id} failed at step "
            f"{step.value}"
        )
        self.agent_id = agent_id
        self.step = step
        self.direction = direction
        self.completed_steps = completed_steps
        self.cause = cause


class BatchNotFoundError(IdentityEditError):
    """Raised when no history exists for a batch id."""

    def __init__(self, batch_id: UUID) -> None:
        super().__init__(f"Edit batch {batch_id} not found")
        self.batch_id = batch_id


class BatchAlreadyUndoneError(IdentityEditError):
    """Raised when undoing a batch that is already undone."""

    def __init__(self, batch_id: UUID) -> None:
        super().__init__(f"Edit batch {batch_id} has already been undone")
        self.batch_id = batch_id


class UndoWindowExpiredError(IdentityEditError):
    """Raised when the undo window of a batch has elapsed."""

    def __init__(self, batch_id: UUID, window_hours: int) -> None:
        super().__init__(
            f"Edit batch {batch_id} is older than {window_hours} hours and can no "
            "longer be undone"
        )
        self.batch_id = batch_id
        self.window_hours = window_hours


class BatchSupersededError(IdentityEditError):
    """Raised when a newer active batch touched the same agents or phones."""

    def __init__(self, batch_id: UUID, newer_batch_ids: list[UUID]) -> None:
        super().__init__(
            f"Edit batch {batch_id} was superseded by a newer edit; undo the newer "
            "batch first"
        )
        self.batch_id = batch_id
        self.newer_batch_ids = newer_batch_ids


class UndoFailedError(IdentityEditError):
    """Raised when reverting a batch fails partway.

    The batch stays active and the undo may be retried.
    """

    retryable = True

    def __init__(self, batch_id: UUID, reverted_count: int, cause: Exception) -> None:
        super().__init__(f"Undo of edit batch {batch_id} failed; please try again")
        self.batch_id = batch_id
        self.reverted_count = reverted_count
        self.cause = cause


class BatchApplyError(IdentityEditError):
    """Raised when a submitted batch stops partway through propagation.

    Edits applied before the failure are not rolled back.
    """

    retryable = True

    def __init__(self, batch_id: UUID, applied_count: int, cause: PropagationError) -> None:
        super().__init__(
            "Failed to update agents. Some changes may not have been saved; "
            "please review and try again"
        )
        self.batch_id = batch_id
        self.applied_count = applied_count
        self.cause = cause
