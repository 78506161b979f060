"""Entry points for bulk agent identity edits and their undo.

AgentEditService wires the validator, conflict checker, propagator,
history store and undo engine together. Callers pass the editor
explicitly; nothing is read from session state.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel

from rentdesk.config.models.identity import IdentityEditConfig
from rentdesk.identity.conflicts import ConflictChecker
from rentdesk.identity.errors import BatchApplyError, PropagationError
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.models import (
    AgentEditError,
    BatchStatus,
    BatchSubmitResult,
    BatchView,
    EditBatch,
    HistoryExportRow,
    HistoryRecord,
    PropagationDirection,
    PropagationStep,
    ProposedEdit,
    UndoResult,
    derive_status,
    hours_remaining,
    utc_now,
)
from rentdesk.identity.propagator import IdentityPropagator
from rentdesk.identity.reconciliation import ConsistencyIssue, find_inconsistencies
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.identity.undo import UndoEngine
from rentdesk.identity.validator import EditValidator
from rentdesk.observability.logging import get_logger
from rentdesk.observability.metrics import EDIT_BATCHES, EDIT_REJECTIONS

logger = get_logger(__name__)


class HistoryAction(str, Enum):
    RECORDED = "recorded"
    UNDONE = "undone"


class HistoryChange(BaseModel):
    """Notification that the edit history of a batch changed."""

    batch_id: UUID
    action: HistoryAction
    record_count: int


HistoryNotifier = Callable[[HistoryChange], Awaitable[None]]


class AgentEditService:
    """Submits, lists, undoes and exports agent identity edit batches."""

    def __init__(
        self,
        directory: AgentDirectoryStore,
        history: BatchHistoryStore,
        *,
        config: IdentityEditConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
        notifier: HistoryNotifier | None = None,
    ) -> None:
        """Initialize service.

        Args:
            directory: Store for agents and denormalized records
            history: Edit history store
            config: Edit rules; defaults apply when omitted
            clock: Source of the current time
            notifier: Optional callback told about history changes
        """
        self._config = config or IdentityEditConfig()
        self._directory = directory
        self._history = history
        self._clock = clock
        self._notifier = notifier

        self._validator = EditValidator(
            max_name_length=self._config.max_name_length,
            max_phone_length=self._config.max_phone_length,
        )
        self._checker = ConflictChecker(directory, retries=self._config.conflict_check_retries)
        self._propagator = IdentityPropagator(directory, history)
        self._undo = UndoEngine(
            history,
            self._propagator,
            window_hours=self._config.undo_window_hours,
            restrict_to_latest=self._config.restrict_undo_to_latest,
            clock=clock,
        )

    async def submit_batch(
        self, edits: list[ProposedEdit], edited_by: str | None = None
    ) -> BatchSubmitResult:
        """Validate and apply a batch of identity edits.

        No-op edits are dropped first. Any validation, conflict or
        verification error rejects the whole batch before anything is
        written. Otherwise edits are applied one at a time, each writing
        its history record before touching any copy.

        Raises:
            BatchApplyError: Propagation stopped partway; earlier edits stay applied
        """
        editor = edited_by or self._config.default_edited_by
        uppercase = self._config.uppercase_names
        effective = [
            edit.normalized(uppercase)
            for edit in edits
            if not edit.is_noop_when_normalized(uppercase)
        ]

        if not effective:
            EDIT_BATCHES.labels(outcome="empty").inc()
            logger.info("edit_batch_empty", submitted=len(edits))
            return BatchSubmitResult(applied_count=0)

        errors = self._validator.validate(effective)
        if not errors:
            errors = await self._checker.check(effective)
        if errors:
            self._record_rejection(errors)
            return BatchSubmitResult(errors=errors)

        batch = EditBatch(batch_id=uuid4(), edits=effective)
        batch_id = batch.batch_id
        edited_at = self._clock()
        log = logger.bind(batch_id=str(batch_id), edited_by=editor)
        applied = 0

        try:
            for edit in batch.edits:
                await self._propagator.apply(
                    edit,
                    PropagationDirection.FORWARD,
                    batch_id=batch_id,
                    edited_by=editor,
                    edited_at=edited_at,
                )
                applied += 1
        except PropagationError as e:
            EDIT_BATCHES.labels(outcome="failed").inc()
            log.error(
                "edit_batch_failed",
                applied_count=applied,
                total=len(effective),
                failed_agent_id=str(e.agent_id),
                step=e.step.value,
            )
            recorded = applied + (PropagationStep.HISTORY in e.completed_steps)
            await self._notify(batch_id, HistoryAction.RECORDED, recorded)
            raise BatchApplyError(batch_id, applied, e) from e

        EDIT_BATCHES.labels(outcome="applied").inc()
        log.info("edit_batch_applied", applied_count=applied)
        await self._notify(batch_id, HistoryAction.RECORDED, applied)
        return BatchSubmitResult(batch_id=batch_id, applied_count=applied)

    async def list_undoable_batches(self, window_hours: int | None = None) -> list[BatchView]:
        """List batches that can still be undone, newest first."""
        return await self._undo.list_undoable(window_hours)

    async def undo_batch(self, batch_id: UUID) -> UndoResult:
        """Revert a batch inside its undo window."""
        result = await self._undo.undo(batch_id)
        await self._notify(batch_id, HistoryAction.UNDONE, result.reverted_count)
        return result

    async def export_all_history(self) -> list[HistoryRecord]:
        """Every history record, undone or not, newest first."""
        return await self._history.list_all()

    async def export_history_rows(self) -> list[HistoryExportRow]:
        """History flattened for audit export with derived status."""
        now = self._clock()
        window = self._config.undo_window_hours
        rows = []
        for record in await self._history.list_all():
            status = derive_status([record], now, window)
            rows.append(
                HistoryExportRow(
                    batch_id=record.batch_id,
                    agent_id=record.agent_id,
                    edited_at=record.edited_at,
                    old_name=record.old_name,
                    old_phone=record.old_phone,
                    new_name=record.new_name,
                    new_phone=record.new_phone,
                    edited_by=record.edited_by,
                    status=status,
                    undone_at=record.undone_at,
                    hours_remaining=(
                        None
                        if status == BatchStatus.UNDONE
                        else hours_remaining(record.edited_at, now, window)
                    ),
                )
            )
        return rows

    async def find_inconsistencies(self) -> list[ConsistencyIssue]:
        """Copies whose identity disagrees with the agents collection."""
        return await find_inconsistencies(self._directory)

    def _record_rejection(self, errors: list[AgentEditError]) -> None:
        EDIT_BATCHES.labels(outcome="rejected").inc()
        for error in errors:
            EDIT_REJECTIONS.labels(kind=error.kind.value).inc()
        logger.info(
            "edit_batch_rejected",
            agent_count=len(errors),
            kinds=sorted({error.kind.value for error in errors}),
        )

    async def _notify(self, batch_id: UUID, action: HistoryAction, record_count: int) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier(
                HistoryChange(batch_id=batch_id, action=action, record_count=record_count)
            )
        except Exception as e:
            # History is already written; the batch outcome stands
            logger.warning(
                "history_notification_failed",
                batch_id=str(batch_id),
                action=action.value,
                error=str(e),
            )
