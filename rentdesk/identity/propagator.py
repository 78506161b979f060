"""Propagation of one agent identity change across every copy of it.

There is no transaction spanning the collections. Steps run in a fixed
order and a failure leaves the earlier steps applied:

1. history record (forward only), written before anything else
2. the agent itself, by id
3. tenants, 4. agent earnings, 5. agent activity log, by copied phone

Nothing is retried after a failure, since a blind retry could re-apply a
step that already succeeded.
"""

from datetime import datetime
from uuid import UUID

from rentdesk.db.errors import NotFoundError, StoreError
from rentdesk.identity.errors import PropagationError
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.models import (
    DenormalizedCollection,
    HistoryRecord,
    PropagationDirection,
    PropagationResult,
    PropagationStep,
    ProposedEdit,
)
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.observability.logging import get_logger
from rentdesk.observability.metrics import PROPAGATED_RECORDS, PROPAGATION_FAILURES

logger = get_logger(__name__)

COLLECTION_STEPS: tuple[tuple[DenormalizedCollection, PropagationStep], ...] = (
    (DenormalizedCollection.TENANTS, PropagationStep.TENANTS),
    (DenormalizedCollection.AGENT_EARNINGS, PropagationStep.AGENT_EARNINGS),
    (DenormalizedCollection.AGENT_ACTIVITY_LOG, PropagationStep.AGENT_ACTIVITY_LOG),
)


def edit_from_history(record: HistoryRecord) -> ProposedEdit:
    """Rebuild the edit a history record was written for."""
    return ProposedEdit(
        agent_id=record.agent_id,
        original_name=record.old_name,
        original_phone=record.old_phone,
        new_name=record.new_name,
        new_phone=record.new_phone,
    )


class IdentityPropagator:
    """Applies an identity change to the agent and all denormalized copies."""

    def __init__(
        self,
        directory: AgentDirectoryStore,
        history: BatchHistoryStore,
    ) -> None:
        """Initialize propagator.

        Args:
            directory: Store for agents and denormalized records
            history: Store receiving the forward history record
        """
        self._directory = directory
        self._history = history

    async def apply(
        self,
        edit: ProposedEdit,
        direction: PropagationDirection,
        *,
        batch_id: UUID | None = None,
        edited_by: str | None = None,
        edited_at: datetime | None = None,
    ) -> PropagationResult:
        """Apply one identity change in the given direction.

        Forward matches copies holding the original phone and writes the
        new identity; reverse matches copies holding the new phone and
        writes the original identity back. Reverse is safe to repeat:
        copies already reverted no longer match, or are rewritten to the
        value they already hold when the phone did not change.

        Args:
            edit: The change, expressed original -> new
            direction: FORWARD to apply, REVERSE to undo
            batch_id: Batch to record the change under (forward only)
            edited_by: Operator recorded in history (forward only)
            edited_at: Submission time recorded in history (forward only)

        Raises:
            PropagationError: A step failed; earlier steps remain applied
        """
        if direction == PropagationDirection.FORWARD:
            if batch_id is None or edited_at is None:
                raise ValueError("Forward propagation requires batch_id and edited_at")
            from_phone = edit.original_phone
            to_name, to_phone = edit.new_name, edit.new_phone
        else:
            from_phone = edit.new_phone
            to_name, to_phone = edit.original_name, edit.original_phone

        log = logger.bind(
            agent_id=str(edit.agent_id),
            direction=direction.value,
            batch_id=str(batch_id) if batch_id else None,
        )
        completed: list[PropagationStep] = []
        result = PropagationResult(agent_id=edit.agent_id)
        step = PropagationStep.HISTORY

        try:
            if direction == PropagationDirection.FORWARD:
                await self._history.record(batch_id, edit, edited_by, edited_at)
                completed.append(step)

            step = PropagationStep.AGENT
            if not await self._directory.update_agent(edit.agent_id, to_name, to_phone):
                raise NotFoundError(f"Agent {edit.agent_id} not found")
            result.agent_updated = True
            completed.append(step)

            for collection, step in COLLECTION_STEPS:
                updated = await self._directory.update_records_by_phone(
                    collection, from_phone, to_name, to_phone
                )
                result.updated[collection] = updated
                PROPAGATED_RECORDS.labels(
                    collection=collection.value, direction=direction.value
                ).inc(updated)
                completed.append(step)
        except StoreError as e:
            PROPAGATION_FAILURES.labels(step=step.value, direction=direction.value).inc()
            log.error(
                "identity_propagation_failed",
                step=step.value,
                completed_steps=[s.value for s in completed],
                error=str(e),
            )
            raise PropagationError(
                agent_id=edit.agent_id,
                step=step,
                direction=direction,
                completed_steps=completed,
                cause=e,
            ) from e

        log.info(
            "identity_propagated",
            records_updated=result.total_records,
        )
        return result

    async def revert(self, record: HistoryRecord) -> PropagationResult:
        """Reverse the change a history record describes."""
        return await self.apply(edit_from_history(record), PropagationDirection.REVERSE)
