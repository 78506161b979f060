"""Time-boxed reversal of edit batches.

A batch is ACTIVE until it is undone (stored, terminal) or its window
elapses (EXPIRED, derived at read time and never written). Undo reverts
every record of the batch and only then marks the whole batch undone, so a
failed undo leaves the batch ACTIVE and retryable.
"""

import time
from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from rentdesk.db.errors import StoreError
from rentdesk.identity.errors import (
    BatchAlreadyUndoneError,
    BatchNotFoundError,
    BatchSupersededError,
    PropagationError,
    UndoFailedError,
    UndoWindowExpiredError,
)
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.models import (
    BatchView,
    HistoryRecord,
    UndoResult,
    is_expired,
    utc_now,
)
from rentdesk.identity.propagator import IdentityPropagator
from rentdesk.observability.logging import get_logger
from rentdesk.observability.metrics import UNDO_COUNT, UNDO_LATENCY

logger = get_logger(__name__)


class UndoEngine:
    """Finds undoable batches and reverts them through the propagator."""

    def __init__(
        self,
        history: BatchHistoryStore,
        propagator: IdentityPropagator,
        *,
        window_hours: int = 24,
        restrict_to_latest: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize engine.

        Args:
            history: Edit history store
            propagator: Propagator used in reverse
            window_hours: Length of the undo window
            restrict_to_latest: Refuse batches superseded by a newer active batch
            clock: Source of the current time
        """
        self._history = history
        self._propagator = propagator
        self._window_hours = window_hours
        self._restrict_to_latest = restrict_to_latest
        self._clock = clock

    @property
    def window_hours(self) -> int:
        return self._window_hours

    async def list_undoable(self, window_hours: int | None = None) -> list[BatchView]:
        """List active batches inside the window, newest first."""
        return await self._history.list_active(
            window_hours or self._window_hours, now=self._clock()
        )

    async def undo(self, batch_id: UUID) -> UndoResult:
        """Revert every change of a batch and mark it undone.

        Raises:
            BatchNotFoundError: No history for the batch
            BatchAlreadyUndoneError: The batch was already undone
            UndoWindowExpiredError: The window elapsed
            BatchSupersededError: A newer active batch touched the same agents or phones
            UndoFailedError: A revert or history access failed; the batch stays active
        """
        now = self._clock()
        log = logger.bind(batch_id=str(batch_id))
        try:
            records = await self._history.get_batch(batch_id)
        except StoreError as e:
            raise self._failed(log, batch_id, 0, e) from e

        try:
            self._ensure_undoable(batch_id, records, now)
            if self._restrict_to_latest:
                await self._ensure_latest(batch_id, records)
        except (BatchNotFoundError, BatchAlreadyUndoneError, UndoWindowExpiredError,
                BatchSupersededError) as e:
            UNDO_COUNT.labels(outcome=type(e).__name__).inc()
            log.warning("undo_rejected", reason=e.message)
            raise
        except StoreError as e:
            raise self._failed(log, batch_id, 0, e) from e

        started = time.perf_counter()
        reverted = 0
        for record in records:
            try:
                await self._propagator.revert(record)
            except PropagationError as e:
                UNDO_COUNT.labels(outcome="failed").inc()
                log.error(
                    "undo_failed",
                    agent_id=str(record.agent_id),
                    reverted_count=reverted,
                    step=e.step.value,
                )
                raise UndoFailedError(batch_id, reverted, e) from e
            reverted += 1

        try:
            marked = await self._history.mark_undone(batch_id, now)
        except StoreError as e:
            raise self._failed(log, batch_id, reverted, e) from e
        UNDO_LATENCY.observe(time.perf_counter() - started)
        UNDO_COUNT.labels(outcome="undone").inc()
        log.info("batch_undone", reverted_count=reverted, marked=marked)
        return UndoResult(batch_id=batch_id, reverted_count=reverted, undone_at=now)

    def _failed(
        self, log: Any, batch_id: UUID, reverted: int, error: StoreError
    ) -> UndoFailedError:
        UNDO_COUNT.labels(outcome="failed").inc()
        log.error("undo_history_unavailable", reverted_count=reverted, error=str(error))
        return UndoFailedError(batch_id, reverted, error)

    def _ensure_undoable(
        self, batch_id: UUID, records: list[HistoryRecord], now: datetime
    ) -> None:
        if not records:
            raise BatchNotFoundError(batch_id)
        if any(record.is_undone for record in records):
            raise BatchAlreadyUndoneError(batch_id)
        edited_at = min(record.edited_at for record in records)
        if is_expired(edited_at, now, self._window_hours):
            raise UndoWindowExpiredError(batch_id, self._window_hours)

    async def _ensure_latest(self, batch_id: UUID, records: list[HistoryRecord]) -> None:
        """Reject the undo when a newer active batch overlaps this one.

        Copies are matched by phone alone, so reverting an older batch after
        a newer one re-used its agents or phones would rewrite records the
        newer batch owns.
        """
        edited_at = max(record.edited_at for record in records)
        agent_ids = {record.agent_id for record in records}
        phones: set[str] = set()
        for record in records:
            phones |= record.phones

        newer = {
            other.batch_id
            for other in await self._history.list_after(edited_at)
            if other.batch_id != batch_id
            and (other.agent_id in agent_ids or other.phones & phones)
        }
        if newer:
            raise BatchSupersededError(batch_id, sorted(newer, key=str))
