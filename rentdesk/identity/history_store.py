"""BatchHistoryStore abstract interface."""

from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta
from uuid import UUID

from rentdesk.identity.models import BatchView, HistoryRecord, ProposedEdit


class BatchHistoryStore(ABC):
    """Append-only log of agent identity edits, keyed by batch.

    Records are immutable once written except for `mark_undone`,
    which sets `undone_at` on every record of a batch.
    """

    @abstractmethod
    async def record(
        self,
        batch_id: UUID,
        edit: ProposedEdit,
        edited_by: str | None,
        edited_at: datetime,
    ) -> HistoryRecord:
        """Append a history record for one edit of a batch."""
        pass

    @abstractmethod
    async def get_batch(self, batch_id: UUID) -> list[HistoryRecord]:
        """Get every record of a batch, undone or not."""
        pass

    @abstractmethod
    async def list_since(self, cutoff: datetime) -> list[HistoryRecord]:
        """List records not yet undone with `edited_at >= cutoff`, newest first."""
        pass

    @abstractmethod
    async def list_after(self, edited_at: datetime) -> list[HistoryRecord]:
        """List records not yet undone edited strictly after an instant."""
        pass

    @abstractmethod
    async def mark_undone(self, batch_id: UUID, when: datetime) -> int:
        """Set `undone_at` on all records of a batch still active.

        Returns the number of records marked.
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[HistoryRecord]:
        """List every record, newest first."""
        pass

    async def list_active(self, window_hours: int, *, now: datetime) -> list[BatchView]:
        """List undoable batches, newest first.

        A batch is listed when none of its records is undone and it was
        edited at or after `now - window_hours`.
        """
        cutoff = now - timedelta(hours=window_hours)
        records = await self.list_since(cutoff)
        return group_batches(records, now=now, window_hours=window_hours)


def group_batches(
    records: list[HistoryRecord], *, now: datetime, window_hours: int
) -> list[BatchView]:
    """Group records by batch, keeping the order batches first appear in."""
    grouped: OrderedDict[UUID, list[HistoryRecord]] = OrderedDict()
    for record in records:
        grouped.setdefault(record.batch_id, []).append(record)
    return [
        BatchView.from_records(batch_id, batch_records, now=now, window_hours=window_hours)
        for batch_id, batch_records in grouped.items()
    ]
