"""Edit history records and the views derived from them."""

import math
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from rentdesk.identity.models.enums import BatchStatus, DenormalizedCollection


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class HistoryRecord(BaseModel):
    """One agent's identity change within a batch.

    Written before the change is propagated. The only later mutation
    is setting `undone_at`, which is terminal.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Record identifier")
    batch_id: UUID = Field(..., description="Batch the change belongs to")
    agent_id: UUID = Field(..., description="Edited agent")
    old_name: str = Field(..., description="Name before the edit")
    old_phone: str = Field(..., description="Phone before the edit")
    new_name: str = Field(..., description="Name after the edit")
    new_phone: str = Field(..., description="Phone after the edit")
    edited_by: str | None = Field(default=None, description="Operator who submitted")
    edited_at: datetime = Field(default_factory=utc_now, description="Submission time")
    undone_at: datetime | None = Field(default=None, description="Set once when undone")

    @property
    def is_undone(self) -> bool:
        return self.undone_at is not None

    @property
    def phones(self) -> frozenset[str]:
        return frozenset({self.old_phone, self.new_phone})


def expires_at(edited_at: datetime, window_hours: int) -> datetime:
    """Instant after which a batch edited at `edited_at` can no longer be undone."""
    return edited_at + timedelta(hours=window_hours)


def is_expired(edited_at: datetime, now: datetime, window_hours: int) -> bool:
    """Whether the undo window has elapsed.

    The bound is inclusive: at exactly `edited_at + window` the batch
    is still undoable.
    """
    return now > expires_at(edited_at, window_hours)


def hours_remaining(edited_at: datetime, now: datetime, window_hours: int) -> int:
    """Whole hours left in the undo window, rounded up and never negative."""
    remaining = (expires_at(edited_at, window_hours) - now).total_seconds() / 3600
    return math.ceil(max(0.0, remaining))


def derive_status(
    records: list[HistoryRecord], now: datetime, window_hours: int
) -> BatchStatus:
    """Classify a batch from its records."""
    if any(record.is_undone for record in records):
        return BatchStatus.UNDONE
    edited_at = min(record.edited_at for record in records)
    if is_expired(edited_at, now, window_hours):
        return BatchStatus.EXPIRED
    return BatchStatus.ACTIVE


class BatchView(BaseModel):
    """A batch of history records as listed for undo."""

    batch_id: UUID = Field(..., description="Batch identifier")
    edited_at: datetime = Field(..., description="Submission time")
    agent_count: int = Field(..., ge=0, description="Agents edited in the batch")
    edits: list[HistoryRecord] = Field(default_factory=list, description="Batch records")
    expired: bool = Field(default=False, description="Undo window has elapsed")
    hours_remaining: int = Field(default=0, ge=0, description="Hours left to undo")
    expires_at: datetime | None = Field(default=None, description="End of the undo window")

    @classmethod
    def from_records(
        cls,
        batch_id: UUID,
        records: list[HistoryRecord],
        *,
        now: datetime,
        window_hours: int,
    ) -> "BatchView":
        """Build a view from the records of one batch."""
        edited_at = min(record.edited_at for record in records)
        return cls(
            batch_id=batch_id,
            edited_at=edited_at,
            agent_count=len(records),
            edits=records,
            expired=is_expired(edited_at, now, window_hours),
            hours_remaining=hours_remaining(edited_at, now, window_hours),
            expires_at=expires_at(edited_at, window_hours),
        )


class HistoryExportRow(BaseModel):
    """A history record flattened for audit export."""

    batch_id: UUID
    agent_id: UUID
    edited_at: datetime
    old_name: str
    old_phone: str
    new_name: str
    new_phone: str
    edited_by: str | None = None
    status: BatchStatus
    undone_at: datetime | None = None
    hours_remaining: int | None = Field(
        default=None, description="None once the record is undone"
    )


class PropagationResult(BaseModel):
    """Counts of records rewritten by one propagation."""

    agent_id: UUID
    agent_updated: bool = False
    updated: dict[DenormalizedCollection, int] = Field(default_factory=dict)

    @property
    def total_records(self) -> int:
        return sum(self.updated.values())


class UndoResult(BaseModel):
    """Outcome of a successful undo."""

    batch_id: UUID
    reverted_count: int = Field(..., ge=0, description="History records reverted")
    undone_at: datetime
