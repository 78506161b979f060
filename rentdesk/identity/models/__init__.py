"""Agent identity domain models."""

from rentdesk.identity.models.agent import AgentIdentity, DenormalizedRecord
from rentdesk.identity.models.edit import (
    AgentEditError,
    BatchSubmitResult,
    EditBatch,
    ProposedEdit,
    merge_edit_errors,
)
from rentdesk.identity.models.enums import (
    BatchStatus,
    DenormalizedCollection,
    EditErrorKind,
    PropagationDirection,
    PropagationStep,
)
from rentdesk.identity.models.history import (
    BatchView,
    HistoryExportRow,
    HistoryRecord,
    PropagationResult,
    UndoResult,
    derive_status,
    expires_at,
    hours_remaining,
    is_expired,
    utc_now,
)

__all__ = [
    "AgentEditError",
    "AgentIdentity",
    "BatchStatus",
    "BatchSubmitResult",
    "BatchView",
    "DenormalizedCollection",
    "DenormalizedRecord",
    "EditBatch",
    "EditErrorKind",
    "HistoryExportRow",
    "HistoryRecord",
    "PropagationDirection",
    "PropagationResult",
    "PropagationStep",
    "ProposedEdit",
    "UndoResult",
    "derive_status",
    "expires_at",
    "hours_remaining",
    "is_expired",
    "merge_edit_errors",
    "utc_now",
]
