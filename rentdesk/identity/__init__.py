"""Agent identity edits: validation, propagation, history and undo."""

from rentdesk.identity.conflicts import ConflictChecker
from rentdesk.identity.errors import (
    BatchAlreadyUndoneError,
    BatchApplyError,
    BatchNotFoundError,
    BatchSupersededError,
    IdentityEditError,
    PropagationError,
    UndoFailedError,
    UndoWindowExpiredError,
)
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.propagator import IdentityPropagator
from rentdesk.identity.service import AgentEditService, HistoryChange
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.identity.undo import UndoEngine
from rentdesk.identity.validator import EditValidator

__all__ = [
    "AgentDirectoryStore",
    "AgentEditService",
    "BatchAlreadyUndoneError",
    "BatchApplyError",
    "BatchHistoryStore",
    "BatchNotFoundError",
    "BatchSupersededError",
    "ConflictChecker",
    "EditValidator",
    "HistoryChange",
    "IdentityEditError",
    "IdentityPropagator",
    "PropagationError",
    "UndoEngine",
    "UndoFailedError",
    "UndoWindowExpiredError",
]
