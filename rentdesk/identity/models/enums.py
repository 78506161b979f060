"""Enums for the agent identity domain."""

from enum import Enum


class PropagationDirection(str, Enum):
    """Which way an identity change is pushed through the records."""

    FORWARD = "forward"  # original identity -> new identity
    REVERSE = "reverse"  # new identity -> original identity (undo)


class DenormalizedCollection(str, Enum):
    """Collections holding a snapshot copy of an agent's name and phone.

    Members are listed in the order propagation rewrites them.
    """

    TENANTS = "tenants"
    AGENT_EARNINGS = "agent_earnings"
    AGENT_ACTIVITY_LOG = "agent_activity_log"


class PropagationStep(str, Enum):
    """Individual writes performed for one identity change."""

    HISTORY = "history"
    AGENT = "agent"
    TENANTS = "tenants"
    AGENT_EARNINGS = "agent_earnings"
    AGENT_ACTIVITY_LOG = "agent_activity_log"


class EditErrorKind(str, Enum):
    """Why an edit was refused.

    Ordered by severity: a verification failure outranks a conflict,
    which outranks a local validation failure.
    """

    VALIDATION = "validation"  # Fix the input and resubmit
    CONFLICT = "conflict"  # Collides with a persisted agent
    VERIFICATION = "verification"  # Lookup failed, retry without editing

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    EditErrorKind.VALIDATION: 0,
    EditErrorKind.CONFLICT: 1,
    EditErrorKind.VERIFICATION: 2,
}


class BatchStatus(str, Enum):
    """Lifecycle of an edit batch.

    EXPIRED is derived at read time and never stored.
    """

    ACTIVE = "active"
    UNDONE = "undone"
    EXPIRED = "expired"
