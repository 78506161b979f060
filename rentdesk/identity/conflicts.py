"""Uniqueness checks against agents persisted outside the batch."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from rentdesk.db.errors import StoreError
from rentdesk.identity.models import (
    AgentEditError,
    EditErrorKind,
    ProposedEdit,
    merge_edit_errors,
)
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

UNVERIFIED_AGENT = "Could not load the current agent record; please retry"
UNVERIFIED_NAME = "Could not verify that the name is unique; please retry"
UNVERIFIED_PHONE = "Could not verify that the phone is unique; please retry"


class LookupUnavailable(Exception):
    """A lookup kept failing after its retries."""


class ConflictChecker:
    """Detects collisions between edited identities and other agents.

    Also refuses edits prepared against an identity that has since changed,
    since propagation finds copies by the original phone.

    Reflects the store at call time only. Two batches racing on the same
    phone are not serialized against each other.
    """

    def __init__(self, store: AgentDirectoryStore, retries: int = 1) -> None:
        """Initialize checker.

        Args:
            store: Store holding the agents collection
            retries: Extra attempts for a lookup that raises StoreError
        """
        self._store = store
        self._retries = retries

    async def check(self, edits: list[ProposedEdit]) -> list[AgentEditError]:
        """Check every edit against persisted agents other than itself.

        Edits are checked one at a time. A lookup that keeps failing yields
        a verification error for that agent instead of a clean result.
        """
        errors: list[AgentEditError] = []
        for edit in edits:
            errors.extend(await self._check_current(edit))
            if edit.name_changed:
                errors.extend(await self._check_name(edit))
            if edit.phone_changed:
                errors.extend(await self._check_phone(edit))
        return merge_edit_errors(errors)

    async def _check_current(self, edit: ProposedEdit) -> list[AgentEditError]:
        try:
            current = await self._lookup(lambda: self._store.get_agent(edit.agent_id))
        except LookupUnavailable:
            return [_error(edit, UNVERIFIED_AGENT, EditErrorKind.VERIFICATION)]
        if current is None:
            return [_error(edit, "Agent no longer exists", EditErrorKind.CONFLICT)]
        if (
            current.name.upper() != edit.original_name.upper()
            or current.phone != edit.original_phone
        ):
            return [
                _error(
                    edit,
                    "Agent was changed since this edit was prepared; reload and retry",
                    EditErrorKind.CONFLICT,
                )
            ]
        return []

    async def _check_name(self, edit: ProposedEdit) -> list[AgentEditError]:
        try:
            existing = await self._lookup(
                lambda: self._store.find_agent_by_name(edit.new_name, exclude_id=edit.agent_id)
            )
        except LookupUnavailable:
            return [_error(edit, UNVERIFIED_NAME, EditErrorKind.VERIFICATION)]
        if existing is None:
            return []
        return [
            _error(edit, f'Agent with name "{edit.new_name}" already exists', EditErrorKind.CONFLICT)
        ]

    async def _check_phone(self, edit: ProposedEdit) -> list[AgentEditError]:
        try:
            existing = await self._lookup(
                lambda: self._store.find_agent_by_phone(edit.new_phone, exclude_id=edit.agent_id)
            )
        except LookupUnavailable:
            return [_error(edit, UNVERIFIED_PHONE, EditErrorKind.VERIFICATION)]
        if existing is None:
            return []
        return [
            _error(
                edit,
                f'Agent with phone "{edit.new_phone}" already exists ({existing.name})',
                EditErrorKind.CONFLICT,
            )
        ]

    async def _lookup(self, query: Callable[[], Awaitable[T]]) -> T:
        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await query()
            except StoreError as e:
                logger.warning(
                    "conflict_lookup_failed",
                    attempt=attempt,
                    attempts=attempts,
                    error=str(e),
                )
        raise LookupUnavailable()


def _error(edit: ProposedEdit, reason: str, kind: EditErrorKind) -> AgentEditError:
    return AgentEditError(
        agent_id=edit.agent_id,
        agent_name=edit.original_name,
        reasons=[reason],
        kind=kind,
    )
