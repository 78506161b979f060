"""Unit tests for uniqueness checks against persisted agents."""

from uuid import uuid4

import pytest

from rentdesk.db.errors import ConnectionError
from rentdesk.identity.conflicts import (
    UNVERIFIED_NAME,
    UNVERIFIED_PHONE,
    ConflictChecker,
)
from rentdesk.identity.models import AgentIdentity, EditErrorKind, ProposedEdit
from rentdesk.identity.stores import InMemoryAgentDirectoryStore


class FlakyDirectoryStore(InMemoryAgentDirectoryStore):
    """Directory whose phone lookups fail a set number of times."""

    def __init__(self, phone_failures: int = 0, name_failures: int = 0) -> None:
        super().__init__()
        self.phone_failures = phone_failures
        self.name_failures = name_failures
        self.phone_calls = 0

    async def find_agent_by_phone(self, phone, *, exclude_id=None):
        self.phone_calls += 1
        if self.phone_failures > 0:
            self.phone_failures -= 1
            raise ConnectionError("connection reset")
        return await super().find_agent_by_phone(phone, exclude_id=exclude_id)

    async def find_agent_by_name(self, name, *, exclude_id=None):
        if self.name_failures > 0:
            self.name_failures -= 1
            raise ConnectionError("connection reset")
        return await super().find_agent_by_name(name, exclude_id=exclude_id)


def edit_for(agent: AgentIdentity, name: str, phone: str) -> ProposedEdit:
    return ProposedEdit(
        agent_id=agent.id,
        original_name=agent.name,
        original_phone=agent.phone,
        new_name=name,
        new_phone=phone,
    )


class TestConflicts:
    """Tests for collisions with other agents."""

    @pytest.mark.asyncio
    async def test_no_conflict(self, seeded_directory, john) -> None:
        checker = ConflictChecker(seeded_directory)

        assert await checker.check([edit_for(john, "JOHNNY", "0799")]) == []

    @pytest.mark.asyncio
    async def test_name_taken_case_insensitively(self, seeded_directory, john) -> None:
        checker = ConflictChecker(seeded_directory)

        errors = await checker.check([edit_for(john, "Mary", "0700")])

        assert errors[0].reasons == ['Agent with name "Mary" already exists']
        assert errors[0].kind == EditErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_phone_taken_names_the_owner(self, seeded_directory, john) -> None:
        checker = ConflictChecker(seeded_directory)

        errors = await checker.check([edit_for(john, "JOHN", "0711")])

        assert errors[0].reasons == ['Agent with phone "0711" already exists (MARY)']

    @pytest.mark.asyncio
    async def test_both_conflicts_reported_together(self, seeded_directory, john) -> None:
        checker = ConflictChecker(seeded_directory)

        errors = await checker.check([edit_for(john, "MARY", "0711")])

        assert len(errors) == 1
        assert len(errors[0].reasons) == 2


class TestStaleEdits:
    """Tests for edits prepared against an identity that has changed."""

    @pytest.mark.asyncio
    async def test_missing_agent(self, seeded_directory) -> None:
        ghost = AgentIdentity(id=uuid4(), name="GHOST", phone="0000")
        checker = ConflictChecker(seeded_directory)

        errors = await checker.check([edit_for(ghost, "GHOSTLY", "0001")])

        assert errors[0].reasons == ["Agent no longer exists"]

    @pytest.mark.asyncio
    async def test_agent_changed_since_edit_was_prepared(self, seeded_directory, john) -> None:
        await seeded_directory.update_agent(john.id, "JON", "0700")
        checker = ConflictChecker(seeded_directory)

        errors = await checker.check([edit_for(john, "JOHNNY", "0799")])

        assert errors[0].kind == EditErrorKind.CONFLICT
        assert "reload and retry" in errors[0].reasons[0]


class TestLookupFailures:
    """Tests for lookups that raise StoreError."""

    @pytest.mark.asyncio
    async def test_retries_once_then_succeeds(self, john) -> None:
        store = FlakyDirectoryStore(phone_failures=1)
        await store.save_agent(john)
        checker = ConflictChecker(store, retries=1)

        errors = await checker.check([edit_for(john, "JOHN", "0799")])

        assert errors == []
        assert store.phone_calls == 2

    @pytest.mark.asyncio
    async def test_persistent_failure_is_a_verification_error(self, john) -> None:
        store = FlakyDirectoryStore(phone_failures=5, name_failures=5)
        await store.save_agent(john)
        checker = ConflictChecker(store, retries=1)

        errors = await checker.check([edit_for(john, "JOHNNY", "0799")])

        assert len(errors) == 1
        assert errors[0].kind == EditErrorKind.VERIFICATION
        assert errors[0].retryable
        assert errors[0].reasons == [UNVERIFIED_NAME, UNVERIFIED_PHONE]
        assert store.phone_calls == 2

    @pytest.mark.asyncio
    async def test_verification_outranks_conflict(self, seeded_directory, john) -> None:
        flaky = FlakyDirectoryStore(phone_failures=5)
        for agent in await seeded_directory.list_agents():
            await flaky.save_agent(agent)
        checker = ConflictChecker(flaky, retries=0)

        errors = await checker.check([edit_for(john, "MARY", "0799")])

        assert errors[0].kind == EditErrorKind.VERIFICATION
        assert 'Agent with name "MARY" already exists' in errors[0].reasons
