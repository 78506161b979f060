"""Unit tests for identity propagation across denormalized records."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from rentdesk.db.errors import ConnectionError
from rentdesk.identity.errors import PropagationError
from rentdesk.identity.models import (
    DenormalizedCollection,
    DenormalizedRecord,
    HistoryRecord,
    PropagationDirection,
    PropagationStep,
    ProposedEdit,
)
from rentdesk.identity.propagator import IdentityPropagator, edit_from_history
from rentdesk.identity.stores import InMemoryAgentDirectoryStore

EDITED_AT = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FailingCollectionStore(InMemoryAgentDirectoryStore):
    """Directory that fails when rewriting one collection."""

    def __init__(self, failing: DenormalizedCollection) -> None:
        super().__init__()
        self.failing = failing

    async def update_records_by_phone(self, collection, match_phone, name, phone):
        if collection == self.failing:
            raise ConnectionError("write timed out")
        return await super().update_records_by_phone(collection, match_phone, name, phone)


def rename(agent, name: str = "JOHNNY", phone: str = "0799") -> ProposedEdit:
    return ProposedEdit(
        agent_id=agent.id,
        original_name=agent.name,
        original_phone=agent.phone,
        new_name=name,
        new_phone=phone,
    )


async def copies(store, collection: DenormalizedCollection) -> list[tuple[str, str]]:
    return sorted((r.agent_name, r.agent_phone) for r in await store.list_records(collection))


class TestForward:
    """Tests for forward propagation."""

    @pytest.mark.asyncio
    async def test_rewrites_agent_and_every_copy(self, seeded_directory, history, john) -> None:
        propagator = IdentityPropagator(seeded_directory, history)
        batch_id = uuid4()

        result = await propagator.apply(
            rename(john),
            PropagationDirection.FORWARD,
            batch_id=batch_id,
            edited_by="Admin",
            edited_at=EDITED_AT,
        )

        agent = await seeded_directory.get_agent(john.id)
        assert (agent.name, agent.phone) == ("JOHNNY", "0799")
        for collection in DenormalizedCollection:
            assert await copies(seeded_directory, collection) == [
                ("JOHNNY", "0799"),
                ("MARY", "0711"),
            ]
        assert result.agent_updated
        assert result.total_records == 3

        records = await history.get_batch(batch_id)
        assert len(records) == 1
        assert records[0].old_phone == "0700"
        assert records[0].edited_by == "Admin"

    @pytest.mark.asyncio
    async def test_copies_matched_by_phone_only(self, seeded_directory, history, john) -> None:
        # A copy with a stale name still belongs to the phone's owner
        await seeded_directory.save_record(
            DenormalizedRecord(
                collection=DenormalizedCollection.TENANTS,
                agent_name="J. DOE",
                agent_phone="0700",
            )
        )
        propagator = IdentityPropagator(seeded_directory, history)

        result = await propagator.apply(
            rename(john), PropagationDirection.FORWARD, batch_id=uuid4(), edited_at=EDITED_AT
        )

        assert result.updated[DenormalizedCollection.TENANTS] == 2
        assert await seeded_directory.list_records(
            DenormalizedCollection.TENANTS, agent_phone="0700"
        ) == []

    @pytest.mark.asyncio
    async def test_forward_requires_batch_and_time(self, seeded_directory, history, john) -> None:
        propagator = IdentityPropagator(seeded_directory, history)

        with pytest.raises(ValueError):
            await propagator.apply(rename(john), PropagationDirection.FORWARD)

    @pytest.mark.asyncio
    async def test_missing_agent_fails_after_history(self, directory, history) -> None:
        propagator = IdentityPropagator(directory, history)
        edit = ProposedEdit(
            agent_id=uuid4(),
            original_name="GHOST",
            original_phone="0000",
            new_name="GHOSTLY",
            new_phone="0001",
        )
        batch_id = uuid4()

        with pytest.raises(PropagationError) as exc_info:
            await propagator.apply(
                edit, PropagationDirection.FORWARD, batch_id=batch_id, edited_at=EDITED_AT
            )

        assert exc_info.value.step == PropagationStep.AGENT
        assert exc_info.value.completed_steps == [PropagationStep.HISTORY]
        assert len(await history.get_batch(batch_id)) == 1


class TestPartialFailure:
    """Tests for a step failing partway through."""

    @pytest.mark.asyncio
    async def test_history_written_before_any_effect(self, history, john) -> None:
        store = FailingCollectionStore(DenormalizedCollection.AGENT_EARNINGS)
        await store.save_agent(john)
        for collection in DenormalizedCollection:
            await store.save_record(
                DenormalizedRecord(collection=collection, agent_name="JOHN", agent_phone="0700")
            )
        propagator = IdentityPropagator(store, history)
        batch_id = uuid4()

        with pytest.raises(PropagationError) as exc_info:
            await propagator.apply(
                rename(john), PropagationDirection.FORWARD, batch_id=batch_id, edited_at=EDITED_AT
            )

        error = exc_info.value
        assert error.step == PropagationStep.AGENT_EARNINGS
        assert error.completed_steps == [
            PropagationStep.HISTORY,
            PropagationStep.AGENT,
            PropagationStep.TENANTS,
        ]
        assert error.retryable
        assert isinstance(error.cause, ConnectionError)

        # Earlier steps stay applied, later ones never ran
        assert len(await history.get_batch(batch_id)) == 1
        assert await copies(store, DenormalizedCollection.TENANTS) == [("JOHNNY", "0799")]
        assert await copies(store, DenormalizedCollection.AGENT_EARNINGS) == [("JOHN", "0700")]
        assert await copies(store, DenormalizedCollection.AGENT_ACTIVITY_LOG) == [("JOHN", "0700")]


class TestReverse:
    """Tests for reverse propagation used by undo."""

    @pytest.mark.asyncio
    async def test_revert_restores_original_identity(self, seeded_directory, history, john) -> None:
        propagator = IdentityPropagator(seeded_directory, history)
        batch_id = uuid4()
        await propagator.apply(
            rename(john), PropagationDirection.FORWARD, batch_id=batch_id, edited_at=EDITED_AT
        )
        [record] = await history.get_batch(batch_id)

        await propagator.revert(record)

        agent = await seeded_directory.get_agent(john.id)
        assert (agent.name, agent.phone) == ("JOHN", "0700")
        for collection in DenormalizedCollection:
            assert await copies(seeded_directory, collection) == [
                ("JOHN", "0700"),
                ("MARY", "0711"),
            ]
        # Reverse never writes history
        assert len(await history.list_all()) == 1

    @pytest.mark.asyncio
    async def test_revert_is_idempotent(self, seeded_directory, history, john) -> None:
        propagator = IdentityPropagator(seeded_directory, history)
        batch_id = uuid4()
        await propagator.apply(
            rename(john), PropagationDirection.FORWARD, batch_id=batch_id, edited_at=EDITED_AT
        )
        [record] = await history.get_batch(batch_id)

        await propagator.revert(record)
        second = await propagator.revert(record)

        assert second.total_records == 0
        for collection in DenormalizedCollection:
            assert await copies(seeded_directory, collection) == [
                ("JOHN", "0700"),
                ("MARY", "0711"),
            ]

    def test_edit_from_history_round_trips_fields(self, john) -> None:
        record = HistoryRecord(
            batch_id=uuid4(),
            agent_id=john.id,
            old_name="JOHN",
            old_phone="0700",
            new_name="JOHNNY",
            new_phone="0799",
        )

        edit = edit_from_history(record)

        assert edit.original_name == "JOHN"
        assert edit.new_phone == "0799"
