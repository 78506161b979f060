"""Tests for the in-memory identity stores."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from rentdesk.identity.models import (
    AgentIdentity,
    DenormalizedCollection,
    DenormalizedRecord,
    ProposedEdit,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def proposed(agent_id=None) -> ProposedEdit:
    return ProposedEdit(
        agent_id=agent_id or uuid4(),
        original_name="JOHN",
        original_phone="0700",
        new_name="JOHNNY",
        new_phone="0799",
    )


class TestAgentLookups:
    """Tests for agent lookups used by the conflict checker."""

    @pytest.mark.asyncio
    async def test_find_by_name_ignores_case(self, seeded_directory, mary) -> None:
        found = await seeded_directory.find_agent_by_name("mary")

        assert found is not None
        assert found.id == mary.id

    @pytest.mark.asyncio
    async def test_lookups_exclude_the_edited_agent(self, seeded_directory, john) -> None:
        assert await seeded_directory.find_agent_by_name("JOHN", exclude_id=john.id) is None
        assert await seeded_directory.find_agent_by_phone("0700", exclude_id=john.id) is None
        assert await seeded_directory.find_agent_by_phone("0700") is not None

    @pytest.mark.asyncio
    async def test_phone_match_is_exact(self, seeded_directory) -> None:
        assert await seeded_directory.find_agent_by_phone("0700 ") is None

    @pytest.mark.asyncio
    async def test_update_missing_agent_returns_false(self, directory) -> None:
        assert await directory.update_agent(uuid4(), "X", "1") is False

    @pytest.mark.asyncio
    async def test_list_agents_sorted_by_name(self, directory) -> None:
        await directory.save_agent(AgentIdentity(name="zed", phone="1"))
        await directory.save_agent(AgentIdentity(name="ANN", phone="2"))

        assert [a.name for a in await directory.list_agents()] == ["ANN", "zed"]


class TestRecordUpdates:
    """Tests for rewriting denormalized copies."""

    @pytest.mark.asyncio
    async def test_update_by_phone_touches_one_collection(self, seeded_directory) -> None:
        updated = await seeded_directory.update_records_by_phone(
            DenormalizedCollection.TENANTS, "0700", "JOHNNY", "0799"
        )

        assert updated == 1
        earnings = await seeded_directory.list_records(
            DenormalizedCollection.AGENT_EARNINGS, agent_phone="0700"
        )
        assert len(earnings) == 1

    @pytest.mark.asyncio
    async def test_update_keeps_payload(self, directory) -> None:
        record = DenormalizedRecord(
            collection=DenormalizedCollection.AGENT_EARNINGS,
            agent_name="JOHN",
            agent_phone="0700",
            payload={"amount": 1200},
        )
        await directory.save_record(record)

        await directory.update_records_by_phone(
            DenormalizedCollection.AGENT_EARNINGS, "0700", "JOHNNY", "0799"
        )

        [updated] = await directory.list_records(DenormalizedCollection.AGENT_EARNINGS)
        assert updated.id == record.id
        assert updated.payload == {"amount": 1200}

    @pytest.mark.asyncio
    async def test_no_match_updates_nothing(self, seeded_directory) -> None:
        assert await seeded_directory.update_records_by_phone(
            DenormalizedCollection.TENANTS, "9999", "X", "1"
        ) == 0


class TestHistoryStore:
    """Tests for the edit history log."""

    @pytest.mark.asyncio
    async def test_record_and_get_batch(self, history) -> None:
        batch_id = uuid4()
        edit = proposed()

        record = await history.record(batch_id, edit, "Admin", NOW)

        assert record.batch_id == batch_id
        assert record.old_name == "JOHN"
        assert record.new_phone == "0799"
        assert record.undone_at is None
        assert await history.get_batch(batch_id) == [record]

    @pytest.mark.asyncio
    async def test_list_since_is_inclusive_and_newest_first(self, history) -> None:
        older, newer = uuid4(), uuid4()
        await history.record(older, proposed(), None, NOW - timedelta(hours=24))
        await history.record(newer, proposed(), None, NOW)

        records = await history.list_since(NOW - timedelta(hours=24))

        assert [r.batch_id for r in records] == [newer, older]

    @pytest.mark.asyncio
    async def test_list_after_is_strict(self, history) -> None:
        await history.record(uuid4(), proposed(), None, NOW)

        assert await history.list_after(NOW) == []
        assert len(await history.list_after(NOW - timedelta(seconds=1))) == 1

    @pytest.mark.asyncio
    async def test_mark_undone_marks_whole_batch_once(self, history) -> None:
        batch_id = uuid4()
        await history.record(batch_id, proposed(), None, NOW)
        await history.record(batch_id, proposed(), None, NOW)
        other = await history.record(uuid4(), proposed(), None, NOW)

        assert await history.mark_undone(batch_id, NOW) == 2
        assert await history.mark_undone(batch_id, NOW + timedelta(hours=1)) == 0

        assert all(r.undone_at == NOW for r in await history.get_batch(batch_id))
        assert (await history.get_batch(other.batch_id))[0].undone_at is None
        assert await history.list_since(NOW - timedelta(days=1)) == [other]

    @pytest.mark.asyncio
    async def test_list_active_groups_batches(self, history) -> None:
        batch_id = uuid4()
        await history.record(batch_id, proposed(), None, NOW - timedelta(hours=2))
        await history.record(batch_id, proposed(), None, NOW - timedelta(hours=2))

        [view] = await history.list_active(24, now=NOW)

        assert view.batch_id == batch_id
        assert view.agent_count == 2
        assert view.hours_remaining == 22
        assert view.expires_at == NOW + timedelta(hours=22)

    @pytest.mark.asyncio
    async def test_list_all_includes_undone(self, history) -> None:
        batch_id = uuid4()
        await history.record(batch_id, proposed(), None, NOW)
        await history.mark_undone(batch_id, NOW)

        assert len(await history.list_all()) == 1
