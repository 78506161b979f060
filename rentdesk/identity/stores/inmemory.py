"""In-memory implementations of the identity stores."""

from datetime import datetime
from uuid import UUID, uuid4

from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.models import (
    AgentIdentity,
    DenormalizedCollection,
    DenormalizedRecord,
    HistoryRecord,
    ProposedEdit,
)
from rentdesk.identity.store import AgentDirectoryStore


class InMemoryAgentDirectoryStore(AgentDirectoryStore):
    """In-memory implementation of AgentDirectoryStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._agents: dict[UUID, AgentIdentity] = {}
        self._records: dict[DenormalizedCollection, dict[UUID, DenormalizedRecord]] = {
            collection: {} for collection in DenormalizedCollection
        }

    # Agent operations
    async def save_agent(self, agent: AgentIdentity) -> UUID:
        """Insert or replace an agent."""
        self._agents[agent.id] = agent
        return agent.id

    async def get_agent(self, agent_id: UUID) -> AgentIdentity | None:
        """Get an agent by ID."""
        return self._agents.get(agent_id)

    async def list_agents(self) -> list[AgentIdentity]:
        """List all agents ordered by name."""
        return sorted(self._agents.values(), key=lambda a: a.name.upper())

    async def find_agent_by_name(
        self, name: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose name matches case-insensitively."""
        wanted = name.upper()
        for agent in self._agents.values():
            if agent.id != exclude_id and agent.name.upper() == wanted:
                return agent
        return None

    async def find_agent_by_phone(
        self, phone: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose phone matches exactly."""
        for agent in self._agents.values():
            if agent.id != exclude_id and agent.phone == phone:
                return agent
        return None

    async def update_agent(self, agent_id: UUID, name: str, phone: str) -> bool:
        """Set an agent's identity."""
        agent = self._agents.get(agent_id)
        if agent is None:
            return False
        self._agents[agent_id] = agent.model_copy(update={"name": name, "phone": phone})
        return True

    # Denormalized record operations
    async def save_record(self, record: DenormalizedRecord) -> UUID:
        """Insert a record into its collection."""
        self._records[record.collection][record.id] = record
        return record.id

    async def list_records(
        self,
        collection: DenormalizedCollection,
        *,
        agent_phone: str | None = None,
    ) -> list[DenormalizedRecord]:
        """List records of a collection, optionally filtered by copied phone."""
        return [
            record
            for record in self._records[collection].values()
            if agent_phone is None or record.agent_phone == agent_phone
        ]

    async def update_records_by_phone(
        self,
        collection: DenormalizedCollection,
        match_phone: str,
        name: str,
        phone: str,
    ) -> int:
        """Rewrite the identity copy of every record whose phone matches."""
        records = self._records[collection]
        matched = [r for r in records.values() if r.agent_phone == match_phone]
        for record in matched:
            records[record.id] = record.model_copy(
                update={"agent_name": name, "agent_phone": phone}
            )
        return len(matched)


class InMemoryBatchHistoryStore(BatchHistoryStore):
    """In-memory implementation of BatchHistoryStore for testing and development.

    Records are kept in insertion order.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._records: dict[UUID, HistoryRecord] = {}

    async def record(
        self,
        batch_id: UUID,
        edit: ProposedEdit,
        edited_by: str | None,
        edited_at: datetime,
    ) -> HistoryRecord:
        """Append a history record for one edit of a batch."""
        record = HistoryRecord(
            id=uuid4(),
            batch_id=batch_id,
            agent_id=edit.agent_id,
            old_name=edit.original_name,
            old_phone=edit.original_phone,
            new_name=edit.new_name,
            new_phone=edit.new_phone,
            edited_by=edited_by,
            edited_at=edited_at,
        )
        self._records[record.id] = record
        return record

    async def get_batch(self, batch_id: UUID) -> list[HistoryRecord]:
        """Get every record of a batch."""
        return [r for r in self._records.values() if r.batch_id == batch_id]

    async def list_since(self, cutoff: datetime) -> list[HistoryRecord]:
        """List records not yet undone edited at or after cutoff, newest first."""
        results = [
            r for r in self._records.values()
            if r.undone_at is None and r.edited_at >= cutoff
        ]
        # Stable sort keeps insertion order within a batch
        results.sort(key=lambda r: r.edited_at, reverse=True)
        return results

    async def list_after(self, edited_at: datetime) -> list[HistoryRecord]:
        """List records not yet undone edited strictly after an instant."""
        return [
            r for r in self._records.values()
            if r.undone_at is None and r.edited_at > edited_at
        ]

    async def mark_undone(self, batch_id: UUID, when: datetime) -> int:
        """Set `undone_at` on all active records of a batch."""
        marked = 0
        for record_id, record in list(self._records.items()):
            if record.batch_id == batch_id and record.undone_at is None:
                self._records[record_id] = record.model_copy(update={"undone_at": when})
                marked += 1
        return marked

    async def list_all(self) -> list[HistoryRecord]:
        """List every record, newest first."""
        results = list(self._records.values())
        results.sort(key=lambda r: r.edited_at, reverse=True)
        return results
