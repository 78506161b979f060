"""PostgreSQL implementations of the identity stores.

Uses asyncpg for async database access. Every method is a single
statement; nothing here spans a transaction across collections.
"""

import json
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from rentdesk.db.errors import ConnectionError
from rentdesk.db.pool import PostgresPool
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.models import (
    AgentIdentity,
    DenormalizedCollection,
    DenormalizedRecord,
    HistoryRecord,
    ProposedEdit,
)
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

HISTORY_COLUMNS = """
    id, edit_batch_id, agent_id, old_name, old_phone, new_name, new_phone,
    edited_by, edited_at, undone_at
"""


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command status such as 'UPDATE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0


class PostgresAgentDirectoryStore(AgentDirectoryStore):
    """PostgreSQL implementation of AgentDirectoryStore."""

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
        """
        self._pool = pool

    # Agent operations
    async def save_agent(self, agent: AgentIdentity) -> UUID:
        """Insert or replace an agent."""
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO agents (id, name, phone)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (id) DO UPDATE SET name = $2, phone = $3
                    """,
                    agent.id,
                    agent.name,
                    agent.phone,
                )
                return agent.id
        except Exception as e:
            logger.error("postgres_save_agent_error", agent_id=str(agent.id), error=str(e))
            raise ConnectionError(f"Failed to save agent: {e}", cause=e) from e

    async def get_agent(self, agent_id: UUID) -> AgentIdentity | None:
        """Get an agent by ID."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, name, phone FROM agents WHERE id = $1", agent_id
                )
                return self._row_to_agent(row) if row else None
        except Exception as e:
            logger.error("postgres_get_agent_error", agent_id=str(agent_id), error=str(e))
            raise ConnectionError(f"Failed to get agent: {e}", cause=e) from e

    async def list_agents(self) -> list[AgentIdentity]:
        """List all agents ordered by name."""
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    "SELECT id, name, phone FROM agents ORDER BY upper(name)"
                )
                return [self._row_to_agent(row) for row in rows]
        except Exception as e:
            logger.error("postgres_list_agents_error", error=str(e))
            raise ConnectionError(f"Failed to list agents: {e}", cause=e) from e

    async def find_agent_by_name(
        self, name: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose name matches case-insensitively."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT id, name, phone FROM agents
                    WHERE upper(name) = upper($1)
                      AND ($2::uuid IS NULL OR id <> $2)
                    LIMIT 1
                    """,
                    name,
                    exclude_id,
                )
                return self._row_to_agent(row) if row else None
        except Exception as e:
            logger.error("postgres_find_agent_by_name_error", error=str(e))
            raise ConnectionError(f"Failed to look up agent name: {e}", cause=e) from e

    async def find_agent_by_phone(
        self, phone: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose phone matches exactly."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT id, name, phone FROM agents
                    WHERE phone = $1
                      AND ($2::uuid IS NULL OR id <> $2)
                    LIMIT 1
                    """,
                    phone,
                    exclude_id,
                )
                return self._row_to_agent(row) if row else None
        except Exception as e:
            logger.error("postgres_find_agent_by_phone_error", error=str(e))
            raise ConnectionError(f"Failed to look up agent phone: {e}", cause=e) from e

    async def update_agent(self, agent_id: UUID, name: str, phone: str) -> bool:
        """Set an agent's identity."""
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    "UPDATE agents SET name = $2, phone = $3 WHERE id = $1",
                    agent_id,
                    name,
                    phone,
                )
                return _affected_rows(status) > 0
        except Exception as e:
            logger.error("postgres_update_agent_error", agent_id=str(agent_id), error=str(e))
            raise ConnectionError(f"Failed to update agent: {e}", cause=e) from e

    # Denormalized record operations
    async def save_record(self, record: DenormalizedRecord) -> UUID:
        """Insert a record into its collection."""
        table = record.collection.value
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {table} (id, agent_name, agent_phone, payload)
                    VALUES ($1, $2, $3, $4)
                    """,
                    record.id,
                    record.agent_name,
                    record.agent_phone,
                    json.dumps(record.payload),
                )
                return record.id
        except Exception as e:
            logger.error("postgres_save_record_error", collection=table, error=str(e))
            raise ConnectionError(f"Failed to save {table} record: {e}", cause=e) from e

    async def list_records(
        self,
        collection: DenormalizedCollection,
        *,
        agent_phone: str | None = None,
    ) -> list[DenormalizedRecord]:
        """List records of a collection, optionally filtered by copied phone."""
        table = collection.value
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT id, agent_name, agent_phone, payload FROM {table}
                    WHERE ($1::text IS NULL OR agent_phone = $1)
                    ORDER BY created_at
                    """,
                    agent_phone,
                )
                return [self._row_to_record(collection, row) for row in rows]
        except Exception as e:
            logger.error("postgres_list_records_error", collection=table, error=str(e))
            raise ConnectionError(f"Failed to list {table} records: {e}", cause=e) from e

    async def update_records_by_phone(
        self,
        collection: DenormalizedCollection,
        match_phone: str,
        name: str,
        phone: str,
    ) -> int:
        """Rewrite the identity copy of every record whose phone matches."""
        table = collection.value
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    f"""
                    UPDATE {table} SET agent_name = $2, agent_phone = $3
                    WHERE agent_phone = $1
                    """,
                    match_phone,
                    name,
                    phone,
                )
                return _affected_rows(status)
        except Exception as e:
            logger.error("postgres_update_records_error", collection=table, error=str(e))
            raise ConnectionError(f"Failed to update {table} records: {e}", cause=e) from e

    @staticmethod
    def _row_to_agent(row: Any) -> AgentIdentity:
        return AgentIdentity(id=row["id"], name=row["name"], phone=row["phone"])

    @staticmethod
    def _row_to_record(collection: DenormalizedCollection, row: Any) -> DenormalizedRecord:
        payload = row["payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return DenormalizedRecord(
            id=row["id"],
            collection=collection,
            agent_name=row["agent_name"],
            agent_phone=row["agent_phone"],
            payload=payload or {},
        )


class PostgresBatchHistoryStore(BatchHistoryStore):
    """PostgreSQL implementation of BatchHistoryStore.

    `mark_undone` is a single UPDATE, so a batch is marked all at once.
    """

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
        """
        self._pool = pool

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
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO agent_edit_history (
                        id, edit_batch_id, agent_id, old_name, old_phone,
                        new_name, new_phone, edited_by, edited_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    """,
                    record.id,
                    record.batch_id,
                    record.agent_id,
                    record.old_name,
                    record.old_phone,
                    record.new_name,
                    record.new_phone,
                    record.edited_by,
                    record.edited_at,
                )
                logger.debug("edit_history_recorded", batch_id=str(batch_id))
                return record
        except Exception as e:
            logger.error(
                "postgres_record_history_error", batch_id=str(batch_id), error=str(e)
            )
            raise ConnectionError(f"Failed to record edit history: {e}", cause=e) from e

    async def get_batch(self, batch_id: UUID) -> list[HistoryRecord]:
        """Get every record of a batch."""
        return await self._fetch(
            f"SELECT {HISTORY_COLUMNS} FROM agent_edit_history "
            "WHERE edit_batch_id = $1 ORDER BY edited_at",
            batch_id,
        )

    async def list_since(self, cutoff: datetime) -> list[HistoryRecord]:
        """List records not yet undone edited at or after cutoff, newest first."""
        return await self._fetch(
            f"SELECT {HISTORY_COLUMNS} FROM agent_edit_history "
            "WHERE undone_at IS NULL AND edited_at >= $1 "
            "ORDER BY edited_at DESC, edit_batch_id",
            cutoff,
        )

    async def list_after(self, edited_at: datetime) -> list[HistoryRecord]:
        """List records not yet undone edited strictly after an instant."""
        return await self._fetch(
            f"SELECT {HISTORY_COLUMNS} FROM agent_edit_history "
            "WHERE undone_at IS NULL AND edited_at > $1",
            edited_at,
        )

    async def mark_undone(self, batch_id: UUID, when: datetime) -> int:
        """Set `undone_at` on all active records of a batch."""
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    """
                    UPDATE agent_edit_history SET undone_at = $2
                    WHERE edit_batch_id = $1 AND undone_at IS NULL
                    """,
                    batch_id,
                    when,
                )
                return _affected_rows(status)
        except Exception as e:
            logger.error("postgres_mark_undone_error", batch_id=str(batch_id), error=str(e))
            raise ConnectionError(f"Failed to mark batch undone: {e}", cause=e) from e

    async def list_all(self) -> list[HistoryRecord]:
        """List every record, newest first."""
        return await self._fetch(
            f"SELECT {HISTORY_COLUMNS} FROM agent_edit_history ORDER BY edited_at DESC"
        )

    async def _fetch(self, query: str, *params: Any) -> list[HistoryRecord]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *params)
                return [self._row_to_record(row) for row in rows]
        except Exception as e:
            logger.error("postgres_list_history_error", error=str(e))
            raise ConnectionError(f"Failed to read edit history: {e}", cause=e) from e

    @staticmethod
    def _row_to_record(row: Any) -> HistoryRecord:
        return HistoryRecord(
            id=row["id"],
            batch_id=row["edit_batch_id"],
            agent_id=row["agent_id"],
            old_name=row["old_name"],
            old_phone=row["old_phone"],
            new_name=row["new_name"],
            new_phone=row["new_phone"],
            edited_by=row["edited_by"],
            edited_at=row["edited_at"],
            undone_at=row["undone_at"],
        )
