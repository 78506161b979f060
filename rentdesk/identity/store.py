"""AgentDirectoryStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from rentdesk.identity.models import (
    AgentIdentity,
    DenormalizedCollection,
    DenormalizedRecord,
)


class AgentDirectoryStore(ABC):
    """Abstract interface for agents and the records that copy their identity.

    Each method is an independent write or read; there is no shared
    transaction across methods or collections.
    """

    # Agent operations
    @abstractmethod
    async def save_agent(self, agent: AgentIdentity) -> UUID:
        """Insert or replace an agent."""
        pass

    @abstractmethod
    async def get_agent(self, agent_id: UUID) -> AgentIdentity | None:
        """Get an agent by ID."""
        pass

    @abstractmethod
    async def list_agents(self) -> list[AgentIdentity]:
        """List all agents ordered by name."""
        pass

    @abstractmethod
    async def find_agent_by_name(
        self, name: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose name matches case-insensitively."""
        pass

    @abstractmethod
    async def find_agent_by_phone(
        self, phone: str, *, exclude_id: UUID | None = None
    ) -> AgentIdentity | None:
        """Find an agent whose phone matches exactly."""
        pass

    @abstractmethod
    async def update_agent(self, agent_id: UUID, name: str, phone: str) -> bool:
        """Set an agent's identity. Returns False when the agent does not exist."""
        pass

    # Denormalized record operations
    @abstractmethod
    async def save_record(self, record: DenormalizedRecord) -> UUID:
        """Insert a record into its collection."""
        pass

    @abstractmethod
    async def list_records(
        self,
        collection: DenormalizedCollection,
        *,
        agent_phone: str | None = None,
    ) -> list[DenormalizedRecord]:
        """List records of a collection, optionally filtered by copied phone."""
        pass

    @abstractmethod
    async def update_records_by_phone(
        self,
        collection: DenormalizedCollection,
        match_phone: str,
        name: str,
        phone: str,
    ) -> int:
        """Rewrite the identity copy of every record whose phone matches.

        Returns the number of records matched.
        """
        pass
