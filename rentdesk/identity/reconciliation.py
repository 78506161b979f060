"""Detection of partially applied identity edits.

A propagation that stopped partway leaves copies whose phone belongs to no
live agent, or whose name disagrees with the agent owning the phone. This
scan lists them for a manual or scripted repair; it never writes.
"""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from rentdesk.identity.models import DenormalizedCollection
from rentdesk.identity.store import AgentDirectoryStore


class IssueType(str, Enum):
    """Kinds of drift between agents and their copies."""

    ORPHANED_PHONE = "orphaned_phone"  # No live agent has this phone
    NAME_MISMATCH = "name_mismatch"  # Phone matches an agent, name does not


class ConsistencyIssue(BaseModel):
    """One denormalized record out of line with the agents collection."""

    collection: DenormalizedCollection
    record_id: UUID
    agent_name: str
    agent_phone: str
    issue: IssueType
    expected_name: str | None = Field(
        default=None, description="Current name of the agent owning the phone"
    )
    agent_id: UUID | None = None


async def find_inconsistencies(store: AgentDirectoryStore) -> list[ConsistencyIssue]:
    """Scan every denormalized collection against the live agents."""
    agents_by_phone = {agent.phone: agent for agent in await store.list_agents()}
    issues: list[ConsistencyIssue] = []

    for collection in DenormalizedCollection:
        for record in await store.list_records(collection):
            agent = agents_by_phone.get(record.agent_phone)
            if agent is None:
                issues.append(
                    ConsistencyIssue(
                        collection=collection,
                        record_id=record.id,
                        agent_name=record.agent_name,
                        agent_phone=record.agent_phone,
                        issue=IssueType.ORPHANED_PHONE,
                    )
                )
            elif agent.name != record.agent_name:
                issues.append(
                    ConsistencyIssue(
                        collection=collection,
                        record_id=record.id,
                        agent_name=record.agent_name,
                        agent_phone=record.agent_phone,
                        issue=IssueType.NAME_MISMATCH,
                        expected_name=agent.name,
                        agent_id=agent.id,
                    )
                )
    return issues
