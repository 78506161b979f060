"""Agent identity and the records that copy it."""

from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from rentdesk.identity.models.enums import DenormalizedCollection


class AgentIdentity(BaseModel):
    """A field agent as persisted in the agents collection.

    `id` never changes; `name` and `phone` are copied into tenant,
    earnings and activity records and must be propagated when edited.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Immutable primary key")
    name: str = Field(..., description="Display name, unique case-insensitively")
    phone: str = Field(..., description="Phone number, unique")


class DenormalizedRecord(BaseModel):
    """A record carrying a snapshot of an agent's identity."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Record identifier")
    collection: DenormalizedCollection = Field(..., description="Owning collection")
    agent_name: str = Field(..., description="Copied agent name")
    agent_phone: str = Field(..., description="Copied agent phone")
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Remaining record fields"
    )
