"""Request and response models for agent edit endpoints."""

from uuid import UUID

from pydantic import BaseModel, Field

from rentdesk.identity.models import ProposedEdit


class ProposedEditRequest(BaseModel):
    """One agent edit as sent by the dashboard."""

    agent_id: UUID
    original_name: str
    original_phone: str
    new_name: str
    new_phone: str

    def to_edit(self) -> ProposedEdit:
        return ProposedEdit(**self.model_dump())


class SubmitBatchRequest(BaseModel):
    """Request body for POST /agent-edits/batches."""

    edits: list[ProposedEditRequest] = Field(..., description="Edits for selected agents")
    edited_by: str | None = Field(
        default=None, max_length=255, description="Operator submitting the batch"
    )


class SubmitBatchResponse(BaseModel):
    """Response for an applied batch."""

    batch_id: UUID | None = Field(default=None, description="None when every edit was a no-op")
    applied_count: int


class UndoBatchResponse(BaseModel):
    """Response for an undone batch."""

    batch_id: UUID
    reverted_count: int
