"""Proposed identity edits and the errors reported against them."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rentdesk.identity.models.enums import EditErrorKind


class ProposedEdit(BaseModel):
    """A requested change to one agent's identity.

    Held in memory until the batch is submitted.
    """

    model_config = ConfigDict(frozen=True)

    agent_id: UUID = Field(..., description="Agent being edited")
    original_name: str = Field(..., description="Name before the edit")
    original_phone: str = Field(..., description="Phone before the edit")
    new_name: str = Field(..., description="Requested name")
    new_phone: str = Field(..., description="Requested phone")

    @property
    def is_noop(self) -> bool:
        """True when the edit leaves the identity unchanged."""
        return (
            self.new_name == self.original_name
            and self.new_phone == self.original_phone
        )

    def is_noop_when_normalized(self, uppercase_names: bool = True) -> bool:
        """True when both sides name the same identity once normalized.

        Originals are compared trimmed (and upper-cased when names are), so
        re-submitting a stored "John" or "0700 " untouched is not an edit.
        """
        new_name, original_name = self.new_name.strip(), self.original_name.strip()
        if uppercase_names:
            new_name, original_name = new_name.upper(), original_name.upper()
        return (
            new_name == original_name
            and self.new_phone.strip() == self.original_phone.strip()
        )

    @property
    def name_changed(self) -> bool:
        return self.new_name.upper() != self.original_name.upper()

    @property
    def phone_changed(self) -> bool:
        return self.new_phone != self.original_phone

    def normalized(self, uppercase_names: bool = True) -> "ProposedEdit":
        """Return a copy with trimmed values, upper-casing the name if asked."""
        new_name = self.new_name.strip()
        if uppercase_names:
            new_name = new_name.upper()
        return self.model_copy(
            update={"new_name": new_name, "new_phone": self.new_phone.strip()}
        )


class AgentEditError(BaseModel):
    """All reasons one agent's edit was refused."""

    agent_id: UUID = Field(..., description="Agent the reasons apply to")
    agent_name: str = Field(..., description="Agent name before the edit")
    reasons: list[str] = Field(default_factory=list, description="Human-readable reasons")
    kind: EditErrorKind = Field(
        default=EditErrorKind.VALIDATION,
        description="Most severe category among the reasons",
    )

    @property
    def retryable(self) -> bool:
        """True when resubmitting unchanged may succeed."""
        return self.kind == EditErrorKind.VERIFICATION


def merge_edit_errors(*groups: list[AgentEditError]) -> list[AgentEditError]:
    """Merge error lists into one error per agent.

    Reasons keep first-seen order and are never repeated; the merged kind
    is the most severe one seen. Agents keep first-seen order.
    """
    merged: dict[UUID, AgentEditError] = {}
    for group in groups:
        for error in group:
            existing = merged.get(error.agent_id)
            if existing is None:
                merged[error.agent_id] = error.model_copy(
                    update={"reasons": list(error.reasons)}
                )
                continue
            for reason in error.reasons:
                if reason not in existing.reasons:
                    existing.reasons.append(reason)
            if error.kind.severity > existing.kind.severity:
                existing.kind = error.kind
    return list(merged.values())


class EditBatch(BaseModel):
    """Edits submitted together under one batch identifier."""

    model_config = ConfigDict(frozen=True)

    batch_id: UUID = Field(..., description="Fresh identifier per submission")
    edits: list[ProposedEdit] = Field(default_factory=list, description="Edits to apply")


class BatchSubmitResult(BaseModel):
    """Outcome of a batch submission.

    Either `errors` is non-empty and nothing was written, or the batch
    was applied and `applied_count` edits took effect.
    """

    batch_id: UUID | None = Field(default=None, description="Assigned batch id")
    applied_count: int = Field(default=0, ge=0, description="Edits applied")
    errors: list[AgentEditError] = Field(default_factory=list, description="Per-agent errors")

    @property
    def rejected(self) -> bool:
        return bool(self.errors)
