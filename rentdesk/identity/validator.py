"""Local validation of a prospective edit batch.

Everything here runs in memory before any store is consulted.
"""

import re
from collections import OrderedDict
from uuid import UUID

from rentdesk.identity.models import AgentEditError, EditErrorKind, ProposedEdit

PHONE_FORMAT = re.compile(r"^[0-9+\s\-()]+$")


class EditValidator:
    """Checks required fields, phone format, lengths and in-batch duplicates.

    Pure: never mutates the edits and returns the same errors for the
    same input.
    """

    def __init__(self, max_name_length: int = 100, max_phone_length: int = 20) -> None:
        self._max_name_length = max_name_length
        self._max_phone_length = max_phone_length

    def validate(self, edits: list[ProposedEdit]) -> list[AgentEditError]:
        """Validate every edit of a batch.

        Returns:
            One AgentEditError per offending agent, in first-seen order.
            Empty when the batch is clean.
        """
        reasons: OrderedDict[UUID, list[str]] = OrderedDict()
        names: dict[UUID, str] = {}
        by_name: OrderedDict[str, list[UUID]] = OrderedDict()
        by_phone: OrderedDict[str, list[UUID]] = OrderedDict()

        for edit in edits:
            if edit.agent_id in names:
                _add_to_all(reasons, [edit.agent_id], "Agent appears more than once in batch")
            names[edit.agent_id] = edit.original_name
            reasons.setdefault(edit.agent_id, [])
            for reason in self._field_reasons(edit):
                _add_to_all(reasons, [edit.agent_id], reason)

            if edit.new_name.strip():
                by_name.setdefault(edit.new_name.strip().upper(), []).append(edit.agent_id)
            if edit.new_phone.strip():
                by_phone.setdefault(edit.new_phone, []).append(edit.agent_id)

        for name, agent_ids in by_name.items():
            if len(agent_ids) > 1:
                _add_to_all(reasons, agent_ids, f'Duplicate name "{name}" in batch')
        for phone, agent_ids in by_phone.items():
            if len(agent_ids) > 1:
                _add_to_all(reasons, agent_ids, f'Duplicate phone "{phone}" in batch')

        return [
            AgentEditError(
                agent_id=agent_id,
                agent_name=names[agent_id],
                reasons=agent_reasons,
                kind=EditErrorKind.VALIDATION,
            )
            for agent_id, agent_reasons in reasons.items()
            if agent_reasons
        ]

    def _field_reasons(self, edit: ProposedEdit) -> list[str]:
        found = []
        name = edit.new_name.strip()
        phone = edit.new_phone.strip()

        if not name:
            found.append("Name is required")
        elif len(name) > self._max_name_length:
            found.append(f"Name must be at most {self._max_name_length} characters")

        if not phone:
            found.append("Phone is required")
        else:
            if not PHONE_FORMAT.match(edit.new_phone):
                found.append("Invalid phone format")
            if len(phone) > self._max_phone_length:
                found.append(f"Phone must be at most {self._max_phone_length} characters")
        return found


def _add_to_all(reasons: OrderedDict[UUID, list[str]], agent_ids: list[UUID], reason: str) -> None:
    for agent_id in agent_ids:
        agent_reasons = reasons.setdefault(agent_id, [])
        if reason not in agent_reasons:
            agent_reasons.append(reason)
