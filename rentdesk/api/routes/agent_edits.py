"""Agent identity edit endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from rentdesk.api.dependencies import AgentEditServiceDep
from rentdesk.api.exceptions import EditRejectedError, from_domain_error
from rentdesk.api.models.edits import (
    SubmitBatchRequest,
    SubmitBatchResponse,
    UndoBatchResponse,
)
from rentdesk.identity.errors import IdentityEditError
from rentdesk.identity.models import BatchView, HistoryExportRow
from rentdesk.identity.reconciliation import ConsistencyIssue
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/agent-edits")


@router.post("/batches", response_model=SubmitBatchResponse, status_code=201)
async def submit_batch(
    request: SubmitBatchRequest,
    service: AgentEditServiceDep,
) -> SubmitBatchResponse:
    """Validate and apply a batch of agent identity edits.

    The whole batch is rejected with per-agent reasons when any edit
    fails validation or collides with another agent.
    """
    logger.debug("submit_batch_request", edit_count=len(request.edits))

    try:
        result = await service.submit_batch(
            [edit.to_edit() for edit in request.edits],
            edited_by=request.edited_by,
        )
    except IdentityEditError as e:
        raise from_domain_error(e) from e

    if result.rejected:
        raise EditRejectedError(result.errors)

    return SubmitBatchResponse(batch_id=result.batch_id, applied_count=result.applied_count)


@router.get("/batches", response_model=list[BatchView])
async def list_undoable_batches(
    service: AgentEditServiceDep,
    window_hours: int | None = Query(default=None, ge=1, description="Undo window override"),
) -> list[BatchView]:
    """List batches that can still be undone, newest first."""
    return await service.list_undoable_batches(window_hours)


@router.post("/batches/{batch_id}/undo", response_model=UndoBatchResponse)
async def undo_batch(
    batch_id: UUID,
    service: AgentEditServiceDep,
) -> UndoBatchResponse:
    """Revert every change of a batch inside its undo window."""
    logger.debug("undo_batch_request", batch_id=str(batch_id))

    try:
        result = await service.undo_batch(batch_id)
    except IdentityEditError as e:
        raise from_domain_error(e) from e

    return UndoBatchResponse(batch_id=result.batch_id, reverted_count=result.reverted_count)


@router.get("/history", response_model=list[HistoryExportRow])
async def export_history(service: AgentEditServiceDep) -> list[HistoryExportRow]:
    """Export every history record with its derived status."""
    return await service.export_history_rows()


@router.get("/inconsistencies", response_model=list[ConsistencyIssue])
async def list_inconsistencies(service: AgentEditServiceDep) -> list[ConsistencyIssue]:
    """Report denormalized copies that disagree with the agents collection."""
    return await service.find_inconsistencies()
