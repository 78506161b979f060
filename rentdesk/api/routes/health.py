"""Health check and metrics endpoints."""

import time
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from rentdesk import __version__
from rentdesk.api.dependencies import DirectoryStoreDep, HistoryStoreDep
from rentdesk.api.models.health import ComponentHealth, HealthResponse
from rentdesk.db.errors import StoreError
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


_PROBE_BATCH_ID = UUID(int=0)


async def _check_directory_health(store: AgentDirectoryStore) -> ComponentHealth:
    start = time.perf_counter()
    try:
        await store.find_agent_by_phone("")
    except StoreError as e:
        return ComponentHealth(
            name="directory_store",
            status="unhealthy",
            latency_ms=(time.perf_counter() - start) * 1000,
            message=str(e),
        )
    return ComponentHealth(
        name="directory_store",
        status="healthy",
        latency_ms=(time.perf_counter() - start) * 1000,
    )


async def _check_history_health(store: BatchHistoryStore) -> ComponentHealth:
    start = time.perf_counter()
    try:
        await store.get_batch(_PROBE_BATCH_ID)
    except StoreError as e:
        return ComponentHealth(
            name="history_store",
            status="unhealthy",
            latency_ms=(time.perf_counter() - start) * 1000,
            message=str(e),
        )
    return ComponentHealth(
        name="history_store",
        status="healthy",
        latency_ms=(time.perf_counter() - start) * 1000,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(
    directory: DirectoryStoreDep,
    history: HistoryStoreDep,
) -> HealthResponse:
    """Check service health status.

    Each store is probed with a cheap lookup.
    """
    logger.debug("health_check_request")

    components = [
        await _check_directory_health(directory),
        await _check_history_health(history),
    ]

    overall_status: Literal["healthy", "degraded", "unhealthy"]
    if any(c.status == "unhealthy" for c in components):
        overall_status = "unhealthy"
    elif any(c.status == "degraded" for c in components):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    logger.debug("health_check_completed", status=overall_status)

    return HealthResponse(status=overall_status, version=__version__, components=components)


async def get_metrics() -> Response:
    """Get Prometheus metrics in text format for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
