"""Request context middleware for observability."""

import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware

from rentdesk.observability.logging import get_logger
from rentdesk.observability.metrics import REQUEST_COUNT

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id and trace id to every log event of a request.

    Also counts requests per route and echoes the ids as response headers.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and bind context."""
        span_context = trace.get_current_span().get_span_context()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        trace_id = format(span_context.trace_id, "032x") if span_context.is_valid else request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, trace_id=trace_id)

        logger.debug("request_started", method=request.method, path=request.url.path)

        response = await call_next(request)

        route = request.scope.get("route")
        REQUEST_COUNT.labels(
            endpoint=getattr(route, "path", request.url.path),
            status=str(response.status_code),
        ).inc()
        logger.debug(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Trace-ID"] = trace_id
        return response
