"""API middleware."""

from rentdesk.api.middleware.context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
