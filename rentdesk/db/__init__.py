"""Database infrastructure: connection pool and store error hierarchy."""

from rentdesk.db.errors import (
    ConnectionError,
    NotFoundError,
    StoreError,
)
from rentdesk.db.pool import PostgresPool

__all__ = [
    "ConnectionError",
    "NotFoundError",
    "PostgresPool",
    "StoreError",
]
