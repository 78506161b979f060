"""Identity store backends."""

from rentdesk.identity.stores.inmemory import (
    InMemoryAgentDirectoryStore,
    InMemoryBatchHistoryStore,
)
from rentdesk.identity.stores.postgres import (
    PostgresAgentDirectoryStore,
    PostgresBatchHistoryStore,
)

__all__ = [
    "InMemoryAgentDirectoryStore",
    "InMemoryBatchHistoryStore",
    "PostgresAgentDirectoryStore",
    "PostgresBatchHistoryStore",
]
