"""Shared asyncpg pool for the identity stores.

One pool serves both the agent directory and the edit history. The
health check also confirms the identity schema has been migrated, since a
reachable database without `agent_edit_history` cannot accept an edit.
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from rentdesk.config.models.storage import PostgresConfig
from rentdesk.db.errors import ConnectionError
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

DSN_ENV_VARS = ("RENTDESK_DATABASE_URL", "DATABASE_URL")

# Tables created by migration 001; propagation writes to every one of them
IDENTITY_TABLES = (
    "agents",
    "tenants",
    "agent_earnings",
    "agent_activity_log",
    "agent_edit_history",
)


def resolve_dsn(dsn: str | None = None) -> str:
    """Pick the DSN: explicit value first, then RENTDESK_DATABASE_URL, then DATABASE_URL.

    Raises:
        ConnectionError: Nothing configured
    """
    if dsn:
        return dsn
    for name in DSN_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    raise ConnectionError(
        "No PostgreSQL DSN configured; set storage.postgres.connection_url "
        "or RENTDESK_DATABASE_URL"
    )


class PostgresPool:
    """asyncpg pool that wraps driver errors as StoreError.

    Connects lazily on first `acquire()`.
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 2,
        max_size: int = 10,
        max_inactive_connection_lifetime: float = 300.0,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._max_inactive_connection_lifetime = max_inactive_connection_lifetime
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    @classmethod
    def from_config(cls, config: PostgresConfig) -> "PostgresPool":
        """Build a pool from the `storage.postgres` settings."""
        return cls(
            dsn=config.connection_url,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
            command_timeout=config.command_timeout,
        )

    async def connect(self) -> None:
        if self._pool is not None:
            return

        dsn = resolve_dsn(self._dsn)
        try:
            self._pool = await asyncpg.create_pool(
                dsn=dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=self._max_inactive_connection_lifetime,
                command_timeout=self._command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("postgres_pool_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e
        logger.info("postgres_pool_connected", min_size=self._min_size, max_size=self._max_size)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, connecting first if needed."""
        if self._pool is None:
            await self.connect()

        try:
            async with self._pool.acquire() as connection:
                yield connection
        except asyncpg.PostgresError as e:
            logger.error("postgres_connection_error", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e

    async def missing_tables(self) -> list[str]:
        """Identity tables absent from the connected database."""
        async with self.acquire() as conn:
            rows = await conn.fetch(
                "SELECT name FROM unnest($1::text[]) AS name "
                "WHERE to_regclass(name) IS NULL",
                list(IDENTITY_TABLES),
            )
        return [row["name"] for row in rows]

    async def health_check(self) -> bool:
        """True when connected and every identity table exists."""
        if self._pool is None:
            return False

        try:
            missing = await self.missing_tables()
        except (ConnectionError, OSError, asyncpg.InterfaceError) as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False
        if missing:
            logger.warning("postgres_schema_not_migrated", missing_tables=missing)
            return False
        return True

    @property
    def is_connected(self) -> bool:
        return self._pool is not None
