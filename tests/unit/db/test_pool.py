"""Unit tests for the shared PostgreSQL pool."""

import pytest

from rentdesk.config.models.storage import PostgresConfig
from rentdesk.db.errors import ConnectionError
from rentdesk.db.pool import IDENTITY_TABLES, PostgresPool, resolve_dsn


@pytest.fixture
def no_dsn_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RENTDESK_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


class TestResolveDsn:
    """Tests for DSN resolution order."""

    def test_explicit_dsn_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RENTDESK_DATABASE_URL", "postgresql://env/rentdesk")

        assert resolve_dsn("postgresql://explicit/rentdesk") == "postgresql://explicit/rentdesk"

    def test_rentdesk_env_before_generic(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RENTDESK_DATABASE_URL", "postgresql://ours/rentdesk")
        monkeypatch.setenv("DATABASE_URL", "postgresql://generic/db")

        assert resolve_dsn() == "postgresql://ours/rentdesk"

    def test_generic_env_is_used_last(self, no_dsn_env, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://generic/db")

        assert resolve_dsn() == "postgresql://generic/db"

    def test_nothing_configured_raises(self, no_dsn_env) -> None:
        with pytest.raises(ConnectionError, match="RENTDESK_DATABASE_URL"):
            resolve_dsn()


class TestPostgresPool:
    """Tests that need no database."""

    def test_from_config_takes_pool_settings(self) -> None:
        pool = PostgresPool.from_config(
            PostgresConfig(
                connection_url="postgresql://db/rentdesk",
                min_pool_size=1,
                max_pool_size=3,
            )
        )

        assert pool._dsn == "postgresql://db/rentdesk"
        assert (pool._min_size, pool._max_size) == (1, 3)
        assert not pool.is_connected

    @pytest.mark.asyncio
    async def test_unconnected_pool_is_unhealthy(self) -> None:
        assert await PostgresPool(dsn="postgresql://db/rentdesk").health_check() is False

    @pytest.mark.asyncio
    async def test_connect_without_dsn_fails_before_dialing(self, no_dsn_env) -> None:
        with pytest.raises(ConnectionError):
            await PostgresPool().connect()

    def test_schema_covers_every_propagated_collection(self) -> None:
        assert IDENTITY_TABLES[0] == "agents"
        assert "agent_edit_history" in IDENTITY_TABLES
        assert len(IDENTITY_TABLES) == 5
