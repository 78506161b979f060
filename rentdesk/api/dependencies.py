"""Dependency injection for API routes.

Provides FastAPI dependencies for the stores and the edit service.
Backends are chosen from settings and can be overridden for testing.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from rentdesk.config.loader import load_config
from rentdesk.config.settings import Settings, set_toml_config
from rentdesk.db.pool import PostgresPool
from rentdesk.identity.history_store import BatchHistoryStore
from rentdesk.identity.service import AgentEditService
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.identity.stores import (
    InMemoryAgentDirectoryStore,
    InMemoryBatchHistoryStore,
    PostgresAgentDirectoryStore,
    PostgresBatchHistoryStore,
)
from rentdesk.observability.logging import get_logger

logger = get_logger(__name__)

# Connection pool shared across stores
_postgres_pool: PostgresPool | None = None

# Store and service instances - created once and reused
_directory_store: AgentDirectoryStore | None = None
_history_store: BatchHistoryStore | None = None
_edit_service: AgentEditService | None = None


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Loads configuration from TOML files and environment variables.
    Cached to avoid reloading on every request.
    """
    try:
        toml_config = load_config()
        set_toml_config(toml_config)
    except FileNotFoundError:
        logger.warning("config_file_not_found", msg="Using default configuration")
        set_toml_config({})

    return Settings()


async def get_postgres_pool(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PostgresPool:
    """Get the shared PostgreSQL connection pool.

    Creates and connects the pool on first access. The DSN comes from
    storage.postgres.connection_url or the RENTDESK_DATABASE_URL env var.
    """
    global _postgres_pool
    if _postgres_pool is None:
        pool = PostgresPool.from_config(settings.storage.postgres)
        await pool.connect()
        _postgres_pool = pool
    return _postgres_pool


async def get_directory_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AgentDirectoryStore:
    """Get the store for agents and their denormalized copies."""
    global _directory_store
    if _directory_store is None:
        backend = settings.storage.directory.backend
        if backend == "postgres":
            _directory_store = PostgresAgentDirectoryStore(await get_postgres_pool(settings))
        else:
            _directory_store = InMemoryAgentDirectoryStore()
        logger.info("directory_store_initialized", store_type=backend)
    return _directory_store


async def get_history_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> BatchHistoryStore:
    """Get the agent edit history store."""
    global _history_store
    if _history_store is None:
        backend = settings.storage.history.backend
        if backend == "postgres":
            _history_store = PostgresBatchHistoryStore(await get_postgres_pool(settings))
        else:
            _history_store = InMemoryBatchHistoryStore()
        logger.info("history_store_initialized", store_type=backend)
    return _history_store


def get_edit_service(
    directory: Annotated[AgentDirectoryStore, Depends(get_directory_store)],
    history: Annotated[BatchHistoryStore, Depends(get_history_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AgentEditService:
    """Get the AgentEditService instance."""
    global _edit_service
    if _edit_service is None:
        _edit_service = AgentEditService(directory, history, config=settings.identity)
        logger.info(
            "edit_service_initialized",
            undo_window_hours=settings.identity.undo_window_hours,
        )
    return _edit_service


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
DirectoryStoreDep = Annotated[AgentDirectoryStore, Depends(get_directory_store)]
HistoryStoreDep = Annotated[BatchHistoryStore, Depends(get_history_store)]
AgentEditServiceDep = Annotated[AgentEditService, Depends(get_edit_service)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances.
    Closes connections before resetting.
    """
    global _postgres_pool, _directory_store, _history_store, _edit_service

    if _postgres_pool is not None:
        await _postgres_pool.close()
        _postgres_pool = None

    _directory_store = None
    _history_store = None
    _edit_service = None
    get_settings.cache_clear()
