"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["inmemory", "postgres"]


class StoreBackendConfig(BaseModel):
    """Configuration for a single store backend."""

    backend: BackendType = Field(
        default="inmemory",
        description="Backend type",
    )
    connection_url: str | None = Field(
        default=None,
        description="Connection URL (from env var)",
    )


class PostgresConfig(StoreBackendConfig):
    """PostgreSQL-specific configuration."""

    backend: Literal["postgres"] = "postgres"
    min_pool_size: int = Field(
        default=2,
        gt=0,
        description="Minimum connections to keep open",
    )
    max_pool_size: int = Field(
        default=10,
        gt=0,
        description="Maximum connections in pool",
    )
    max_inactive_connection_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Close connections idle longer than this (seconds)",
    )
    command_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Default timeout for queries (seconds)",
    )


class StorageConfig(BaseModel):
    """Configuration for all storage backends."""

    directory: StoreBackendConfig = Field(
        default_factory=StoreBackendConfig,
        description="Agents and denormalized record collections",
    )
    history: StoreBackendConfig = Field(
        default_factory=StoreBackendConfig,
        description="Agent edit history",
    )
    postgres: PostgresConfig = Field(
        default_factory=PostgresConfig,
        description="Shared PostgreSQL pool settings",
    )
