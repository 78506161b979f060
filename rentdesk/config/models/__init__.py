"""Configuration models for all Rentdesk subsystems."""

from rentdesk.config.models.api import APIConfig
from rentdesk.config.models.identity import IdentityEditConfig
from rentdesk.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    TracingConfig,
)
from rentdesk.config.models.storage import (
    PostgresConfig,
    StorageConfig,
    StoreBackendConfig,
)

__all__ = [
    "APIConfig",
    "IdentityEditConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "StorageConfig",
    "StoreBackendConfig",
    "TracingConfig",
]
