"""Shared test fixtures for the rentdesk test suite."""

from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from rentdesk.identity.models import AgentIdentity, DenormalizedCollection, DenormalizedRecord
from rentdesk.identity.stores import InMemoryAgentDirectoryStore, InMemoryBatchHistoryStore


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings caches before and after each test."""
    from rentdesk.api.dependencies import get_settings as get_api_settings
    from rentdesk.config import get_settings

    get_settings.cache_clear()
    get_api_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_api_settings.cache_clear()


class FrozenClock:
    """Settable clock handed to services instead of utc_now."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest.fixture
def directory() -> InMemoryAgentDirectoryStore:
    """Fresh in-memory agents and copies."""
    return InMemoryAgentDirectoryStore()


@pytest.fixture
def history() -> InMemoryBatchHistoryStore:
    """Fresh in-memory edit history."""
    return InMemoryBatchHistoryStore()


@pytest.fixture
def john() -> AgentIdentity:
    return AgentIdentity(name="JOHN", phone="0700")


@pytest.fixture
def mary() -> AgentIdentity:
    return AgentIdentity(name="MARY", phone="0711")


@pytest.fixture
async def seeded_directory(
    directory: InMemoryAgentDirectoryStore, john: AgentIdentity, mary: AgentIdentity
) -> InMemoryAgentDirectoryStore:
    """Two agents with one copy of each in every collection."""
    for agent in (john, mary):
        await directory.save_agent(agent)
        for collection in DenormalizedCollection:
            await directory.save_record(
                DenormalizedRecord(
                    collection=collection,
                    agent_name=agent.name,
                    agent_phone=agent.phone,
                    payload={"unit": "A1"},
                )
            )
    return directory
