"""Unit tests for TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from rentdesk.config.loader import (
    UnknownEnvironmentError,
    deep_merge,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_nested_sections_merge(self) -> None:
        """Nested tables merge key by key."""
        base = {"identity": {"undo_window_hours": 24, "uppercase_names": True}}
        override = {"identity": {"undo_window_hours": 48}}

        assert deep_merge(base, override) == {
            "identity": {"undo_window_hours": 48, "uppercase_names": True}
        }

    def test_scalar_replaces_table(self) -> None:
        """A non-dict override replaces the whole value."""
        assert deep_merge({"api": {"port": 1}}, {"api": "off"}) == {"api": "off"}

    def test_inputs_not_modified(self) -> None:
        """Neither argument is mutated."""
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        deep_merge(base, override)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}


class TestLoadToml:
    """Tests for load_toml function."""

    def test_load_valid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "test.toml"
        toml_file.write_text("[identity]\nundo_window_hours = 12")

        assert load_toml(toml_file) == {"identity": {"undo_window_hours": 12}}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "missing.toml")

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        invalid = tmp_path / "invalid.toml"
        invalid.write_text("identity = [")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml(invalid)


class TestEnvironmentSelection:
    """Tests for get_environment and get_config_dir."""

    def test_environment_from_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RENTDESK_ENV", "production")
        assert get_environment() == "production"

    def test_environment_defaults_to_development(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RENTDESK_ENV", raising=False)
        assert get_environment() == "development"

    def test_config_dir_from_env_var(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(test_config_dir))
        assert get_config_dir() == test_config_dir

    def test_falls_back_to_checkout_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("RENTDESK_CONFIG_DIR", raising=False)
        monkeypatch.chdir(tmp_path)

        config_dir = get_config_dir()

        assert (config_dir / "default.toml").exists()
        assert config_dir.parent != tmp_path

    def test_missing_config_dir_raises(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(tmp_path / "missing"))
        with pytest.raises(FileNotFoundError):
            get_config_dir()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_environment_file_overrides_default(
        self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        mock_toml_files(
            {
                "default.toml": "[identity]\nundo_window_hours = 24\nmax_name_length = 100",
                "staging.toml": "[identity]\nundo_window_hours = 2",
            }
        )
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("RENTDESK_ENV", "staging")

        config = load_config()

        assert config["identity"] == {"undo_window_hours": 2, "max_name_length": 100}

    def test_development_file_is_optional(
        self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        mock_toml_files({"default.toml": "debug = true"})
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(test_config_dir))
        monkeypatch.delenv("RENTDESK_ENV", raising=False)

        assert load_config() == {"debug": True}

    def test_unknown_environment_raises(
        self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        mock_toml_files({"default.toml": "debug = false", "production.toml": "debug = false"})
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("RENTDESK_ENV", "prodution")

        with pytest.raises(UnknownEnvironmentError, match="production"):
            load_config()

    def test_explicit_arguments_skip_the_environment(
        self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        mock_toml_files(
            {
                "default.toml": "[storage.history]\nbackend = \"inmemory\"",
                "production.toml": "[storage.history]\nbackend = \"postgres\"",
            }
        )
        monkeypatch.setenv("RENTDESK_ENV", "development")

        config = load_config(config_dir=test_config_dir, env="production")

        assert config["storage"]["history"]["backend"] == "postgres"

    def test_missing_default_raises(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RENTDESK_CONFIG_DIR", str(test_config_dir))
        with pytest.raises(FileNotFoundError):
            load_config()
