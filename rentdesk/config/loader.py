"""TOML configuration files for rentdesk.

`config/default.toml` holds every default. `config/{RENTDESK_ENV}.toml`
overlays it, and environment variables override both once the merged
dictionary reaches `Settings`.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "RENTDESK_CONFIG_DIR"
ENV_VAR = "RENTDESK_ENV"
DEFAULT_ENVIRONMENT = "development"

# Checkout layout: <root>/rentdesk/config/loader.py next to <root>/config/
_CHECKOUT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


class UnknownEnvironmentError(ValueError):
    """RENTDESK_ENV names an environment with no config file."""


def get_config_dir() -> Path:
    """Locate the config directory.

    RENTDESK_CONFIG_DIR wins and must exist. Otherwise `config/` under the
    working directory, then the one beside the installed package.
    """
    override = os.environ.get(CONFIG_DIR_VAR)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    for candidate in (Path.cwd() / "config", _CHECKOUT_CONFIG_DIR):
        if (candidate / "default.toml").exists():
            return candidate
    return Path("config")


def get_environment() -> str:
    """Name of the active environment, `development` unless RENTDESK_ENV is set."""
    return os.environ.get(ENV_VAR, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested tables merge key by key."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Load and merge the default and environment config files.

    The development file is optional. Any other environment must have its
    own file, so a mistyped RENTDESK_ENV cannot quietly run production with
    development defaults such as in-memory stores.

    Raises:
        FileNotFoundError: default.toml is missing
        UnknownEnvironmentError: A non-development environment has no file
    """
    config_dir = config_dir or get_config_dir()
    env = env or get_environment()

    default_path = config_dir / "default.toml"
    if not default_path.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            f"Create config/default.toml or set {CONFIG_DIR_VAR}."
        )
    config = load_toml(default_path)

    env_path = config_dir / f"{env}.toml"
    if env_path.exists():
        config = deep_merge(config, load_toml(env_path))
    elif env != DEFAULT_ENVIRONMENT:
        known = sorted(p.stem for p in config_dir.glob("*.toml") if p.stem != "default")
        raise UnknownEnvironmentError(
            f"No config file for environment {env!r} in {config_dir}; known: {known}"
        )

    return config
