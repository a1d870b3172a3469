"""Release configuration management.

Handles persistent configuration stored in ~/.unshackle/config.yaml.
Supports environment variable overrides; CLI flags are applied on top by the
command line.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Default values
DEFAULT_LOG_LEVEL = "warning"
DEFAULT_START_MESSAGE = "Starting a release."

CONFIG_KEYS = ["resume_from", "log_level", "start_message", "shell"]

# Environment variable mappings
ENV_VARS = {
    "resume_from": "UNSHACKLE_FROM",
    "log_level": "UNSHACKLE_LOG_LEVEL",
    "start_message": "UNSHACKLE_START_MESSAGE",
    "shell": "UNSHACKLE_SHELL",
}


@dataclass
class UnshackleConfig:
    """Release engine configuration."""

    resume_from: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    start_message: str = DEFAULT_START_MESSAGE
    shell: str | None = None

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def set_value(self, key: str, value: Any, source: str) -> None:
        """Override a config value and remember where it came from."""
        if key not in CONFIG_KEYS:
            raise KeyError(key)
        setattr(self, key, value)
        self._sources[key] = source

    def to_dict(self) -> dict[str, Any]:
        """Return the effective values keyed by config key."""
        return {key: getattr(self, key) for key in CONFIG_KEYS}


def get_config_path() -> Path:
    """Get the config file path.

    Returns:
        Path to ~/.unshackle/config.yaml
    """
    return Path.home() / ".unshackle" / "config.yaml"


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config() -> UnshackleConfig:
    """Load release configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.unshackle/config.yaml)
    3. Defaults

    Returns:
        UnshackleConfig with values and sources
    """
    config = UnshackleConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    config_path = get_config_path()
    if config_path.exists():
        file_config = _read_config_file(config_path)
        for key in CONFIG_KEYS:
            if file_config.get(key) is not None:
                setattr(config, key, str(file_config[key]))
                sources[key] = "config file"

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            setattr(config, key, os.environ[env_var])
            sources[key] = "environment"

    config._sources = sources
    return config


def save_config(key: str, value: Any) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (resume_from, log_level, start_message, shell)
        value: Value to save
    """
    config_path = get_config_path()

    existing: dict[str, Any] = {}
    if config_path.exists():
        existing = _read_config_file(config_path)

    existing[key] = value

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)


def unset_config(key: str) -> bool:
    """Remove a config value from the config file.

    Args:
        key: Config key to remove

    Returns:
        True if key was removed, False if not found
    """
    config_path = get_config_path()
    if not config_path.exists():
        return False

    existing = _read_config_file(config_path)
    if key not in existing:
        return False

    del existing[key]

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    return True
