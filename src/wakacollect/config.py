"""Collector configuration.

Settings live in ~/.wakacollect/config.yaml (or $WAKACOLLECT_HOME/config.yaml):

    git_options: file_io      # cli | file_io | disabled
    same_file_timeout: 120    # seconds between heartbeats for one entity
    git_timeout: 5            # seconds allowed for `git rev-parse`
    branch_cache_ttl: 0       # seconds to reuse a branch lookup, 0 = off

Environment variables WAKACOLLECT_GIT_OPTIONS and
WAKACOLLECT_SAME_FILE_TIMEOUT override the file.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from wakacollect.errors import ConfigError
from wakacollect.vcs.branch import GitOptions

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "WAKACOLLECT_GIT_OPTIONS": "git_options",
    "WAKACOLLECT_SAME_FILE_TIMEOUT": "same_file_timeout",
}


class CollectorSettings(BaseModel):
    """Validated collector settings."""
    git_options: GitOptions = GitOptions.CLI
    same_file_timeout: float = Field(default=120.0, ge=0)
    git_timeout: float = Field(default=5.0, gt=0)
    branch_cache_ttl: float = Field(default=0.0, ge=0)
    language: str = "Unity"
    project_name: str | None = None
    debug: bool = False


def get_config_dir() -> Path:
    """Get the config directory."""
    home = os.environ.get("WAKACOLLECT_HOME")
    if home:
        return Path(home)
    return Path.home() / ".wakacollect"


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {path}: expected a mapping")
        return {}
    return data


def load_settings(path: Path | None = None) -> CollectorSettings:
    """Load settings from YAML, then apply environment overrides."""
    path = path or get_config_path()
    data = _read_yaml(path)

    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data[key] = value

    try:
        return CollectorSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_settings(settings: CollectorSettings, path: Path | None = None) -> Path:
    """Save settings to YAML. Returns the path written."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(settings.model_dump(mode="json"), f, default_flow_style=False)
    return path
