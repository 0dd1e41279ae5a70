"""Configuration loading and validation."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from gho.errors import PersistenceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "gho"

# Checked in this order; the first one set wins.
TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")
REPOSITORY_ENV_VAR = "GITHUB_REPOSITORY"
CONFIG_DIR_ENV_VAR = "GHO_CONFIG_DIR"

SETTINGS_FILENAME = "config.yaml"


def default_config_dir(env: Mapping[str, str] | None = None) -> Path:
    """Resolve the per-user configuration directory.

    Args:
        env: Environment mapping. Defaults to os.environ.

    Returns:
        GHO_CONFIG_DIR if set, else $XDG_CONFIG_HOME/gho, else ~/.config/gho.
    """
    env = os.environ if env is None else env

    if env.get(CONFIG_DIR_ENV_VAR):
        return Path(env[CONFIG_DIR_ENV_VAR]).expanduser()

    if env.get("XDG_CONFIG_HOME"):
        return Path(env["XDG_CONFIG_HOME"]).expanduser() / SERVICE_NAME

    return Path.home() / ".config" / SERVICE_NAME


class Settings(BaseModel):
    """Runtime settings for gho."""

    config_dir: Path = Field(default_factory=default_config_dir)
    api_base_url: str = "https://api.github.com"
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=2, ge=0, le=10)
    per_page: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=50, ge=1, description="Hard cap on pages per listing")
    fetch_merge_state: bool = Field(
        default=True, description="Fetch each PR to learn its mergeable_state"
    )
    service_name: str = SERVICE_NAME


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings, applying overrides from config.yaml if present.

    Args:
        config_dir: Configuration directory. Defaults to default_config_dir().

    Returns:
        Validated Settings object.

    Raises:
        PersistenceError: If config.yaml cannot be read or is invalid.
    """
    config_dir = config_dir or default_config_dir()
    path = config_dir / SETTINGS_FILENAME

    raw: dict[str, Any] = {}
    if path.exists():
        try:
            with path.open() as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            msg = f"Cannot read settings file {path}: {e}"
            raise PersistenceError(msg) from e

        if not isinstance(raw, dict):
            msg = f"Settings file {path} must contain a mapping"
            raise PersistenceError(msg)

        logger.debug("Loaded settings overrides from %s", path)

    raw["config_dir"] = config_dir

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        msg = f"Invalid settings in {path}: {e}"
        raise PersistenceError(msg) from e
