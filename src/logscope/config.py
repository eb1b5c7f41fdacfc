"""XDG directory management and configuration for logscope."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from platformdirs import user_config_dir
from pydantic import ValidationError

from logscope.models import ViewportConfig

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the logscope config directory.

    Respects LOGSCOPE_CONFIG_DIR environment variable if set.
    """
    if override := os.environ.get("LOGSCOPE_CONFIG_DIR"):
        return Path(override)
    return Path(user_config_dir("logscope"))


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config() -> ViewportConfig:
    """Load viewport config from disk, returning defaults if not found or invalid."""
    path = get_config_path()
    if not path.exists():
        return ViewportConfig()
    try:
        data: dict[str, Any] = tomllib.loads(path.read_text())
        return ViewportConfig(**data)
    except (OSError, tomllib.TOMLDecodeError, ValidationError, TypeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return ViewportConfig()


def save_config(config: ViewportConfig) -> Path:
    """Save viewport config to disk. Returns the file path."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "config.toml"
    path.write_bytes(tomli_w.dumps(config.model_dump(exclude_none=True)).encode())
    return path
