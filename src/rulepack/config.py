"""Configuration defaults, config file loading, and environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".rulepack.json"

# Server defaults
DEFAULT_PORT = 41787
DEFAULT_ROOT_DOCUMENT = "CLAUDE.md"


def get_data_dir() -> Path:
    env = os.environ.get("RULEPACK_DATA_DIR")
    if env:
        return Path(env)
    return Path.home() / ".rulepack" / "data"


@dataclass
class Config:
    port: int = DEFAULT_PORT
    root_document: str = DEFAULT_ROOT_DOCUMENT
    base_dir: str | None = None

    @property
    def root_path(self) -> Path:
        return Path(self.root_document)

    @property
    def base_path(self) -> Path | None:
        return Path(self.base_dir) if self.base_dir else None


def load_config(path: Path | None = None) -> Config:
    """Load config from JSON file with env var overrides."""
    config = Config()

    if path and path.exists():
        try:
            data = json.loads(path.read_text())
            if isinstance(data, dict):
                _apply(config, data)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config {path}: {e}")

    # Env var overrides
    port_env = os.environ.get("RULEPACK_PORT")
    if port_env:
        try:
            config.port = int(port_env)
        except ValueError:
            logger.warning(f"Ignoring invalid RULEPACK_PORT: {port_env!r}")
    if root_env := os.environ.get("RULEPACK_ROOT"):
        config.root_document = root_env
    if base_env := os.environ.get("RULEPACK_BASE_DIR"):
        config.base_dir = base_env

    return config


def default_config_path() -> Path:
    return Path.cwd() / CONFIG_FILE_NAME


def _apply(config: Config, data: dict[str, object]) -> None:
    if "port" in data and isinstance(data["port"], int) and not isinstance(data["port"], bool):
        config.port = data["port"]
    if "root_document" in data and isinstance(data["root_document"], str):
        config.root_document = data["root_document"]
    if "base_dir" in data and isinstance(data["base_dir"], str):
        config.base_dir = data["base_dir"]
