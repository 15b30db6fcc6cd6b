"""LoaderConfig dataclass and loader for marker scanning settings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LoaderConfig:
    skip_code_fences: bool = True


def load_loader_config(path: Path | None = None) -> LoaderConfig:
    """Load loader config from the "loader" section of .rulepack.json."""
    config = LoaderConfig()
    if path and path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                section = data.get("loader", {}) if isinstance(data, dict) else {}
                if isinstance(section, dict):
                    _apply(config, section)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load loader config from {path}: {e}")
    if env_val := os.environ.get("RULEPACK_SKIP_CODE_FENCES"):
        config.skip_code_fences = env_val.lower() in ("true", "1", "yes")
    return config


def _apply(cfg: LoaderConfig, data: dict[str, object]) -> None:
    if "skip_code_fences" in data and isinstance(data["skip_code_fences"], bool):
        cfg.skip_code_fences = data["skip_code_fences"]
