"""Configuration management utilities for stream-aiter."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ValidationError

__all__ = [
    "IteratorOptions",
    "get_default_config",
    "load_env_config",
    "load_options",
    "load_yaml_config",
    "merge_config",
]

logger = logging.getLogger(__name__)

_SECTION = "stream_aiter"
_DEFAULT_CONFIG_FILE = Path("stream_aiter.yaml")
_ENV_TO_CONFIG_KEY = {
    "STREAM_AITER_SIZE": "size",
}


@dataclass(frozen=True)
class IteratorOptions:
    """Options for wrapping a source."""

    size: Optional[int] = None  # units per read; None uses the source default

    def validate(self) -> "IteratorOptions":
        size = self.size
        if size is None:
            return self
        if isinstance(size, bool) or not isinstance(size, int):
            raise ValidationError(f"size must be an integer, got {size!r}")
        if size <= 0:
            raise ValidationError(f"size must be positive, got {size}")
        return self


def merge_config(
    overrides: Dict[str, Any],
    env_config: Dict[str, Any],
    file_config: Dict[str, Any],
    defaults: Dict[str, Any],
) -> Dict[str, Any]:
    """Merge options with precedence overrides > env > file > defaults."""
    merged = dict(defaults)
    merged.update(file_config)
    merged.update(env_config)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return merged


def load_yaml_config(yaml_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``stream_aiter`` section of a YAML file, or an empty dict."""
    path = yaml_path or _DEFAULT_CONFIG_FILE
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.warning("Failed to load %s: %s", path, exc)
        return {}

    if not isinstance(data, dict):
        return {}
    section = data.get(_SECTION, {})
    return section if isinstance(section, dict) else {}


def load_env_config() -> Dict[str, Any]:
    """Load supported options from the current environment."""
    config: Dict[str, Any] = {}
    for env_key, config_key in _ENV_TO_CONFIG_KEY.items():
        raw = os.environ.get(env_key)
        if raw is None or not raw.strip():
            continue
        try:
            config[config_key] = int(raw)
        except ValueError as exc:
            raise ValidationError(f"{env_key} must be an integer, got {raw!r}") from exc
    return config


def get_default_config() -> Dict[str, Any]:
    return {"size": None}


def load_options(
    yaml_path: Optional[Path] = None, **overrides: Any
) -> IteratorOptions:
    """Load options from defaults, a YAML file, the environment, and overrides."""
    config = merge_config(
        overrides=overrides,
        env_config=load_env_config(),
        file_config=load_yaml_config(yaml_path),
        defaults=get_default_config(),
    )
    unknown = sorted(set(config) - set(get_default_config()))
    if unknown:
        raise ValidationError(f"Unknown option(s): {', '.join(unknown)}")
    logger.debug("Resolved iterator options: %s", config)
    return IteratorOptions(**config).validate()
