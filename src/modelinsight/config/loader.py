"""
Configuration loading utilities.

Supports environment variable interpolation and merging over defaults.
The active configuration is process-wide and loaded lazily from the file
named by ``MODELINSIGHT_CONFIG`` (if set).
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from modelinsight.config.settings import InsightConfig
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)

CONFIG_ENV_VAR = "MODELINSIGHT_CONFIG"

# ${VAR} or ${VAR:default}
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}")

_active_config: InsightConfig | None = None


def _expand_env(value: Any) -> Any:
    """Substitute environment references in all strings of a parsed YAML tree."""
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if not isinstance(value, str):
        return value
    return _ENV_REFERENCE.sub(
        lambda m: os.environ.get(m["name"], m["default"] or ""), value
    )


def _merge_settings(
    defaults: dict[str, Any], overrides: dict[str, Any], prefix: str = ""
) -> dict[str, Any]:
    """
    Overlay user settings on the default settings tree.

    Nested sections are merged key by key. Keys without a default are
    rejected, so misspelled options fail instead of being ignored.
    """
    unknown = sorted(f"{prefix}{key}" for key in overrides if key not in defaults)
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}"
        raise ValueError(msg)

    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(defaults[key], dict) and isinstance(value, dict):
            merged[key] = _merge_settings(defaults[key], value, f"{prefix}{key}.")
        else:
            merged[key] = value
    return merged


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a settings file; an empty file gives an empty mapping."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Configuration file {path} must contain a mapping"
        raise ValueError(msg)
    return _expand_env(data)


def load_config(config_path: Path | None = None) -> InsightConfig:
    """
    Load configuration from a YAML file.

    Values in the file override the defaults; missing sections keep
    their defaults. Unknown sections and keys are rejected.

    Args:
        config_path: Path to the YAML file. If None, defaults are returned.

    Returns:
        Validated InsightConfig instance.
    """
    defaults = InsightConfig().model_dump(mode="json")
    if config_path is None:
        return InsightConfig()

    data = load_yaml(config_path)
    unknown = sorted(set(data) - set(defaults))
    if unknown:
        msg = f"Unknown configuration sections: {', '.join(unknown)}"
        raise ValueError(msg)

    merged = _merge_settings(defaults, data)
    log.debug("Loaded configuration", path=str(config_path))
    return InsightConfig.model_validate(merged)


def get_config() -> InsightConfig:
    """
    Return the active configuration, loading it on first use.

    Returns:
        The process-wide InsightConfig.
    """
    global _active_config
    if _active_config is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        _active_config = load_config(Path(env_path) if env_path else None)
    return _active_config


def set_config(config: InsightConfig | None) -> None:
    """
    Replace the active configuration.

    Args:
        config: New configuration, or None to reload lazily on next use.
    """
    global _active_config
    _active_config = config
