"""Config loading: a YAML file layered over the defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from eventbus.config.schema import Config, cfg, default_config


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``base`` with ``override`` laid on top; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_update(current, value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path) -> dict[str, Any]:
    """Read one YAML mapping with the safe loader; ``{}`` when absent or empty."""
    path = Path(path)
    if not path.is_file():
        logger.warning("No config file at {}; using defaults", path)
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        logger.error("Cannot parse config {}: {}", path, exc)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config {}: top level is {}, not a mapping", path, type(data).__name__)
        return {}
    return data


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML after loading .env into the process environment."""
    from dotenv import load_dotenv

    load_dotenv()
    return load_config(path)


def reload_config(path: str | Path) -> Config:
    """Merge the file at ``path`` over the defaults and install it in the global cfg.

    Keys the file leaves out, including single entries of ``bus_names``, keep
    their default values.
    """
    data = load_config_with_env(path)
    cfg.reload(_deep_update(default_config(), data))
    return cfg
