"""Config schema and accessor."""

from __future__ import annotations

import os
from typing import Any

from loguru import logger

from eventbus.core.errors import EventbusConfigurationError

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "EVENTBUS_LOG_LEVEL",
    "EVENTBUS_WARN_ON_GUARDED",
)

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

DEFAULT_BUS_NAMES: dict[str, str] = {
    "main": "mainEventbus",
    "plugin": "pluginEventbus",
    "test": "testEventbus",
    "aux": "auxEventbus",
}


def default_config() -> dict[str, Any]:
    """Fresh mapping of every top-level key with its default value."""
    return {
        "log_level": "INFO",
        "warn_on_guarded": True,
        "defer_delay_seconds": 0.0,
        "bus_names": dict(DEFAULT_BUS_NAMES),
    }


def _load_env_overrides() -> dict[str, str]:
    """Load env overrides once per reload."""
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


def _parse_bool_env(val: str) -> bool | None:
    """Parse env string to bool; None if not a recognized bool."""
    v = val.lower()
    if v in ("1", "true", "yes"):
        return True
    if v in ("0", "false", "no"):
        return False
    return None


class Config:
    """Config accessor with attribute-style access for nested keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug("Config reloaded: log_level={} buses={}", self.log_level, list(self.bus_names))

    def _validate(self) -> None:
        """Validate config structure; raise EventbusConfigurationError on failure."""
        level = self.log_level
        if level not in _LOG_LEVELS:
            raise EventbusConfigurationError(
                f"unknown log_level {level!r}",
                code="invalid_log_level",
                details={"log_level": level},
            )
        delay = self._data.get("defer_delay_seconds", 0)
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
            raise EventbusConfigurationError(
                "defer_delay_seconds must be a non-negative number",
                code="invalid_defer_delay",
                details={"value": delay},
            )
        names = self._data.get("bus_names")
        if names is not None and not isinstance(names, dict):
            raise EventbusConfigurationError(
                "bus_names must be a mapping",
                code="invalid_bus_names",
                details={"type": type(names).__name__},
            )

    @property
    def raw(self) -> dict[str, Any]:
        """Raw config dict."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'bus_names.main')."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def log_level(self) -> str:
        env_val = self._env.get("EVENTBUS_LOG_LEVEL", "")
        if env_val:
            return env_val.upper()
        return str(self._data.get("log_level", "INFO")).upper()

    @property
    def warn_on_guarded(self) -> bool:
        """Whether blocked registrations on guarded names are logged."""
        env_val = self._env.get("EVENTBUS_WARN_ON_GUARDED", "")
        parsed = _parse_bool_env(env_val)
        if parsed is not None:
            return parsed
        return bool(self._data.get("warn_on_guarded", True))

    @property
    def defer_delay_seconds(self) -> float:
        """Delay before a deferred trigger runs; 0 means next loop iteration."""
        return float(self._data.get("defer_delay_seconds", 0))

    @property
    def bus_names(self) -> dict[str, str]:
        """Names for the module-level bus instances."""
        names = dict(DEFAULT_BUS_NAMES)
        val = self._data.get("bus_names")
        if isinstance(val, dict):
            names.update({str(k): str(v) for k, v in val.items()})
        return names


# Global config instance
cfg: Config = Config({})
