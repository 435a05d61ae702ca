"""Dispatcher and listener bookkeeping engine."""

from eventbus.core.errors import (
    EventbusConfigurationError,
    EventbusDestroyedError,
    EventbusError,
    EventbusTypeError,
)

__all__ = [
    "EventbusConfigurationError",
    "EventbusDestroyedError",
    "EventbusError",
    "EventbusTypeError",
]
