"""In-process publish/subscribe event bus."""

from eventbus.bus import Eventbus
from eventbus.core.errors import (
    EventbusConfigurationError,
    EventbusDestroyedError,
    EventbusError,
    EventbusTypeError,
)
from eventbus.proxy import EventbusProxy
from eventbus.secure import EventbusSecure, SecureHandle

__version__ = "0.1.0"

__all__ = [
    "Eventbus",
    "EventbusConfigurationError",
    "EventbusDestroyedError",
    "EventbusError",
    "EventbusProxy",
    "EventbusSecure",
    "EventbusTypeError",
    "SecureHandle",
    "__version__",
]
