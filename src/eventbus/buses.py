"""Shared bus instances, importable from anywhere in a process.

Names come from ``cfg.bus_names`` when this module is first imported.
"""

from __future__ import annotations

from eventbus.bus import Eventbus
from eventbus.config import cfg

_names = cfg.bus_names

eventbus = Eventbus(_names["main"])
"""General purpose bus."""

plugin_eventbus = Eventbus(_names["plugin"])
"""Bus for a plugin system."""

test_eventbus = Eventbus(_names["test"])
"""Bus for tests."""

aux_eventbus = Eventbus(_names["aux"])
"""Auxiliary bus."""

__all__ = ["aux_eventbus", "eventbus", "plugin_eventbus", "test_eventbus"]
