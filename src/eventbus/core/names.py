"""Name resolution: single names, space-separated names and event maps.

Every bus operation routes its ``name`` argument through :func:`events_api` so
``"change blur"`` and ``{"change": fn, "blur": fn2}`` behave the same
everywhere (on, off, once, before, trigger and listen_to).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from loguru import logger

from eventbus.config import cfg
from eventbus.core.constants import EVENT_SPLITTER

T = TypeVar("T")

# (accumulator, name, callback, opts) -> accumulator
Iteratee = Callable[[T, Any, Any, dict[str, Any]], T]


def split_names(name: str) -> list[str]:
    """Split a space-separated name string; empty tokens are dropped."""
    return [n for n in EVENT_SPLITTER.split(name) if n]


def object_keys(obj: object) -> list[Any]:
    """Keys of a mapping; anything else has none."""
    return list(obj.keys()) if isinstance(obj, Mapping) else []


def events_api(
    iteratee: Iteratee[T],
    events: T,
    name: Any,
    callback: Any,
    opts: dict[str, Any],
) -> T:
    """Apply ``iteratee`` once per resolved (name, callback) pair.

    An event map's second positional argument (``callback``) is the shared
    context for every entry when no explicit context was given.
    """
    if isinstance(name, Mapping):
        if callback is not None and "context" in opts and opts["context"] is None:
            opts["context"] = callback
        for key in object_keys(name):
            events = events_api(iteratee, events, key, name[key], opts)
    elif isinstance(name, str) and EVENT_SPLITTER.search(name):
        for single in split_names(name):
            events = iteratee(events, single, callback, opts)
    else:
        events = iteratee(events, name, callback, opts)
    return events


def error_name(bus: object) -> str:
    """Bus name prefix for log messages ("[name] " or "")."""
    name = getattr(bus, "name", "")
    return f"[{name}] " if name else ""


def warn_guarded(bus: object, operation: str, names: list[str]) -> None:
    """Log a blocked registration on guarded event name(s)."""
    if cfg.warn_on_guarded:
        logger.warning(
            "eventbus {}- {}() failed as event name(s) are guarded: {}",
            error_name(bus),
            operation,
            names,
        )
