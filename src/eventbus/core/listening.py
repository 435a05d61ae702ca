"""Listening ledger: tracks "listener is listening to target" for bulk detach."""

from __future__ import annotations

import enum
import itertools
from typing import Any

from loguru import logger

from eventbus.core.errors import EventbusTypeError
from eventbus.core.names import events_api
from eventbus.core.table import Events, off_api, on_api

_id_counter = itertools.count(1)


def unique_id(prefix: str = "") -> str:
    """Process-unique id with an optional prefix."""
    return f"{prefix}{next(_id_counter)}"


def listen_id(obj: Any) -> str:
    """Return the object's listen id, assigning one on first use."""
    lid = getattr(obj, "_listen_id", None)
    if lid is None:
        lid = unique_id("l")
        obj._listen_id = lid
    return lid


class Capability(enum.Enum):
    """Result of probing a listen_to target."""

    COMPATIBLE = "compatible"
    INCOMPATIBLE = "incompatible"
    ERROR = "error"


def probe_target(target: Any) -> Capability:
    """Compatible targets accept ref-counted registrations via ``bind_listening``."""
    try:
        bind = getattr(target, "bind_listening", None)
        guard = getattr(target, "is_guarded", None)
    except Exception as exc:
        logger.debug("Capability probe failed for {!r}: {}", target, exc)
        return Capability.ERROR
    if callable(bind) and callable(guard):
        return Capability.COMPATIBLE
    return Capability.INCOMPATIBLE


def probe_guard(target: Any, name: Any) -> list[str]:
    """Names guarded on ``target``; probe failures count as not guarded."""
    try:
        guarded_names = getattr(target, "guarded_names", None)
        if callable(guarded_names):
            return list(guarded_names(name))
        is_guarded = getattr(target, "is_guarded", None)
        if callable(is_guarded) and is_guarded(name) is True:
            return events_api(_collect_name, [], name, None, {})
    except Exception as exc:
        logger.debug("Guard probe failed for {!r}, treating as not guarded: {}", target, exc)
    return []


def _collect_name(names: list[str], name: Any, callback: Any, opts: dict[str, Any]) -> list[str]:
    names.append(name)
    return names


class Listening:
    """One listener -> target relationship.

    Against a compatible bus the registrations are reference counted. Any other
    target (interop mode) is shadowed by a private event table instead, and the
    relationship ends when that table empties.
    """

    def __init__(self, listener: Any, target: Any) -> None:
        self.id = listen_id(listener)
        self.listener = listener
        self.target = target
        self.count = 0
        self._interop = True
        self._events: Events = {}

    def __repr__(self) -> str:
        return f"<Listening {self.id} -> {listen_id(self.target)} interop={self._interop} count={self.count}>"

    @property
    def interop(self) -> bool:
        return self._interop

    @interop.setter
    def interop(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise EventbusTypeError("'value' is not a bool", code="invalid_interop")
        self._interop = value

    @property
    def idle(self) -> bool:
        """True when nothing is tracked any more."""
        return not self._events if self._interop else self.count <= 0

    def increment_count(self) -> None:
        self.count += 1

    def cleanup(self) -> None:
        """Remove this record from the listener's and the target's ledgers."""
        self.listener._listening_to.pop(listen_id(self.target), None)
        if not self._interop:
            self.target._listeners.pop(self.id, None)
        logger.debug("Listening {} -> {} cleaned up", self.id, listen_id(self.target))

    def release_if_idle(self) -> None:
        if self.idle:
            self.cleanup()

    def on(self, name: Any, callback: Any = None, context: Any = None) -> Listening:
        """Shadow a registration made on an interop target."""
        self._events = events_api(on_api, self._events, name, callback, {"context": context, "ctx": self})
        return self

    def off(self, name: Any = None, callback: Any = None) -> None:
        if self._interop:
            self._events = events_api(off_api, self._events, name, callback, {"context": None, "listeners": None})
            done = not self._events
        else:
            self.count -= 1
            done = self.count == 0

        if done:
            self.cleanup()
