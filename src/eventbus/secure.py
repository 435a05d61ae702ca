"""EventbusSecure: a trigger-only view onto a bus.

Consumers holding the wrapper can trigger and inspect events but cannot add or
remove registrations. Whoever created it keeps the :class:`SecureHandle` and
can destroy the wrapper or point it at another bus.
"""

from __future__ import annotations

import re
from collections.abc import Coroutine, Iterator
from typing import Any

from eventbus.core.constants import TriggerTypeName
from eventbus.core.errors import EventbusDestroyedError, EventbusTypeError


def _check_name(name: Any) -> None:
    if name is not None and not isinstance(name, str):
        raise EventbusTypeError("'name' is not a string", code="invalid_name")


class SecureHandle:
    """Controls one EventbusSecure; only the creator should hold this."""

    def __init__(self, eventbus_secure: EventbusSecure) -> None:
        self.eventbus_secure: EventbusSecure | None = eventbus_secure
        self._secure = eventbus_secure

    def destroy(self) -> None:
        """Detach the wrapper from its bus. Safe to call more than once."""
        if not self._secure.is_destroyed:
            self._secure._eventbus = None
            self.eventbus_secure = None

    def set_eventbus(self, eventbus: Any, name: str | None = None) -> None:
        """Point the wrapper at another bus.

        Without ``name`` the wrapper adopts the new bus's name, but only if it
        was still using the old bus's name.
        """
        _check_name(name)
        secure = self._secure
        if secure.is_destroyed:
            return

        if name is None:
            if secure._name == secure._eventbus.name:
                secure._name = eventbus.name
        else:
            secure._name = name
        secure._eventbus = eventbus


class EventbusSecure:
    """Read / trigger access to a bus; create with :meth:`initialize`."""

    def __init__(self) -> None:
        self._eventbus: Any = None
        self._name = ""

    @classmethod
    def initialize(cls, eventbus: Any, name: str | None = None) -> SecureHandle:
        """Wrap ``eventbus``; the wrapper's name defaults to the bus name."""
        _check_name(name)
        secure = cls()
        secure._eventbus = eventbus
        secure._name = eventbus.name if name is None else name
        return SecureHandle(secure)

    def __repr__(self) -> str:
        if self._eventbus is None:
            return "<EventbusSecure destroyed>"
        return f"<EventbusSecure name={self._name!r}>"

    def _check_destroyed(self) -> None:
        if self._eventbus is None:
            raise EventbusDestroyedError("This EventbusSecure instance has been destroyed.", code="destroyed")

    @property
    def _bus(self) -> Any:
        self._check_destroyed()
        return self._eventbus

    @property
    def is_destroyed(self) -> bool:
        return self._eventbus is None

    @property
    def name(self) -> str:
        self._check_destroyed()
        return self._name

    def keys(self, regex: re.Pattern[str] | None = None) -> Iterator[str]:
        return self._bus.keys(regex)

    def keys_with_options(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, dict[str, Any]]]:
        return self._bus.keys_with_options(regex)

    def get_options(self, name: Any) -> dict[str, Any]:
        return self._bus.get_options(name)

    def get_type(self, name: Any) -> TriggerTypeName | None:
        return self._bus.get_type(name)

    def trigger(self, name: Any, *args: Any) -> EventbusSecure:
        self._bus.trigger(name, *args)
        return self

    def trigger_sync(self, name: Any, *args: Any) -> Any:
        return self._bus.trigger_sync(name, *args)

    def trigger_async(self, name: Any, *args: Any) -> Coroutine[Any, Any, Any]:
        return self._bus.trigger_async(name, *args)

    def trigger_defer(self, name: Any, *args: Any) -> EventbusSecure:
        self._bus.trigger_defer(name, *args)
        return self
