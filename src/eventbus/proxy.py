"""EventbusProxy: a removable view onto another bus.

Everything registered through a proxy is mirrored in the proxy's own table, so
``proxy.off()`` or ``proxy.destroy()`` removes exactly those registrations from
the bus and never anyone else's. Hand one to each plugin and unloading the
plugin cannot leave dangling listeners.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Coroutine, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from eventbus.core.before import before_map
from eventbus.core.constants import TriggerTypeName
from eventbus.core.errors import EventbusDestroyedError
from eventbus.core.names import events_api, object_keys, warn_guarded
from eventbus.core.table import (
    Events,
    check_count,
    check_options,
    check_regex,
    iter_entries,
    iter_names,
    on_api,
)
from eventbus.secure import EventbusSecure, SecureHandle

if TYPE_CHECKING:
    from eventbus.bus import Eventbus


def _proxy_off_api(events: Events, name: Any, callback: Any, opts: dict[str, Any]) -> Events:
    """Drop matching proxy records and remove each one from the bus by its full key."""
    context = opts["context"]
    bus = opts["eventbus"]
    names = [name] if name else object_keys(events)
    for event_name in names:
        handlers = events.get(event_name)
        if not handlers:
            continue

        remaining = []
        for handler in handlers:
            if not handler.matches(callback, context):
                remaining.append(handler)
                continue
            bus.off(event_name, handler.callback, handler.ctx)

        if remaining:
            events[event_name] = remaining
        else:
            del events[event_name]
    return events


class EventbusProxy:
    """Registration-tracking proxy; see the module docstring."""

    def __init__(self, eventbus: Eventbus) -> None:
        self._eventbus: Eventbus | None = eventbus
        self._events: Events = {}

    def __repr__(self) -> str:
        if self._eventbus is None:
            return "<EventbusProxy destroyed>"
        return f"<EventbusProxy name={self.name!r} callbacks={self.proxy_callback_count}>"

    @property
    def _bus(self) -> Eventbus:
        self._check_destroyed()
        return self._eventbus

    def _check_destroyed(self) -> None:
        if self._eventbus is None:
            raise EventbusDestroyedError("This EventbusProxy instance has been destroyed.", code="destroyed")

    @property
    def is_destroyed(self) -> bool:
        return self._eventbus is None

    @property
    def name(self) -> str:
        return f"proxy-{self._bus.name}"

    def destroy(self) -> None:
        """Remove every proxied registration; later calls raise EventbusDestroyedError."""
        if self._eventbus is not None:
            self.off()
        self._events = {}
        self._eventbus = None

    def create_proxy(self) -> EventbusProxy:
        return EventbusProxy(self._bus)

    def create_secure(self, name: str | None = None) -> SecureHandle:
        return EventbusSecure.initialize(self._bus, name)

    # -- registration -------------------------------------------------------

    def on(
        self,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> EventbusProxy:
        bus = self._bus
        options = check_options(options)

        guarded = bus.guarded_names(name)
        if guarded:
            warn_guarded(self, "on", guarded)
            return self

        opts = {"context": context, "ctx": self, "options": options}
        self._events = events_api(on_api, self._events, name, callback, opts)

        # The bus sees the proxy as context unless the caller gave one, so the
        # proxy can later remove exactly its own registrations.
        shared = opts["context"] if opts["context"] is not None else self
        bus.on(name, None if isinstance(name, Mapping) else callback, shared, options)
        return self

    def off(
        self,
        name: Any = None,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
    ) -> EventbusProxy:
        bus = self._bus
        self._events = events_api(
            _proxy_off_api,
            self._events,
            name,
            callback,
            {"context": context, "eventbus": bus},
        )
        return self

    def once(
        self,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> EventbusProxy:
        return self._before("once", 1, name, callback, context, options)

    def before(
        self,
        count: int,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> EventbusProxy:
        return self._before("before", count, name, callback, context, options)

    def _before(
        self,
        operation: str,
        count: int,
        name: Any,
        callback: Callable[..., Any] | None,
        context: Any,
        options: dict[str, Any] | None,
    ) -> EventbusProxy:
        bus = self._bus
        check_count(count)
        options = check_options(options)

        guarded = bus.guarded_names(name)
        if guarded:
            warn_guarded(self, operation, guarded)
            return self

        events = events_api(before_map, {}, name, callback, {"count": count, "after": self.off})
        if context is None and isinstance(name, Mapping):
            context = callback
        return self.on(events, None, context, options)

    # -- triggering ---------------------------------------------------------

    def trigger(self, name: Any, *args: Any) -> EventbusProxy:
        self._bus.trigger(name, *args)
        return self

    def trigger_sync(self, name: Any, *args: Any) -> Any:
        return self._bus.trigger_sync(name, *args)

    def trigger_async(self, name: Any, *args: Any) -> Coroutine[Any, Any, Any]:
        return self._bus.trigger_async(name, *args)

    def trigger_defer(self, name: Any, *args: Any) -> EventbusProxy:
        self._bus.trigger_defer(name, *args)
        return self

    # -- introspection: the wrapped bus ---------------------------------------

    def entries(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, Any, Any, dict[str, Any]]]:
        return self._bus.entries(regex)

    def keys(self, regex: re.Pattern[str] | None = None) -> Iterator[str]:
        return self._bus.keys(regex)

    def keys_with_options(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, dict[str, Any]]]:
        return self._bus.keys_with_options(regex)

    @property
    def event_count(self) -> int:
        return self._bus.event_count

    @property
    def callback_count(self) -> int:
        return self._bus.callback_count

    def get_options(self, name: Any) -> dict[str, Any]:
        return self._bus.get_options(name)

    def get_type(self, name: Any) -> TriggerTypeName | None:
        return self._bus.get_type(name)

    def guarded_names(self, name: Any) -> list[str]:
        return self._bus.guarded_names(name)

    def is_guarded(self, name: Any) -> bool:
        return self._bus.is_guarded(name)

    # -- introspection: this proxy's registrations -----------------------------

    def proxy_entries(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, Any, Any, dict[str, Any]]]:
        self._check_destroyed()
        check_regex(regex)
        return iter_entries(self._events, regex)

    def proxy_keys(self, regex: re.Pattern[str] | None = None) -> Iterator[str]:
        """Distinct event names registered through this proxy."""
        self._check_destroyed()
        check_regex(regex)
        return iter_names(self._events, regex)

    def proxy_keys_with_options(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, dict[str, Any]]]:
        """``(name, options)`` per proxied name; options are the bus-wide view."""
        bus = self._bus
        check_regex(regex)
        return ((name, bus.get_options(name)) for name in iter_names(self._events, regex))

    @property
    def proxy_event_count(self) -> int:
        self._check_destroyed()
        return len(self._events)

    @property
    def proxy_callback_count(self) -> int:
        self._check_destroyed()
        return sum(len(handlers) for handlers in self._events.values())
