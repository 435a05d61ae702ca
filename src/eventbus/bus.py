"""Eventbus: named-event registration and triggering with listener bookkeeping.

An evolution of Backbone Events with extra trigger modes that hand back
synchronous or asynchronous results.

Callbacks registered under ``"all"`` run on every trigger and receive the
triggered name as their first argument. Names may be space-separated
(``"change blur"``) or given as an event map (``{"change": fn}``) in every
operation.
"""

from __future__ import annotations

import asyncio
import functools
import re
from collections.abc import Callable, Coroutine, Iterator, Mapping
from typing import Any

from loguru import logger

from eventbus.config import cfg
from eventbus.core import dispatch
from eventbus.core.before import before_map
from eventbus.core.constants import TYPE_NAMES, TriggerTypeName
from eventbus.core.errors import EventbusTypeError
from eventbus.core.listening import Capability, Listening, listen_id, probe_guard, probe_target
from eventbus.core.names import events_api, warn_guarded
from eventbus.core.table import (
    EventOptions,
    Events,
    check_count,
    check_options,
    check_regex,
    guarded_api,
    iter_entries,
    iter_keys,
    iter_names,
    off_api,
    on_api,
    options_api,
)
from eventbus.proxy import EventbusProxy
from eventbus.secure import EventbusSecure, SecureHandle


class Eventbus:
    """In-process publish/subscribe bus."""

    def __init__(self, name: str = "") -> None:
        if not isinstance(name, str):
            raise EventbusTypeError("'name' is not a string", code="invalid_name")
        self._name = name
        self._events: Events = {}
        # listener id -> Listening, for other buses listening to this one
        self._listeners: dict[str, Listening] = {}
        # target listen id -> Listening, for what this bus listens to
        self._listening_to: dict[str, Listening] = {}
        self._listen_id: str | None = None

    def __repr__(self) -> str:
        return f"<Eventbus name={self._name!r} events={self.event_count} callbacks={self.callback_count}>"

    @property
    def name(self) -> str:
        return self._name

    # -- registration -------------------------------------------------------

    def on(
        self,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Eventbus:
        """Bind ``callback`` to event ``name``.

        ``options`` keys: ``guard`` (bool) blocks any later registration under
        the same name while this one exists; ``type`` ("sync" / "async") is a
        hint reported by get_type(). Coroutine functions are always "async".
        """
        return self._on(name, callback, context, check_options(options), None)

    def bind_listening(
        self,
        name: Any,
        callback: Callable[..., Any] | None,
        context: Any,
        listening: Listening,
    ) -> Eventbus:
        """Register on behalf of another bus's listen_to(); ref-counted by ``listening``."""
        return self._on(name, callback, context, {}, listening)

    def _on(
        self,
        name: Any,
        callback: Callable[..., Any] | None,
        context: Any,
        options: dict[str, Any],
        listening: Listening | None,
    ) -> Eventbus:
        guarded = self.guarded_names(name)
        if guarded:
            warn_guarded(self, "on", guarded)
            return self

        self._events = events_api(
            on_api,
            self._events,
            name,
            callback,
            {"context": context, "ctx": self, "options": options, "listening": listening},
        )

        if listening is not None:
            self._listeners[listening.id] = listening
            listening.interop = False

        return self

    def off(
        self,
        name: Any = None,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
    ) -> Eventbus:
        """Remove callbacks.

        ``off("change", fn)`` removes just ``fn``; ``off("change")`` every
        "change" callback; ``off(None, fn)`` ``fn`` from every event;
        ``off(None, None, ctx)`` everything registered with ``ctx``; ``off()``
        everything, detaching any bus listening to this one.
        """
        if not self._events and not self._listeners:
            return self

        self._events = events_api(
            off_api,
            self._events,
            name,
            callback,
            {"context": context, "listeners": self._listeners},
        )
        return self

    def once(
        self,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Eventbus:
        """Like on(), but the callback is removed after it first fires.

        With space-separated names the callback fires once per name.
        """
        return self._before("once", 1, name, callback, context, options)

    def before(
        self,
        count: int,
        name: Any,
        callback: Callable[..., Any] | None = None,
        context: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Eventbus:
        """Like on(), but the callback is removed after firing ``count`` times."""
        return self._before("before", count, name, callback, context, options)

    def _before(
        self,
        operation: str,
        count: int,
        name: Any,
        callback: Callable[..., Any] | None,
        context: Any,
        options: dict[str, Any] | None,
    ) -> Eventbus:
        check_count(count)
        options = check_options(options)

        guarded = self.guarded_names(name)
        if guarded:
            warn_guarded(self, operation, guarded)
            return self

        events = events_api(before_map, {}, name, callback, {"count": count, "after": self.off})

        # An event map's positional callback slot carries the shared context.
        if context is None and isinstance(name, Mapping):
            context = callback
        return self.on(events, None, context, options)

    # -- listening ----------------------------------------------------------

    def listen_to(self, target: Any, name: Any = None, callback: Callable[..., Any] | None = None) -> Eventbus:
        """Bind ``callback`` to ``target``'s events so stop_listening() can drop them all later.

        ``view.listen_to(model, "change", view.render)``
        """
        if target is None:
            return self

        guarded = probe_guard(target, name)
        if guarded:
            warn_guarded(self, "listen_to", guarded)
            return self

        target_id = listen_id(target)
        listening = self._listening_to.get(target_id)
        if listening is None:
            listening = self._listening_to[target_id] = Listening(self, target)
            logger.debug("Listening {} -> {} created", listening.id, target_id)

        capability = probe_target(target)
        if capability is Capability.COMPATIBLE:
            target.bind_listening(name, callback, self, listening)
        else:
            if capability is Capability.ERROR:
                logger.debug("Target {!r} could not be probed; tracking its events manually", target)
            try:
                target.on(name, callback, self)
            except Exception:
                listening.release_if_idle()
                raise
            listening.on(name, callback)

        listening.release_if_idle()
        return self

    def listen_to_once(self, target: Any, name: Any = None, callback: Callable[..., Any] | None = None) -> Eventbus:
        """Like listen_to(), but the callback is removed after it first fires."""
        return self.listen_to_before(1, target, name, callback)

    def listen_to_before(
        self,
        count: int,
        target: Any,
        name: Any = None,
        callback: Callable[..., Any] | None = None,
    ) -> Eventbus:
        """Like listen_to(), but the callback is removed after firing ``count`` times."""
        check_count(count)
        events = events_api(
            before_map,
            {},
            name,
            callback,
            {"count": count, "after": functools.partial(self.stop_listening, target)},
        )
        return self.listen_to(target, events)

    def stop_listening(
        self,
        target: Any = None,
        name: Any = None,
        callback: Callable[..., Any] | None = None,
    ) -> Eventbus:
        """Remove callbacks registered through listen_to().

        With no target every listened-to object is detached.
        """
        if not self._listening_to:
            return self

        if target is not None:
            ids = [getattr(target, "_listen_id", None)]
        else:
            ids = list(self._listening_to)

        for target_id in ids:
            listening = self._listening_to.get(target_id) if target_id is not None else None
            if listening is None:
                continue

            listening.target.off(name, callback, self)
            if listening.interop:
                listening.off(name, callback)

        return self

    # -- triggering ---------------------------------------------------------

    def trigger(self, name: Any, *args: Any) -> Eventbus:
        """Invoke every callback bound to ``name`` (and ``"all"``) with ``args``."""
        if self._events:
            dispatch.fire(self._events, name, args)
        return self

    def trigger_sync(self, name: Any, *args: Any) -> Any:
        """Trigger and return the callbacks' non-None results.

        None when nothing returned a value, the value itself when exactly one
        did, otherwise a list in registration order. Awaitables are returned
        as-is.
        """
        if not self._events:
            return None
        return dispatch.collapse(dispatch.collect_sync(self._events, name, args))

    def trigger_async(self, name: Any, *args: Any) -> Coroutine[Any, Any, Any]:
        """Trigger now and return an awaitable of the settled results.

        Callbacks run before this returns. Awaitable results are awaited and
        combined with the same None / value / list rule as trigger_sync();
        a callback failure (synchronous or awaited) is raised on await.
        """
        if not self._events:
            return dispatch.settle([])
        try:
            pending = dispatch.collect_async(self._events, name, args)
        except Exception as exc:
            return dispatch.rejected(exc)
        return dispatch.settle(pending)

    def trigger_defer(self, name: Any, *args: Any) -> Eventbus:
        """Schedule trigger() on the running event loop and return immediately."""
        loop = asyncio.get_running_loop()
        delay = cfg.defer_delay_seconds
        if delay > 0:
            loop.call_later(delay, functools.partial(self.trigger, name, *args))
        else:
            loop.call_soon(functools.partial(self.trigger, name, *args))
        logger.debug("eventbus {!r} deferred trigger of {!r}", self._name, name)
        return self

    # -- introspection ------------------------------------------------------

    def entries(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, Any, Any, dict[str, Any]]]:
        """Yield ``(name, callback, context, options)`` per registration.

        ``options`` is a copy; editing it does not affect the bus.
        """
        check_regex(regex)
        return iter_entries(self._events, regex)

    def keys(self, regex: re.Pattern[str] | None = None) -> Iterator[str]:
        """Yield the event name of each registration."""
        check_regex(regex)
        return iter_keys(self._events, regex)

    def keys_with_options(self, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield ``(name, get_options(name))`` once per distinct event name."""
        check_regex(regex)
        return ((name, self.get_options(name)) for name in iter_names(self._events, regex))

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def callback_count(self) -> int:
        return sum(len(handlers) for handlers in self._events.values())

    def get_options(self, name: Any) -> dict[str, Any]:
        """Combined options for the name(s): any guard wins, the highest type wins."""
        options = events_api(options_api, EventOptions(), name, None, {"events": self._events})
        return {"guard": options.guard, "type": TYPE_NAMES.get(options.type)}

    def get_type(self, name: Any) -> TriggerTypeName | None:
        """"sync", "async" or None for the name(s)."""
        return self.get_options(name)["type"]

    def guarded_names(self, name: Any) -> list[str]:
        """The name(s) in ``name`` that hold a guarded registration."""
        output = events_api(guarded_api, {"names": [], "guarded": False}, name, None, {"events": self._events})
        return output["names"]

    def is_guarded(self, name: Any) -> bool:
        return bool(self.guarded_names(name))

    # -- wrappers -----------------------------------------------------------

    def create_proxy(self) -> EventbusProxy:
        """Proxy whose registrations can be removed together without touching others."""
        return EventbusProxy(self)

    def create_secure(self, name: str | None = None) -> SecureHandle:
        """Trigger-only wrapper; the handle controls destroy / rebind."""
        return EventbusSecure.initialize(self, name)
