"""Event table: name -> ordered registrations, plus the reducers that edit it.

Each reducer has the :data:`eventbus.core.names.Iteratee` shape so it can be
driven by :func:`eventbus.core.names.events_api`.
"""

from __future__ import annotations

import dataclasses
import inspect
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from eventbus.core.constants import TYPE_ASYNC, TYPE_NUMBERS, TYPE_UNSET
from eventbus.core.errors import EventbusTypeError

if TYPE_CHECKING:
    from eventbus.core.listening import Listening

Events = dict[str, list["Registration"]]


@dataclass
class EventOptions:
    """Per-registration options; ``type`` is 0 (unset), 1 (sync) or 2 (async)."""

    guard: bool = False
    type: int = TYPE_UNSET


@dataclass(eq=False)
class Registration:
    """One callback bound under one event name.

    ``context`` is the caller-supplied value that off() matches against.
    ``ctx`` is the receiver: ``context`` when given, otherwise the owner that
    registered it (a bus or proxy). Callbacks are never called with either,
    and only proxy removal reads ``ctx``.
    """

    callback: Callable[..., Any]
    context: Any
    ctx: Any
    options: EventOptions
    listening: Listening | None = None

    @property
    def original(self) -> Callable[..., Any] | None:
        """Callback wrapped by once()/before(), if any."""
        return getattr(self.callback, "original", None)

    def matches(self, callback: Any, context: Any) -> bool:
        if callback is not None and callback != self.callback and callback != self.original:
            return False
        return context is None or context is self.context


def is_async_callable(callback: Any) -> bool:
    target = getattr(callback, "original", callback)
    if inspect.iscoroutinefunction(target):
        return True
    return inspect.iscoroutinefunction(getattr(target, "__call__", None))


def normalize_options(options: Mapping[str, Any] | None, callback: Any) -> EventOptions:
    """Build a fresh EventOptions; nothing is shared with the caller's mapping."""
    options = options or {}
    guard = options.get("guard")
    if is_async_callable(callback):
        type_number = TYPE_ASYNC
    else:
        value = options.get("type")
        type_number = TYPE_NUMBERS.get(value, TYPE_UNSET) if isinstance(value, str) else TYPE_UNSET
    return EventOptions(guard=guard if isinstance(guard, bool) else False, type=type_number)


def check_count(count: Any) -> None:
    if isinstance(count, bool) or not isinstance(count, int):
        raise EventbusTypeError("'count' is not an integer", code="invalid_count")
    if count < 1:
        raise EventbusTypeError("'count' must be a positive integer", code="invalid_count")


def check_options(options: Any) -> dict[str, Any]:
    """Registration options must be a plain dict; None means no options."""
    if options is None:
        return {}
    if not isinstance(options, dict):
        raise EventbusTypeError("'options' must be a dict", code="invalid_options")
    return options


def check_regex(regex: Any) -> None:
    if regex is not None and not isinstance(regex, re.Pattern):
        raise EventbusTypeError("'regex' is not a re.Pattern", code="invalid_regex")


def on_api(events: Events, name: Any, callback: Any, opts: dict[str, Any]) -> Events:
    """Append a registration; an absent callback is a no-op."""
    if callback is None or name is None:
        return events
    handlers = events.setdefault(name, [])
    context = opts.get("context")
    listening = opts.get("listening")
    if listening is not None:
        listening.increment_count()
    handlers.append(
        Registration(
            callback=callback,
            context=context,
            ctx=context if context is not None else opts.get("ctx"),
            options=normalize_options(opts.get("options"), callback),
            listening=listening,
        )
    )
    return events


def off_api(events: Events, name: Any, callback: Any, opts: dict[str, Any]) -> Events:
    """Remove matching registrations.

    With no name, callback or context every registration is dropped and each
    Listening in ``opts["listeners"]`` detaches itself.
    """
    context = opts.get("context")
    if not name and callback is None and context is None:
        listeners = opts.get("listeners") or {}
        for listening in list(listeners.values()):
            listening.cleanup()
        return {}

    names = [name] if name else list(events)
    for event_name in names:
        handlers = events.get(event_name)
        if not handlers:
            continue

        remaining = []
        for handler in handlers:
            if not handler.matches(callback, context):
                remaining.append(handler)
            elif handler.listening is not None:
                handler.listening.off(event_name, callback)

        if remaining:
            events[event_name] = remaining
        else:
            del events[event_name]
    return events


def guarded_api(output: dict[str, Any], name: Any, callback: Any, opts: dict[str, Any]) -> dict[str, Any]:
    """Collect the names that hold a guarded registration."""
    handlers = opts["events"].get(name) if name is not None else None
    if handlers and any(handler.options.guard for handler in handlers):
        output["names"].append(name)
        output["guarded"] = True
    return output


def options_api(output: EventOptions, name: Any, callback: Any, opts: dict[str, Any]) -> EventOptions:
    """OR the guard flags and keep the highest trigger type."""
    handlers = opts["events"].get(name, ()) if name is not None else ()
    for handler in handlers:
        if handler.options.guard:
            output.guard = True
        if handler.options.type > output.type:
            output.type = handler.options.type
    return output


def iter_entries(events: Events, regex: re.Pattern[str] | None = None) -> Iterator[tuple[str, Any, Any, dict[str, Any]]]:
    for name, handlers in list(events.items()):
        if regex is not None and not regex.search(name):
            continue
        for handler in list(handlers):
            yield name, handler.callback, handler.context, dataclasses.asdict(handler.options)


def iter_keys(events: Events, regex: re.Pattern[str] | None = None) -> Iterator[str]:
    """One name per registration, in registration order."""
    for name, handlers in list(events.items()):
        if regex is not None and not regex.search(name):
            continue
        for _ in range(len(handlers)):
            yield name


def iter_names(events: Events, regex: re.Pattern[str] | None = None) -> Iterator[str]:
    """Distinct event names."""
    for name in list(events):
        if regex is None or regex.search(name):
            yield name
