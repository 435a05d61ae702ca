"""Dispatcher: invokes registrations and shapes their results.

Per trigger mode:

* fire  - return values are discarded; coroutines are scheduled as tasks.
* sync  - non-None return values are collected; awaitables pass through as-is.
* async - like sync, but the collected values are settled by awaiting them.

Results travel internally as a plain list (none / one / many) and only
collapse to ``None`` / value / list at the public boundary.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Generator, Sequence
from typing import Any

from loguru import logger

from eventbus.core.constants import ALL_EVENT
from eventbus.core.names import events_api
from eventbus.core.table import Events, Registration

Invoker = Callable[[Sequence[Registration], tuple[Any, ...], list[Any]], None]

# Strong references to coroutines scheduled by fire mode until they finish
_background_tasks: set[asyncio.Task[Any]] = set()


def collapse(values: list[Any]) -> Any:
    """None for no values, the value itself for one, the list for many."""
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


class PendingResults:
    """Awaitable aggregate of several results collected for one event name."""

    def __init__(self, values: list[Any]) -> None:
        self.values = values

    def __await__(self) -> Generator[Any, None, Any]:
        return settle_many(self.values).__await__()

    def close(self) -> None:
        close_pending(self.values)


def invoke_fire(handlers: Sequence[Registration], args: tuple[Any, ...], out: list[Any]) -> None:
    for handler in handlers:
        result = handler.callback(*args)
        if inspect.iscoroutine(result):
            schedule(result)


def schedule(coro: Any) -> asyncio.Task[Any] | None:
    """Run a fire-mode coroutine as a task on the running loop.

    Without a running loop the coroutine is closed unrun.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; dropping coroutine {}", coro.__qualname__)
        coro.close()
        return None
    task = loop.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def invoke_collect(handlers: Sequence[Registration], args: tuple[Any, ...], out: list[Any]) -> None:
    for handler in handlers:
        result = handler.callback(*args)
        if result is not None:
            out.append(result)


def trigger_api(invoke: Invoker, events: Events, name: Any, args: tuple[Any, ...], out: list[Any]) -> None:
    """Invoke ``name``'s registrations, then the ``all`` registrations.

    Both lists are snapshotted before anything runs: a callback added during
    this trigger does not fire until the next one, and one removed by an
    earlier callback still completes this pass.
    """
    handlers = tuple(events.get(name, ()))
    all_handlers = tuple(events.get(ALL_EVENT, ()))
    if handlers:
        invoke(handlers, args, out)
    if all_handlers:
        invoke(all_handlers, (name, *args), out)


def _fire_name(acc: None, name: Any, callback: Any, opts: dict[str, Any]) -> None:
    trigger_api(invoke_fire, opts["events"], name, opts["args"], [])


def _sync_name(acc: list[Any], name: Any, callback: Any, opts: dict[str, Any]) -> list[Any]:
    trigger_api(invoke_collect, opts["events"], name, opts["args"], acc)
    return acc


def _async_name(acc: list[Any], name: Any, callback: Any, opts: dict[str, Any]) -> list[Any]:
    raw: list[Any] = []
    try:
        trigger_api(invoke_collect, opts["events"], name, opts["args"], raw)
    except BaseException:
        close_pending(raw)
        raise

    if len(raw) > 1:
        acc.append(PendingResults(raw))
    else:
        acc.extend(raw)
    return acc


def fire(events: Events, name: Any, args: tuple[Any, ...]) -> None:
    events_api(_fire_name, None, name, None, {"events": events, "args": args})


def collect_sync(events: Events, name: Any, args: tuple[Any, ...]) -> list[Any]:
    return events_api(_sync_name, [], name, None, {"events": events, "args": args})


def collect_async(events: Events, name: Any, args: tuple[Any, ...]) -> list[Any]:
    """Invoke callbacks now; returns values / awaitables still to be settled."""
    pending: list[Any] = []
    try:
        return events_api(_async_name, pending, name, None, {"events": events, "args": args})
    except BaseException:
        close_pending(pending)
        raise


def close_pending(values: list[Any]) -> None:
    """Close coroutines that will never be awaited."""
    for value in values:
        if isinstance(value, PendingResults) or inspect.iscoroutine(value):
            value.close()


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def settle_many(values: list[Any]) -> Any:
    """Await every value, splice list results and collapse; the first failure wins."""
    flat: list[Any] = []
    for value in await asyncio.gather(*(_resolve(value) for value in values)):
        if isinstance(value, list):
            flat.extend(value)
        elif value is not None:
            flat.append(value)
    return collapse(flat)


async def settle(pending: list[Any]) -> Any:
    """Final pass for trigger_async over the values collected across names."""
    if not pending:
        return None
    if len(pending) == 1:
        return await _resolve(pending[0])
    return await settle_many(pending)


async def rejected(exc: BaseException) -> Any:
    raise exc
