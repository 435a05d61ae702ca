"""Count-limited callback wrappers backing once(), before() and listen_to_before()."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any


class BeforeWrapper:
    """Invokes ``callback`` for its first ``count`` calls, then runs ``after`` once.

    Later calls return the last result without invoking ``callback``. ``after``
    receives the wrapper so it can unregister it; both references are dropped
    before ``after`` runs, so re-entrant triggers cannot fire it twice.
    """

    def __init__(
        self,
        count: int,
        callback: Callable[..., Any],
        after: Callable[[BeforeWrapper], Any] | None = None,
    ) -> None:
        self._remaining = count + 1
        self._callback: Callable[..., Any] | None = callback
        self._after = after
        self._result: Any = None
        # Kept after exhaustion so off(name, original) still matches.
        self.original = callback

    def __call__(self, *args: Any) -> Any:
        self._remaining -= 1
        if self._remaining > 0 and self._callback is not None:
            self._result = self._callback(*args)

        if self._remaining <= 1:
            after = self._after
            self._after = None
            self._callback = None
            if after is not None:
                after(self)

        return self._result

    def __repr__(self) -> str:
        return f"<BeforeWrapper remaining={max(self._remaining - 1, 0)} original={self.original!r}>"


def before_map(
    events: dict[str, BeforeWrapper],
    name: Any,
    callback: Any,
    opts: dict[str, Any],
) -> dict[str, BeforeWrapper]:
    """Reduce (name, callback) pairs into ``{name: BeforeWrapper}``.

    ``opts["after"]`` is called as ``after(name, wrapper)`` once the wrapper is
    exhausted, normally ``off`` or a bound ``stop_listening``.
    """
    if callback is not None:
        events[name] = BeforeWrapper(opts["count"], callback, functools.partial(opts["after"], name))
    return events
