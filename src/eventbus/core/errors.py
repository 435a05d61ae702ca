"""Eventbus exceptions."""

from __future__ import annotations


class EventbusError(Exception):
    """Base for eventbus errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class EventbusTypeError(EventbusError, TypeError):
    """Argument contract violation (wrong type for name, count, options or regex)."""


class EventbusDestroyedError(EventbusError, ReferenceError):
    """Operation attempted on a destroyed proxy or secure wrapper."""


class EventbusConfigurationError(EventbusError):
    """Config validation or load failure."""
