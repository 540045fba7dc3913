# src/logging/context.py — v1
"""Contextual logging support: attach locator, content key and operation to log records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per cache operation.
_locator: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "locator", default=None
)
_content_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "content_key", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    locator: str | None = None
    content_key: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        locator=_locator.get(),
        content_key=_content_key.get(),
        operation=_operation.get(),
    )


def set_fetch_context(locator: str, content_key: str | None = None) -> None:
    """Set resource-level context (called once per fetch task)."""
    _locator.set(locator)
    _content_key.set(content_key)


def set_operation_context(operation: str) -> contextvars.Token[str | None]:
    """Set the cache operation currently running (resolve, fetch, warm).

    Returns the token that restores the previous operation.
    """
    return _operation.set(operation)


@contextmanager
def operation_context(operation: str) -> Iterator[None]:
    """Tag log records with operation for the duration of the block."""
    token = _operation.set(operation)
    try:
        yield
    finally:
        _operation.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _locator.set(None)
    _content_key.set(None)
    _operation.set(None)
