# src/logging/context.py — v1
"""Contextual logging support: attach run and capture identity to log records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Set per run, then per capture event while it is being processed.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_carrier: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "carrier", default=None
)
_source_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_id", default=None
)
_captured_at: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "captured_at", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    carrier: str | None = None
    source_id: str | None = None
    captured_at: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}

    @property
    def event(self) -> str | None:
        if self.carrier is None or self.source_id is None:
            return None
        parts = [self.carrier, self.source_id, self.captured_at or "?"]
        return "/".join(parts)


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        carrier=_carrier.get(),
        source_id=_source_id.get(),
        captured_at=_captured_at.get(),
    )


def set_run_context(run_id: str) -> None:
    _run_id.set(run_id)


def set_event_context(carrier: str, source_id: str, captured_at: str) -> None:
    _carrier.set(carrier)
    _source_id.set(source_id)
    _captured_at.set(captured_at)


def clear_event_context() -> None:
    _carrier.set(None)
    _source_id.set(None)
    _captured_at.set(None)


@contextmanager
def event_context(carrier: str, source_id: str, captured_at: str) -> Iterator[None]:
    """Scope log records to one capture event."""
    set_event_context(carrier, source_id, captured_at)
    try:
        yield
    finally:
        clear_event_context()


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    clear_event_context()
