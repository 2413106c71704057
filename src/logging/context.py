# src/logging/context.py - v2
"""Contextual logging support: attach file_id, transport and endpoint to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per request.
_file_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_id", default=None
)
_transport: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "transport", default=None
)
_endpoint: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "endpoint", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    file_id: str | None = None
    transport: str | None = None
    endpoint: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        file_id=_file_id.get(),
        transport=_transport.get(),
        endpoint=_endpoint.get(),
    )


def set_file_context(file_id: str | None) -> None:
    """Set the file being worked on (called once per aggregate fetch)."""
    _file_id.set(file_id)


def set_request_context(endpoint: str, transport: str | None = None) -> None:
    """Set request-level context (called per outbound call)."""
    _endpoint.set(endpoint)
    _transport.set(transport)


def clear_context() -> None:
    """Reset all context variables."""
    _file_id.set(None)
    _transport.set(None)
    _endpoint.set(None)
