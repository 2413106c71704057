# src/core/errors.py - v1
"""Error taxonomy shared by both transports, the thumbnail fetcher and the facade.

Every error carries a human-readable message and, where one exists, the
HTTP status code. Credentials never appear in any message.
"""

from __future__ import annotations

from typing import Any


class FigmaBridgeError(Exception):
    """Base class for all figmabridge errors."""

    retryable: bool = False

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class AuthError(FigmaBridgeError):
    """Credential missing or rejected (401)."""


class NotFoundError(FigmaBridgeError):
    """Requested file/node/resource does not exist (404)."""


class PermissionDeniedError(FigmaBridgeError):
    """Credential valid but lacks access to the resource (403)."""


class RateLimitOrServerError(FigmaBridgeError):
    """429 or 5xx from the remote side."""

    retryable = True


class NetworkError(FigmaBridgeError):
    """No response received (connection failure or timeout)."""

    retryable = True

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class UnexpectedError(FigmaBridgeError):
    """Anything the other categories do not cover."""


class InputValidationError(FigmaBridgeError):
    """Malformed identifier or argument, raised before any network call."""


class NotConnectedError(FigmaBridgeError):
    """Broker call attempted while the broker is not connected."""

    def __init__(self, state: str, last_error: str | None = None) -> None:
        detail = f" - {last_error}" if last_error else ""
        super().__init__(f"Broker client is not connected: {state}{detail}")
        self.state = state
        self.last_error = last_error


class NoToolMappingError(FigmaBridgeError):
    """No broker tool corresponds to a REST path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No broker tool mapping found for endpoint: {path}")
        self.path = path


class InvalidResponseError(FigmaBridgeError):
    """Broker payload could not be interpreted."""


class BrokerConnectionError(FigmaBridgeError):
    """Connecting to the broker failed."""


class BrokerCallError(FigmaBridgeError):
    """A broker tool call failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, status_code)
        self.retryable = status_code is None or status_code == 429 or status_code >= 500


_STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request - check parameters",
    401: "Authentication failed - check token",
    403: "Access denied - insufficient permissions",
    404: "Resource not found - check file/node ID",
    429: "Rate limit exceeded - try again later",
    500: "Server error - try again later",
    502: "Gateway error - service unavailable",
    503: "Service unavailable - try again later",
    504: "Request timeout - try again later",
}


def status_message(status_code: int, detail: str | None = None) -> str:
    """Human message for an HTTP status, falling back to the remote detail."""
    if status_code in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status_code]
    return f"API error ({status_code}): {detail or 'Unknown error'}"


def classify_error(error: BaseException) -> str:
    """Classify an exception into a coarse category used for retry decisions."""
    if isinstance(error, NetworkError):
        return "timeout" if error.timed_out else "network"
    if isinstance(error, AuthError):
        return "auth"
    if isinstance(error, PermissionDeniedError):
        return "permission"
    if isinstance(error, NotFoundError):
        return "not_found"
    if isinstance(error, InputValidationError):
        return "validation"

    status = getattr(error, "status_code", None)
    if status == 429:
        return "rate_limit"
    if isinstance(status, int) and status >= 500:
        return "server_error"
    if isinstance(error, (RateLimitOrServerError, BrokerCallError)) and status is None:
        return "network"

    msg = str(error).lower()
    name = type(error).__name__.lower()
    if "timeout" in name or "timed out" in msg:
        return "timeout"
    if "connection reset" in msg or "connection refused" in msg:
        return "network"
    return "unexpected"


_RETRYABLE_CATEGORIES = frozenset({"timeout", "network", "server_error", "rate_limit"})


def is_retryable(error: BaseException) -> bool:
    """Whether a failed call is worth repeating."""
    return classify_error(error) in _RETRYABLE_CATEGORIES


def format_api_error(error: BaseException) -> str:
    """Render an error as a short, consistent, credential-free reason string."""
    if isinstance(error, NetworkError):
        if error.timed_out:
            return "Request timed out - try again later"
        return "Network error - check internet connection"
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        detail: Any = getattr(error, "message", None) or str(error)
        return status_message(status, detail)
    return str(error) or "Unknown error occurred"
