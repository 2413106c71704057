# src/transport/direct_client.py - v1
"""Direct transport: authenticated GET calls straight to the Figma REST API.

Translates every failure into the figmabridge error taxonomy. Never
retries; retry policy belongs to callers.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from figmabridge.config.settings import DEFAULT_FIGMA_API_BASE
from figmabridge.core.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitOrServerError,
    UnexpectedError,
    status_message,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0


class DirectClient:
    """Figma REST client using a personal access token."""

    def __init__(
        self,
        base_url: str = DEFAULT_FIGMA_API_BASE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def request(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        token: str | None = None,
        timeout_s: float | None = None,
    ) -> Any:
        """GET {base_url}{path} and return the decoded JSON body.

        Raises:
            AuthError: Token missing, or rejected with 401.
            PermissionDeniedError: 403.
            NotFoundError: 404.
            RateLimitOrServerError: 429 or 5xx.
            NetworkError: No response (connection failure or timeout).
            UnexpectedError: Any other status or an undecodable body.
        """
        if not token:
            raise AuthError("Access token is required")

        url = f"{self._base_url}{path}"
        timeout = timeout_s if timeout_s is not None else self._timeout_s
        logger.debug("GET %s params=%s timeout=%.1fs", path, dict(params or {}), timeout)

        try:
            response = await self._get_client().get(
                url,
                params=dict(params or {}),
                headers={"X-Figma-Token": token},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(
                f"Request to {path} timed out after {timeout:.0f}s", timed_out=True
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Network error calling {path}: {type(exc).__name__}"
            ) from exc

        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise UnexpectedError(
                    f"Invalid JSON in response from {path}", response.status_code
                ) from exc

        raise _error_for_status(path, response)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _remote_detail(response: httpx.Response) -> str | None:
    """Pull the remote error text ("err" or "message") from a response body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        detail = body.get("err") or body.get("message")
        return str(detail) if detail else None
    return None


def _error_for_status(path: str, response: httpx.Response) -> Exception:
    status = response.status_code
    detail = _remote_detail(response)
    logger.warning("Figma API returned %d for %s", status, path)

    if status == 401:
        return AuthError("Invalid access token. Please check your Figma token.", status)
    if status == 403:
        return PermissionDeniedError(
            "Access denied. Please check your token permissions.", status
        )
    if status == 404:
        return NotFoundError("Resource not found. Please check the file or node ID.", status)
    if status == 429 or status >= 500:
        return RateLimitOrServerError(status_message(status, detail), status)
    return UnexpectedError(status_message(status, detail), status)
