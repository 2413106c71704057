# src/transport/broker_client.py - v1
"""Broker transport: HTTP client for the local tool broker.

Connection lifecycle (all transitions go through _transition()):

    disconnected -> connecting -> connected | error
    connected    -> error         (failed periodic health check or tool call)
    error        -> reconnecting  (attempts remain; delay = base * 2**attempts)
    reconnecting -> connecting
    any          -> disconnected  (disconnect())

The periodic health check and the reconnect timer are asyncio tasks owned
by the client; both are cancelled by disconnect() and the health task
is released whenever the client leaves the connected state.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping

import httpx

from figmabridge.core.errors import (
    BrokerCallError,
    BrokerConnectionError,
    NotConnectedError,
)
from figmabridge.transport.models import (
    BrokerClientConfig,
    ConnectionState,
    ConnectionStatus,
    ToolContent,
    ToolResponse,
)

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

# "disconnected" is reachable from every state and self-transitions are no-ops.
_ALLOWED_TRANSITIONS: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    "disconnected": frozenset({"connecting"}),
    "connecting": frozenset({"connected", "error"}),
    "connected": frozenset({"error"}),
    "error": frozenset({"reconnecting", "connecting"}),
    "reconnecting": frozenset({"connecting"}),
}


class BrokerClient:
    """Tool-call client with health checking and exponential-backoff reconnect."""

    def __init__(
        self,
        config: BrokerClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config or BrokerClientConfig()
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self._state = ConnectionState()
        self._health_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        logger.debug(
            "Broker client initialized: url=%s timeout=%.1fs retries=%d",
            self._config.server_url, self._config.timeout_s, self._config.retry_attempts,
        )

    @property
    def config(self) -> BrokerClientConfig:
        return self._config

    @property
    def server_url(self) -> str:
        return self._config.server_url.rstrip("/")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    # --- State ---

    def get_connection_state(self) -> ConnectionState:
        """Copy of the current state; mutating it has no effect on the client."""
        return self._state.model_copy(deep=True)

    def is_connected(self) -> bool:
        return self._state.status == "connected"

    def _transition(self, status: ConnectionStatus, *, error: str | None = None) -> None:
        current = self._state.status
        if (
            status != current
            and status != "disconnected"
            and status not in _ALLOWED_TRANSITIONS[current]
        ):
            raise RuntimeError(f"Illegal broker state transition: {current} -> {status}")

        updates: dict[str, Any] = {"status": status}
        if error is not None:
            updates["last_error"] = error
        if status == "connected":
            updates.update(
                last_connected=datetime.now(timezone.utc),
                last_error=None,
                reconnect_attempts=0,
                server_capabilities=list(self._config.capabilities),
                available_tools=list(self._config.tools),
            )
        elif status == "reconnecting":
            updates["reconnect_attempts"] = self._state.reconnect_attempts + 1
        elif status == "disconnected":
            updates["reconnect_attempts"] = 0

        self._state = self._state.model_copy(update=updates)
        if status != current:
            logger.debug("Broker state %s -> %s", current, status)

    # --- Lifecycle ---

    async def connect(self) -> None:
        """Connect to the broker; no-op when already connected or connecting.

        On failure, schedules a reconnect while attempts remain (and
        reconnect is enabled), otherwise raises.

        Raises:
            BrokerConnectionError: Health check failed and no reconnect is scheduled.
        """
        if self._state.status in ("connected", "connecting"):
            return

        self._transition("connecting")
        logger.info("Connecting to broker at %s", self.server_url)

        healthy = await self.health_check()
        if self._state.status != "connecting":
            # disconnect() ran while the health check was in flight
            return

        if not healthy:
            reason = "Broker is not reachable or not responding to health checks"
            self._transition("error", error=reason)
            logger.error("Failed to connect to broker: %s", reason)
            if self._can_reconnect():
                self._schedule_reconnect()
                return
            raise BrokerConnectionError(f"Broker connection failed: {reason}")

        self._transition("connected")
        logger.info(
            "Broker connected; tools: %s", ", ".join(self._state.available_tools)
        )
        if self._config.health_check_enabled:
            self._start_health_check()

    async def disconnect(self) -> None:
        """Cancel timers, reset to disconnected. Safe from any state, repeatable."""
        current = asyncio.current_task()
        pending = [
            task
            for task in (self._health_task, self._reconnect_task)
            if task is not None and not task.done() and task is not current
        ]
        self._health_task = None
        self._reconnect_task = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._transition("disconnected")

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Broker client disconnected")

    async def health_check(self) -> bool:
        """GET {server_url}/health with its own short timeout. Never raises."""
        try:
            response = await self._get_client().get(
                f"{self.server_url}/health",
                headers={"Content-Type": "application/json"},
                timeout=self._config.health_timeout_s,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Broker health check failed: %s", type(exc).__name__)
            return False
        if not response.is_success:
            logger.warning("Broker health check returned HTTP %d", response.status_code)
            return False
        return True

    def _can_reconnect(self) -> bool:
        return (
            self._config.reconnect_enabled
            and self._state.reconnect_attempts < self._config.retry_attempts
        )

    def _start_health_check(self) -> None:
        _cancel_task(self._health_task)
        self._health_task = asyncio.create_task(self._health_loop())

    async def _health_loop(self) -> None:
        while self._state.status == "connected":
            await self._sleep(self._config.health_check_interval_s)
            if self._state.status != "connected":
                return
            if not await self.health_check():
                logger.warning("Periodic broker health check failed")
                self._handle_connection_loss("Connection lost during health check")
                return

    def _handle_connection_loss(self, reason: str) -> None:
        if self._state.status != "connected":
            return
        self._transition("error", error=reason)
        _cancel_task(self._health_task)
        if self._can_reconnect():
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        _cancel_task(self._reconnect_task)
        delay = self._config.retry_delay_s * (2 ** self._state.reconnect_attempts)
        self._transition("reconnecting")
        logger.info(
            "Scheduling broker reconnect in %.1fs (attempt %d/%d)",
            delay, self._state.reconnect_attempts, self._config.retry_attempts,
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        if self._state.status != "reconnecting":
            return
        try:
            await self.connect()
        except BrokerConnectionError as exc:
            logger.error("Broker reconnection failed: %s", exc)

    # --- Tools ---

    async def call_tool(self, name: str, args: Mapping[str, Any]) -> ToolResponse:
        """POST {server_url}/tools/{name} with args as JSON.

        Transport failures, timeouts and 5xx answers mark the connection as
        lost (which may schedule a reconnect) before the error is raised.

        Raises:
            NotConnectedError: Client is not in the connected state.
            BrokerCallError: The call failed.
        """
        if self._state.status != "connected":
            raise NotConnectedError(self._state.status, self._state.last_error)

        headers = {"Content-Type": "application/json"}
        token = args.get("token")
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug(
            "Calling broker tool %s (args: %s)",
            name, ", ".join(sorted(k for k in args if k != "token")),
        )
        try:
            response = await self._get_client().post(
                f"{self.server_url}/tools/{name}",
                json=dict(args),
                headers=headers,
                timeout=self._config.timeout_s,
            )
        except httpx.TimeoutException as exc:
            self._handle_connection_loss(f"Tool call {name} timed out")
            raise BrokerCallError(f"Broker tool call {name} timed out") from exc
        except httpx.TransportError as exc:
            self._handle_connection_loss(f"Tool call {name} failed: {type(exc).__name__}")
            raise BrokerCallError(
                f"Broker tool call {name} failed: {type(exc).__name__}"
            ) from exc

        if not response.is_success:
            status = response.status_code
            if status >= 500:
                self._handle_connection_loss(f"Broker returned HTTP {status}")
            raise BrokerCallError(
                f"Broker tool call {name} failed: HTTP {status} {response.reason_phrase}",
                status,
            )

        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        logger.debug("Broker tool call succeeded: %s", name)
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return ToolResponse(content=[ToolContent(type="text", text=text)])

    async def list_tools(self) -> list[str]:
        if self._state.status != "connected":
            raise NotConnectedError(self._state.status, self._state.last_error)
        return list(self._state.available_tools)

    # --- Vocabulary wrappers ---

    async def get_file(self, file_id: str, token: str) -> ToolResponse:
        return await self.call_tool("get_file", {"file_id": file_id, "token": token})

    async def get_comments(self, file_id: str, token: str) -> ToolResponse:
        return await self.call_tool("get_comments", {"file_id": file_id, "token": token})

    async def get_versions(self, file_id: str, token: str) -> ToolResponse:
        return await self.call_tool("get_versions", {"file_id": file_id, "token": token})

    async def get_components(self, file_id: str, token: str) -> ToolResponse:
        return await self.call_tool("get_components", {"file_id": file_id, "token": token})

    async def get_styles(self, file_id: str, token: str) -> ToolResponse:
        return await self.call_tool("get_styles", {"file_id": file_id, "token": token})

    async def get_user(self, token: str) -> ToolResponse:
        return await self.call_tool("get_user", {"token": token})

    async def get_images(self, file_id: str, node_ids: list[str], token: str) -> ToolResponse:
        return await self.call_tool(
            "get_images", {"file_id": file_id, "ids": ",".join(node_ids), "token": token}
        )

    async def get_nodes(self, file_id: str, node_ids: list[str], token: str) -> ToolResponse:
        return await self.call_tool(
            "get_nodes", {"file_id": file_id, "ids": ",".join(node_ids), "token": token}
        )


def _cancel_task(task: asyncio.Task[None] | None) -> None:
    """Cancel a background task unless it is the one currently running."""
    if task is None or task.done():
        return
    if task is asyncio.current_task():
        return
    task.cancel()
