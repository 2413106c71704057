# src/transport/models.py - v1
"""Transport-level types: broker connection state, tool responses, client config."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from figmabridge.config.settings import DEFAULT_BROKER_URL, Settings

ConnectionStatus = Literal[
    "disconnected", "connecting", "connected", "reconnecting", "error"
]
TransportMethod = Literal["direct", "broker"]

# Tools the broker is expected to expose.
BROKER_TOOLS: tuple[str, ...] = (
    "get_file",
    "get_comments",
    "get_versions",
    "get_components",
    "get_styles",
    "get_user",
    "get_images",
    "get_nodes",
)
BROKER_CAPABILITIES: tuple[str, ...] = ("tools",)


class ConnectionState(BaseModel):
    """Snapshot of the broker connection. Owned by BrokerClient."""

    status: ConnectionStatus = "disconnected"
    last_connected: datetime | None = None
    last_error: str | None = None
    reconnect_attempts: int = 0
    server_capabilities: list[str] = Field(default_factory=list)
    available_tools: list[str] = Field(default_factory=list)


class ToolContent(BaseModel):
    type: Literal["text", "image", "resource"] = "text"
    text: str | None = None
    data: Any = None
    mime_type: str | None = None


class ToolResponse(BaseModel):
    """Result of a broker tool call."""

    content: list[ToolContent] = Field(default_factory=list)
    is_error: bool = False
    error_message: str | None = None


@dataclass(frozen=True)
class BrokerClientConfig:
    """Broker client tuning. Durations in seconds."""

    server_url: str = DEFAULT_BROKER_URL
    timeout_s: float = 30.0
    retry_attempts: int = 3
    retry_delay_s: float = 1.0
    health_check_enabled: bool = True
    health_check_interval_s: float = 30.0
    health_timeout_s: float = 5.0
    reconnect_enabled: bool = True
    tools: tuple[str, ...] = BROKER_TOOLS
    capabilities: tuple[str, ...] = BROKER_CAPABILITIES

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> BrokerClientConfig:
        """Build from Settings; keyword overrides win."""
        config = cls(
            server_url=settings.broker_url.rstrip("/"),
            timeout_s=settings.broker_timeout_ms / 1000,
            retry_attempts=settings.broker_retry_attempts,
            retry_delay_s=settings.broker_retry_delay_ms / 1000,
            health_check_enabled=settings.broker_health_check_enabled,
            health_check_interval_s=settings.broker_health_check_interval_ms / 1000,
            health_timeout_s=settings.broker_health_timeout_ms / 1000,
            reconnect_enabled=settings.broker_reconnect_enabled,
        )
        return replace(config, **overrides) if overrides else config
