# src/service/models.py - v1
"""Facade-level models: connection config and diagnostics."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from figmabridge.cache.models import CacheStats
from figmabridge.tracking.models import ApiLogSummary
from figmabridge.transport.models import ConnectionStatus, TransportMethod

Environment = Literal["production", "development", "unknown"]


class ConnectionConfig(BaseModel):
    """Active transport method and credential.

    The token is excluded from repr and from model_dump().
    """

    method: TransportMethod = "direct"
    token: str | None = Field(default=None, repr=False, exclude=True)
    broker_url: str | None = None
    broker_timeout_ms: int | None = None


class BrokerStatus(BaseModel):
    """Read-only view of the broker connection for diagnostics."""

    is_connected: bool
    status: ConnectionStatus
    server_url: str
    last_error: str | None = None
    available_tools: list[str] = Field(default_factory=list)
    fallback_enabled: bool = True
    environment: Environment = "unknown"
    transport: TransportMethod = "direct"


class ConnectionTestResult(BaseModel):
    """Outcome of test_connection().

    success stays True whenever the direct fallback can serve requests;
    mode says which transport will actually be used.
    """

    success: bool = True
    mode: TransportMethod
    message: str
    errors: list[str] = Field(default_factory=list)
    status: BrokerStatus | None = None


class ServiceDiagnostics(BaseModel):
    broker: BrokerStatus
    configuration: dict[str, Any]
    cache: CacheStats
    api_calls: ApiLogSummary
