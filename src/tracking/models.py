# src/tracking/models.py - v2
"""API call log models: ApiCallRecord, ApiLogSummary."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

CallKind = Literal["request", "response", "error", "mock"]


class ApiCallRecord(BaseModel):
    """One observed API event."""

    timestamp: datetime
    kind: CallKind
    endpoint: str
    success: bool | None = None
    source: str | None = None
    message: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ApiLogSummary(BaseModel):
    """Totals per kind plus the most recent records."""

    total_requests: int = 0
    total_responses: int = 0
    total_errors: int = 0
    total_mock_substitutions: int = 0
    recent: list[ApiCallRecord] = Field(default_factory=list)
