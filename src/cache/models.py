# src/cache/models.py - v2
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """Single cached response."""

    data: Any
    stored_at: float


class CacheStats(BaseModel):
    """Read-only cache statistics for diagnostics."""

    size: int
    ttl_seconds: float
