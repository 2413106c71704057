# src/cache/fingerprint.py - v3
"""Request fingerprinting for the response cache.

A fingerprint is a SHA-256 over the canonical JSON form of
(endpoint path, query parameters). Parameters are serialized with sorted
keys, so logically identical requests map to one key regardless of the
insertion order of their parameters.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping


def canonical_request(path: str, params: Mapping[str, Any] | None = None) -> str:
    """Canonical JSON text of a request (stable across key orderings)."""
    payload = {"path": path, "params": dict(params or {})}
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def compute_fingerprint(path: str, params: Mapping[str, Any] | None = None) -> str:
    """Compute the cache key of a request.

    Args:
        path: Endpoint path relative to the API base (e.g. "/files/abc").
        params: Query parameters, or None.

    Returns:
        Hex SHA-256 digest.
    """
    return hashlib.sha256(canonical_request(path, params).encode("utf-8")).hexdigest()
