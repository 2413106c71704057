# src/logging/filters.py - v1
"""Credential redaction for log output.

Tokens are never passed to loggers on purpose; this filter masks
anything token-shaped that still slips into a message or its args.
"""

from __future__ import annotations

import logging
import re

REDACTED = "[REDACTED]"

_TOKEN_PATTERNS = (
    re.compile(r"figd_[A-Za-z0-9_-]+"),
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(?i)(x-figma-token['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9._-]+"),
)


def redact(text: str) -> str:
    """Mask token-shaped substrings in text."""
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


class TokenRedactionFilter(logging.Filter):
    """Rewrite record.msg with credentials masked and args merged in."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True
