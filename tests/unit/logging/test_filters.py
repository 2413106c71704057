# tests/unit/logging/test_filters.py - v1
"""Tests for logging/filters.py: credential redaction."""

from __future__ import annotations

import logging

from figmabridge.logging.filters import REDACTED, TokenRedactionFilter, redact


class TestRedact:
    def test_personal_token(self):
        assert redact("using figd_AbC-123_x now") == f"using {REDACTED} now"

    def test_bearer(self):
        assert redact("Authorization: Bearer abc.def") == f"Authorization: Bearer {REDACTED}"

    def test_figma_header(self):
        assert "secret" not in redact("X-Figma-Token: secret123")

    def test_plain_text_untouched(self):
        assert redact("nothing to see") == "nothing to see"


class TestTokenRedactionFilter:
    def test_rewrites_args(self):
        record = logging.LogRecord(
            "figmabridge", logging.INFO, __file__, 1, "token=%s", ("figd_zzz",), None
        )
        assert TokenRedactionFilter().filter(record) is True
        assert record.getMessage() == f"token={REDACTED}"
        assert record.args is None

    def test_leaves_clean_record(self):
        record = logging.LogRecord(
            "figmabridge", logging.INFO, __file__, 1, "count=%d", (3,), None
        )
        TokenRedactionFilter().filter(record)
        assert record.args == (3,)
