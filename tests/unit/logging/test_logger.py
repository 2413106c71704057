# tests/unit/logging/test_logger.py - v2
"""Tests for logging/logger.py: formatters, level aliases, setup."""

from __future__ import annotations

import json
import logging

from figmabridge.logging.context import clear_context, set_file_context, set_request_context
from figmabridge.logging.logger import (
    ROOT_LOGGER_NAME,
    JsonFormatter,
    TextFormatter,
    get_logger,
    resolve_level,
    setup_logging,
)


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("figmabridge.test", logging.INFO, __file__, 1, msg, args, None)


class TestJsonFormatter:
    def test_basic_fields(self):
        clear_context()
        entry = json.loads(JsonFormatter().format(_record("hello %s", "world")))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "figmabridge.test"
        assert entry["message"] == "hello world"
        assert "context" not in entry

    def test_context_attached(self):
        set_file_context("FILE123")
        set_request_context("/files/FILE123", "broker")
        try:
            entry = json.loads(JsonFormatter().format(_record("x")))
            assert entry["context"] == {
                "file_id": "FILE123", "transport": "broker", "endpoint": "/files/FILE123",
            }
        finally:
            clear_context()

    def test_token_redacted(self):
        out = JsonFormatter().format(_record("token %s", "figd_abcdef123"))
        assert "figd_abcdef123" not in out


class TestTextFormatter:
    def test_transport_and_file(self):
        set_file_context("FILE123")
        set_request_context("/me", "direct")
        try:
            out = TextFormatter().format(_record("done"))
            assert "[direct]" in out
            assert "(file=FILE123)" in out
            assert out.endswith("- done")
        finally:
            clear_context()


class TestLevels:
    def test_warn_alias(self):
        assert resolve_level("warn") == logging.WARNING
        assert resolve_level("WARNING") == logging.WARNING

    def test_unknown_is_info(self):
        assert resolve_level("chatty") == logging.INFO


class TestSetup:
    def test_setup_installs_single_handler(self):
        setup_logging("debug", "json")
        setup_logging("warn", "text")
        root = logging.getLogger(ROOT_LOGGER_NAME)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
        root.handlers.clear()

    def test_get_logger_namespaced(self):
        assert get_logger("service").name == "figmabridge.service"
