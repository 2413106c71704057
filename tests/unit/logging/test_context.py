# tests/unit/logging/test_context.py - v2
"""Tests for logging/context.py."""

from __future__ import annotations

import asyncio

import pytest

from figmabridge.logging.context import (
    clear_context,
    get_context,
    set_file_context,
    set_request_context,
)


class TestLogContext:
    def test_empty_by_default(self):
        clear_context()
        assert get_context().as_dict() == {}

    def test_set_and_clear(self):
        set_file_context("FILE")
        set_request_context("/me", "direct")
        assert get_context().as_dict() == {"file_id": "FILE", "endpoint": "/me", "transport": "direct"}
        clear_context()
        assert get_context().file_id is None

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        clear_context()

        async def worker(name: str) -> str | None:
            set_file_context(name)
            await asyncio.sleep(0)
            return get_context().file_id

        results = await asyncio.gather(worker("A"), worker("B"))
        assert results == ["A", "B"]
        assert get_context().file_id is None
