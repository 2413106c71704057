# tests/unit/service/test_tool_response.py - v1
"""Tests for parse_tool_response: broker payload interpretation."""

from __future__ import annotations

import pytest

from figmabridge.core.errors import BrokerCallError, InvalidResponseError
from figmabridge.service.figma_service import parse_tool_response
from figmabridge.transport.models import ToolContent, ToolResponse


class TestParseToolResponse:
    def test_json_text(self):
        response = ToolResponse(content=[ToolContent(type="text", text='{"name": "F"}')])
        assert parse_tool_response(response) == {"name": "F"}

    def test_structured_data(self):
        response = ToolResponse(content=[ToolContent(type="resource", data={"a": 1})])
        assert parse_tool_response(response) == {"a": 1}

    def test_unparsable_text(self):
        response = ToolResponse(content=[ToolContent(type="text", text="not json")])
        with pytest.raises(InvalidResponseError):
            parse_tool_response(response)

    def test_missing_content(self):
        with pytest.raises(InvalidResponseError):
            parse_tool_response(ToolResponse(content=[]))

    def test_empty_content_item(self):
        with pytest.raises(InvalidResponseError):
            parse_tool_response(ToolResponse(content=[ToolContent(type="text", text="")]))

    def test_payload_error_key(self):
        response = ToolResponse(content=[ToolContent(type="text", text='{"error": "Forbidden"}')])
        with pytest.raises(BrokerCallError, match="Forbidden"):
            parse_tool_response(response)

    def test_tool_reported_error(self):
        with pytest.raises(BrokerCallError, match="tool crashed"):
            parse_tool_response(ToolResponse(is_error=True, error_message="tool crashed"))
