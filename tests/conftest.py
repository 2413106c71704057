# tests/conftest.py - v2
"""Shared test fixtures for all unit tests.

Provides settings without .env, an httpx MockTransport factory, a fake
sleep that records delays, and sample Figma payloads. No network I/O.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import pytest

from figmabridge.config.settings import Settings

TEST_TOKEN = "figd_" + "a" * 71
TEST_FILE_ID = "AbCdEf123456"


class FakeSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


# === FIXTURES: Configuration ===


@pytest.fixture
def token() -> str:
    return TEST_TOKEN


@pytest.fixture
def file_id() -> str:
    return TEST_FILE_ID


@pytest.fixture
def settings() -> Settings:
    """Direct-transport settings with a token and broker timers disabled."""
    return Settings(
        _env_file=None,
        figma_token=TEST_TOKEN,
        figma_transport="direct",
        broker_health_check_enabled=False,
    )


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


# === FIXTURES: HTTP ===


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


# === FIXTURES: Sample payloads ===


@pytest.fixture
def file_payload() -> dict[str, Any]:
    return {
        "name": "Checkout Flow",
        "role": "editor",
        "lastModified": "2024-03-01T12:00:00Z",
        "editorType": "figma",
        "thumbnailUrl": "https://figma.example/thumb.png",
        "version": "42",
        "document": {
            "id": "0:0",
            "name": "Document",
            "type": "DOCUMENT",
            "children": [
                {
                    "id": "0:1",
                    "name": "Page 1",
                    "type": "CANVAS",
                    "children": [
                        {
                            "id": "1:1",
                            "name": "Cart",
                            "type": "FRAME",
                            "children": [{"id": "1:2", "name": "Title", "type": "TEXT"}],
                        },
                        {"id": "1:3", "name": "Loose", "type": "RECTANGLE"},
                    ],
                },
                {"id": "0:2", "name": "Page 2", "type": "CANVAS", "children": []},
            ],
        },
        "components": {},
        "componentSets": {"5:1": {"key": "set-key", "name": "Button"}},
        "schemaVersion": 0,
        "styles": {},
    }


@pytest.fixture
def user_payload() -> dict[str, Any]:
    return {"id": "u1", "handle": "ada", "email": "ada@example.com", "img_url": ""}


@pytest.fixture
def comments_payload() -> dict[str, Any]:
    return {
        "comments": [
            {"id": "c1", "message": "old", "created_at": "2024-01-01T00:00:00Z"},
            {
                "id": "c2",
                "message": "done",
                "created_at": "2024-02-01T00:00:00Z",
                "resolved_at": "2024-02-02T00:00:00Z",
            },
        ]
    }


@pytest.fixture
def versions_payload() -> dict[str, Any]:
    return {
        "versions": [
            {"id": "v1", "created_at": "2024-01-01T00:00:00Z", "label": "first"},
            {"id": "v2", "created_at": "2024-03-01T00:00:00Z", "label": "latest"},
        ]
    }


@pytest.fixture
def components_payload() -> dict[str, Any]:
    return {
        "meta": {
            "components": [
                {"key": "k1", "name": "Button/Primary", "component_set_id": "5:1"},
                {"key": "k2", "name": "Logo"},
            ]
        }
    }


@pytest.fixture
def styles_payload() -> dict[str, Any]:
    return {
        "meta": {
            "styles": [
                {"key": "s1", "name": "Blue", "style_type": "FILL"},
                {"key": "s2", "name": "H1", "style_type": "TEXT"},
                {"key": "s3", "name": "Shadow", "style_type": "EFFECT"},
            ]
        }
    }


@pytest.fixture
def figma_api(
    file_payload, user_payload, comments_payload, versions_payload,
    components_payload, styles_payload,
) -> dict[str, Any]:
    """REST path -> payload for a healthy remote API."""
    return {
        f"/v1/files/{TEST_FILE_ID}": file_payload,
        "/v1/me": user_payload,
        f"/v1/files/{TEST_FILE_ID}/comments": comments_payload,
        f"/v1/files/{TEST_FILE_ID}/versions": versions_payload,
        f"/v1/files/{TEST_FILE_ID}/components": components_payload,
        f"/v1/files/{TEST_FILE_ID}/styles": styles_payload,
    }
