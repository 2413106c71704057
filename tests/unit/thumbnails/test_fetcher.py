# tests/unit/thumbnails/test_fetcher.py - v1
"""Tests for thumbnails/fetcher.py: batching, retries, partition invariant."""

from __future__ import annotations

from typing import Any

import pytest

from figmabridge.core.errors import (
    AuthError,
    InputValidationError,
    NetworkError,
    RateLimitOrServerError,
)
from figmabridge.thumbnails.fetcher import ThumbnailFetcher, chunked


class FakeImageApi:
    """Answers image-export calls from a scripted list of behaviours.

    Each script entry is either an Exception to raise, a callable
    ids -> payload, or a payload dict. When the script is exhausted,
    every requested id gets a URL.
    """

    def __init__(self, script: list[Any] | None = None) -> None:
        self.script = list(script or [])
        self.calls: list[tuple[str, dict[str, Any], float | None]] = []

    async def __call__(self, path: str, params: dict[str, Any], timeout_s: float | None) -> Any:
        self.calls.append((path, params, timeout_s))
        ids = params["ids"].split(",")
        if self.script:
            step = self.script.pop(0)
            if isinstance(step, Exception):
                raise step
            if callable(step):
                return step(ids)
            return step
        return {"err": None, "images": {i: f"https://img/{i}.png" for i in ids}}

    def requested_ids(self) -> list[list[str]]:
        return [c[1]["ids"].split(",") for c in self.calls]


def _fetcher(api, fake_sleep, **kwargs) -> ThumbnailFetcher:
    return ThumbnailFetcher(api, sleep=fake_sleep, **kwargs)


def _ids(n: int) -> list[str]:
    return [f"{i}:{i}" for i in range(1, n + 1)]


class TestValidation:
    @pytest.mark.asyncio
    async def test_invalid_ids_never_sent(self, fake_sleep):
        api = FakeImageApi()
        result = await _fetcher(api, fake_sleep).fetch("F", ["123:45", "bad-id", "67:89"])
        assert result.errors == {"bad-id": "Invalid node ID format: bad-id"}
        assert set(result.images) == {"123:45", "67:89"}
        assert api.requested_ids() == [["123:45", "67:89"]]

    @pytest.mark.asyncio
    async def test_only_invalid_ids(self, fake_sleep):
        api = FakeImageApi()
        result = await _fetcher(api, fake_sleep).fetch("F", ["nope", "x"])
        assert set(result.errors) == {"nope", "x"}
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_missing_file_id(self, fake_sleep):
        with pytest.raises(InputValidationError):
            await _fetcher(FakeImageApi(), fake_sleep).fetch("", ["1:1"])

    def test_bad_batch_size(self):
        with pytest.raises(ValueError):
            ThumbnailFetcher(FakeImageApi(), batch_size=0)


class TestBatching:
    @pytest.mark.asyncio
    async def test_batches_of_configured_size(self, fake_sleep):
        api = FakeImageApi()
        result = await _fetcher(api, fake_sleep, batch_size=20).fetch("F", _ids(45))
        assert [len(ids) for ids in api.requested_ids()] == [20, 20, 5]
        assert result.success_count == 45
        assert result.retried == []

    @pytest.mark.asyncio
    async def test_request_shape(self, fake_sleep):
        api = FakeImageApi()
        await _fetcher(api, fake_sleep, batch_timeout_s=20.0).fetch("F", ["1:1"], "svg", 2)
        path, params, timeout = api.calls[0]
        assert path == "/images/F"
        assert params == {"ids": "1:1", "format": "svg", "scale": 2}
        assert timeout == 20.0

    @pytest.mark.asyncio
    async def test_duplicates_collapse(self, fake_sleep):
        api = FakeImageApi()
        result = await _fetcher(api, fake_sleep).fetch("F", ["1:1", "1:1", "2:2"])
        assert api.requested_ids() == [["1:1", "2:2"]]
        assert set(result.images) == {"1:1", "2:2"}

    def test_chunked(self):
        assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]


class TestMissingIdRetry:
    @pytest.mark.asyncio
    async def test_eighteen_of_twenty_then_recovered(self, fake_sleep):
        ids = _ids(20)
        first = {"err": None, "images": {i: f"u/{i}" for i in ids[:18]} | {ids[18]: None}}
        api = FakeImageApi([first])
        result = await _fetcher(api, fake_sleep).fetch("F", ids)

        assert len(result.images) == 20
        assert result.errors == {}
        assert sorted(result.retried) == sorted(ids[18:])
        assert api.requested_ids()[1] == ids[18:]
        assert fake_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_linear_backoff_then_terminal_error(self, fake_sleep):
        def only_first(ids):
            return {"images": {ids[0]: "u"} if ids[0] == "1:1" else {}}

        api = FakeImageApi([only_first, {"images": {}}, {"images": {}}])
        result = await _fetcher(api, fake_sleep, max_retries=2).fetch("F", ["1:1", "2:2"])

        assert result.images == {"1:1": "u"}
        assert result.errors["2:2"].startswith("Failed to generate thumbnail after 3 attempts")
        assert result.retried == ["2:2"]
        assert fake_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_no_retries_configured(self, fake_sleep):
        api = FakeImageApi([{"images": {}}])
        result = await _fetcher(api, fake_sleep, max_retries=0).fetch("F", ["1:1"])
        assert "after 1 attempts" in result.errors["1:1"]
        assert result.retried == []


class TestBatchErrors:
    @pytest.mark.asyncio
    async def test_structured_error_fails_whole_batch(self, fake_sleep):
        api = FakeImageApi([{"err": "Render timeout", "images": {}}])
        result = await _fetcher(api, fake_sleep).fetch("F", ["1:1", "2:2"])
        assert result.errors == {"1:1": "Render timeout", "2:2": "Render timeout"}
        assert len(api.calls) == 1
        assert result.retried == []

    @pytest.mark.asyncio
    async def test_retryable_exception_falls_back_to_individual(self, fake_sleep):
        api = FakeImageApi([
            NetworkError("t", timed_out=True),
            {"images": {"1:1": "u1"}},
            RateLimitOrServerError("busy", 500),
        ])
        result = await _fetcher(
            api, fake_sleep, individual_delay_s=0.1, individual_timeout_s=10.0
        ).fetch("F", ["1:1", "2:2"])

        assert result.images == {"1:1": "u1"}
        assert result.errors == {"2:2": "Server error - try again later"}
        assert result.retried == ["1:1", "2:2"]
        assert api.requested_ids()[1:] == [["1:1"], ["2:2"]]
        assert [c[2] for c in api.calls[1:]] == [10.0, 10.0]
        assert fake_sleep.delays == [0.1]

    @pytest.mark.asyncio
    async def test_non_retryable_exception_fails_batch(self, fake_sleep):
        api = FakeImageApi([AuthError("bad token", 401)])
        result = await _fetcher(api, fake_sleep).fetch("F", ["1:1", "2:2"])
        assert result.errors == {
            "1:1": "Authentication failed - check token",
            "2:2": "Authentication failed - check token",
        }
        assert len(api.calls) == 1

    @pytest.mark.asyncio
    async def test_retryable_without_retries_fails_batch(self, fake_sleep):
        api = FakeImageApi([NetworkError("down")])
        result = await _fetcher(api, fake_sleep, max_retries=0).fetch("F", ["1:1"])
        assert result.errors == {"1:1": "Network error - check internet connection"}

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_next(self, fake_sleep):
        api = FakeImageApi([{"err": "boom"}])
        result = await _fetcher(api, fake_sleep, batch_size=2).fetch("F", _ids(4))
        assert set(result.errors) == {"1:1", "2:2"}
        assert set(result.images) == {"3:3", "4:4"}


class TestPartitionInvariant:
    @pytest.mark.asyncio
    async def test_every_input_id_in_exactly_one_map(self, fake_sleep):
        def half(ids):
            return {"images": {i: "u" for i in ids[::2]}}

        node_ids = _ids(30) + ["bad", "1:1", "nope", "7:7"]
        api = FakeImageApi([half, {"err": "boom"}, NetworkError("x"), {"images": {}}])
        result = await _fetcher(api, fake_sleep, batch_size=10).fetch("F", node_ids)

        assert set(result.images) | set(result.errors) == set(node_ids)
        assert not set(result.images) & set(result.errors)
