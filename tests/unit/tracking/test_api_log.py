# tests/unit/tracking/test_api_log.py - v1
"""Tests for tracking/api_log.py."""

from __future__ import annotations

from figmabridge.core.errors import NotFoundError
from figmabridge.tracking.api_log import RECENT_LIMIT, ApiCallLog


class TestApiCallLog:
    def test_kinds_and_summary(self):
        log = ApiCallLog()
        log.log_request("/me")
        log.log_response("/me", success=True, source="direct")
        log.log_error("/files/X", NotFoundError("gone", 404))
        log.log_mock_substitution("/files/X", "Resource not found")

        summary = log.summary()
        assert summary.total_requests == 1
        assert summary.total_responses == 1
        assert summary.total_errors == 1
        assert summary.total_mock_substitutions == 1
        assert log.records_of("error")[0].data == {"error_type": "NotFoundError"}

    def test_mock_is_not_success(self):
        record = ApiCallLog().log_mock_substitution("/me", "down")
        assert record.kind == "mock"
        assert record.success is False

    def test_hooks_receive_records(self):
        seen = []
        log = ApiCallLog()
        log.add_hook(seen.append)
        log.log_request("/me")
        log.remove_hook(seen.append)
        log.log_request("/me")
        assert [r.kind for r in seen] == ["request"]

    def test_failing_hook_is_isolated(self):
        def broken(record):
            raise RuntimeError("observer bug")

        log = ApiCallLog()
        log.add_hook(broken)
        log.log_request("/me")
        assert len(log.records) == 1

    def test_recent_limited(self):
        log = ApiCallLog()
        for i in range(RECENT_LIMIT + 5):
            log.log_request(f"/files/{i}")
        recent = log.summary().recent
        assert len(recent) == RECENT_LIMIT
        assert recent[-1].endpoint == f"/files/{RECENT_LIMIT + 4}"

    def test_max_records(self):
        log = ApiCallLog(max_records=3)
        for i in range(5):
            log.log_request(f"/x/{i}")
        assert [r.endpoint for r in log.records] == ["/x/2", "/x/3", "/x/4"]

    def test_clear(self):
        log = ApiCallLog()
        log.log_request("/me")
        log.clear()
        assert log.summary().total_requests == 0
