# src/tracking/api_log.py - v1
"""In-memory log of API requests, responses, errors and mock substitutions.

Observers registered with add_hook() receive every record as it is
written. A hook that raises is logged and skipped; it never breaks the
call being recorded.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from figmabridge.tracking.models import ApiCallRecord, ApiLogSummary, CallKind

logger = logging.getLogger(__name__)

ApiLogHook = Callable[[ApiCallRecord], None]

RECENT_LIMIT = 10


class ApiCallLog:
    """Accumulates ApiCallRecord entries for diagnostics."""

    def __init__(self, max_records: int = 1000) -> None:
        self._records: list[ApiCallRecord] = []
        self._hooks: list[ApiLogHook] = []
        self._max_records = max_records

    def add_hook(self, hook: ApiLogHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: ApiLogHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    def log_request(self, endpoint: str, params: dict[str, Any] | None = None) -> ApiCallRecord:
        return self._record("request", endpoint, data={"params": dict(params or {})})

    def log_response(
        self,
        endpoint: str,
        success: bool = True,
        source: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ApiCallRecord:
        return self._record(
            "response", endpoint, success=success, source=source, data=data
        )

    def log_error(self, endpoint: str, error: BaseException | str) -> ApiCallRecord:
        return self._record(
            "error",
            endpoint,
            success=False,
            message=str(error),
            data={"error_type": type(error).__name__} if isinstance(error, BaseException) else None,
        )

    def log_mock_substitution(self, endpoint: str, reason: str) -> ApiCallRecord:
        """Record that placeholder data replaced a failed real call."""
        return self._record("mock", endpoint, success=False, source="mock", message=reason)

    def _record(
        self,
        kind: CallKind,
        endpoint: str,
        *,
        success: bool | None = None,
        source: str | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ApiCallRecord:
        record = ApiCallRecord(
            timestamp=datetime.now(timezone.utc),
            kind=kind,
            endpoint=endpoint,
            success=success,
            source=source,
            message=message,
            data=data or {},
        )
        self._records.append(record)
        if len(self._records) > self._max_records:
            del self._records[: len(self._records) - self._max_records]

        for hook in list(self._hooks):
            try:
                hook(record)
            except Exception:
                logger.exception("API log hook %r failed", hook)
        return record

    @property
    def records(self) -> list[ApiCallRecord]:
        """All recorded events, oldest first."""
        return list(self._records)

    def records_of(self, kind: CallKind) -> list[ApiCallRecord]:
        return [r for r in self._records if r.kind == kind]

    def summary(self) -> ApiLogSummary:
        return ApiLogSummary(
            total_requests=len(self.records_of("request")),
            total_responses=len(self.records_of("response")),
            total_errors=len(self.records_of("error")),
            total_mock_substitutions=len(self.records_of("mock")),
            recent=self._records[-RECENT_LIMIT:],
        )

    def clear(self) -> None:
        self._records.clear()
