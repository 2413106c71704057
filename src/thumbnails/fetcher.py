# src/thumbnails/fetcher.py - v1
"""Batched, retrying thumbnail export.

Node ids are validated, de-duplicated and exported in fixed-size
batches, one batch at a time. Ids missing from a batch answer are
retried as a group with linear backoff. A batch call that raises a
retryable error falls back to one call per id. Partial failures are
returned as data (ThumbnailResult.errors), never raised.

Every distinct input id ends up in exactly one of images / errors.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Sequence

from pydantic import ValidationError

from figmabridge.core.errors import (
    FigmaBridgeError,
    InputValidationError,
    format_api_error,
    is_retryable,
)
from figmabridge.core.models import FigmaImageResponse, ThumbnailResult
from figmabridge.core.validation import validate_node_ids

logger = logging.getLogger(__name__)

RequestFn = Callable[[str, dict[str, Any], float | None], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_BATCH_SIZE = 20
DEFAULT_MAX_RETRIES = 2


def chunked(items: Sequence[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


class ThumbnailFetcher:
    """Export image URLs for many nodes through a request primitive.

    Args:
        request_fn: ``await request_fn(path, params, timeout_s)`` returning
            the raw image-export payload ({"err": ..., "images": {...}}).
        batch_size: Ids per export call.
        max_retries: Retry rounds for ids missing from an answer; 0 also
            disables the per-id fallback.
        retry_delay_s: Linear backoff unit between retry rounds.
        individual_delay_s: Spacing between per-id fallback calls.
        batch_timeout_s: Timeout of a batch call.
        individual_timeout_s: Timeout of a per-id call.
        sleep: Awaitable delay, replaceable in tests.
    """

    def __init__(
        self,
        request_fn: RequestFn,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_s: float = 1.0,
        individual_delay_s: float = 0.1,
        batch_timeout_s: float | None = 20.0,
        individual_timeout_s: float | None = 10.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._request = request_fn
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._retry_delay_s = retry_delay_s
        self._individual_delay_s = individual_delay_s
        self._batch_timeout_s = batch_timeout_s
        self._individual_timeout_s = individual_timeout_s
        self._sleep = sleep

    async def fetch(
        self,
        file_id: str,
        node_ids: Sequence[Any],
        image_format: str = "png",
        scale: float = 1,
    ) -> ThumbnailResult:
        """Export thumbnails for node_ids of file_id.

        Raises:
            InputValidationError: file_id is empty.
        """
        if not file_id:
            raise InputValidationError("File ID is required for thumbnail export")

        result = ThumbnailResult()
        validation = validate_node_ids(node_ids)
        for invalid in validation.invalid:
            result.errors[invalid.id] = invalid.reason
        if validation.invalid:
            logger.warning(
                "Skipping %d invalid node id(s): %s",
                len(validation.invalid),
                ", ".join(i.id for i in validation.invalid),
            )

        valid_ids = list(dict.fromkeys(validation.valid))
        if not valid_ids:
            return result

        batches = list(chunked(valid_ids, self._batch_size))
        logger.info(
            "Exporting %d thumbnail(s) for %s in %d batch(es)",
            len(valid_ids), file_id, len(batches),
        )
        for index, batch in enumerate(batches, start=1):
            logger.debug("Thumbnail batch %d/%d (%d ids)", index, len(batches), len(batch))
            await self._process_batch(file_id, batch, image_format, scale, result)

        logger.info(
            "Thumbnail export finished: %d ok, %d failed, %d retried",
            result.success_count, result.failure_count, len(result.retried),
        )
        return result

    # --- Internal ---

    async def _export(
        self,
        file_id: str,
        ids: Sequence[str],
        image_format: str,
        scale: float,
        timeout_s: float | None,
    ) -> FigmaImageResponse:
        params = {"ids": ",".join(ids), "format": image_format, "scale": scale}
        payload = await self._request(f"/images/{file_id}", params, timeout_s)
        try:
            return FigmaImageResponse.model_validate(payload)
        except ValidationError as exc:
            raise FigmaBridgeError("Invalid image export response") from exc

    async def _process_batch(
        self,
        file_id: str,
        batch: list[str],
        image_format: str,
        scale: float,
        result: ThumbnailResult,
    ) -> None:
        try:
            response = await self._export(
                file_id, batch, image_format, scale, self._batch_timeout_s
            )
        except FigmaBridgeError as exc:
            if is_retryable(exc) and self._max_retries > 0:
                logger.warning(
                    "Thumbnail batch failed (%s); falling back to per-id export",
                    format_api_error(exc),
                )
                await self._fetch_individually(file_id, batch, image_format, scale, result)
            else:
                reason = format_api_error(exc)
                logger.error("Thumbnail batch failed: %s", reason)
                for node_id in batch:
                    result.errors[node_id] = reason
            return

        if response.err:
            logger.error("Image export reported an error: %s", response.err)
            for node_id in batch:
                result.errors[node_id] = str(response.err)
            return

        missing = _collect(batch, response, result)
        if missing:
            await self._retry_missing(file_id, missing, image_format, scale, result)

    async def _retry_missing(
        self,
        file_id: str,
        missing: list[str],
        image_format: str,
        scale: float,
        result: ThumbnailResult,
    ) -> None:
        attempt = 0
        last_error: str | None = None
        while missing and attempt < self._max_retries:
            attempt += 1
            await self._sleep(self._retry_delay_s * attempt)
            for node_id in missing:
                if node_id not in result.retried:
                    result.retried.append(node_id)
            logger.info(
                "Retrying %d missing thumbnail(s), round %d/%d",
                len(missing), attempt, self._max_retries,
            )
            try:
                response = await self._export(
                    file_id, missing, image_format, scale, self._batch_timeout_s
                )
            except FigmaBridgeError as exc:
                last_error = format_api_error(exc)
                continue
            if response.err:
                last_error = str(response.err)
                continue
            missing = _collect(missing, response, result)

        for node_id in missing:
            message = f"Failed to generate thumbnail after {attempt + 1} attempts"
            result.errors[node_id] = f"{message}: {last_error}" if last_error else message

    async def _fetch_individually(
        self,
        file_id: str,
        batch: list[str],
        image_format: str,
        scale: float,
        result: ThumbnailResult,
    ) -> None:
        for position, node_id in enumerate(batch):
            if position:
                await self._sleep(self._individual_delay_s)
            if node_id not in result.retried:
                result.retried.append(node_id)
            try:
                response = await self._export(
                    file_id, [node_id], image_format, scale, self._individual_timeout_s
                )
            except FigmaBridgeError as exc:
                result.errors[node_id] = format_api_error(exc)
                continue
            url = response.images.get(node_id)
            if response.err:
                result.errors[node_id] = str(response.err)
            elif url:
                result.images[node_id] = url
            else:
                result.errors[node_id] = "No image URL returned"


def _collect(ids: list[str], response: FigmaImageResponse, result: ThumbnailResult) -> list[str]:
    """Move returned URLs into result.images; return the ids still missing."""
    missing = []
    for node_id in ids:
        url = response.images.get(node_id)
        if url:
            result.images[node_id] = url
        else:
            missing.append(node_id)
    return missing
