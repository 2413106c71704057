# src/service/figma_service.py - v1
"""Unified Figma data service: one entry point over both transports.

Usage:
    from figmabridge.service.factory import create_figma_service
    async with create_figma_service() as service:
        result = await service.get_all_figma_data(file_id)

Resolution order for every request:
  1. Response cache (fingerprint of path + params)
  2. Broker transport, when the active method is "broker"
  3. Direct transport (also the fallback for any broker failure)

Per-resource methods for the primary resources substitute placeholder
data when both transports fail; the substitution is visible in the
returned Fetched.source ("mock") and recorded in the API call log.
"""

from __future__ import annotations

import asyncio
import json
import logging
from types import TracebackType
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from figmabridge.cache.fingerprint import compute_fingerprint
from figmabridge.cache.models import CacheStats
from figmabridge.cache.response_cache import ResponseCache
from figmabridge.config.settings import (
    Settings,
    collect_config_warnings,
    config_summary,
)
from figmabridge.core.errors import (
    AuthError,
    BrokerCallError,
    BrokerConnectionError,
    FigmaBridgeError,
    InputValidationError,
    InvalidResponseError,
    NotConnectedError,
    UnexpectedError,
    format_api_error,
)
from figmabridge.core.models import (
    ApiProgress,
    ComprehensiveResult,
    DataSource,
    Fetched,
    FigmaComment,
    FigmaCommentsResponse,
    FigmaComponent,
    FigmaComponentResponse,
    FigmaComponentSetResponse,
    FigmaFile,
    FigmaFileComponentsResponse,
    FigmaFileStylesResponse,
    FigmaImageResponse,
    FigmaNodesResponse,
    FigmaProjectFilesResponse,
    FigmaStyle,
    FigmaStyleResponse,
    FigmaTeamProjectsResponse,
    FigmaUser,
    FigmaVersion,
    FigmaVersionsResponse,
    FileBundle,
    ThumbnailResult,
)
from figmabridge.core.validation import validate_file_id
from figmabridge.logging.context import set_file_context, set_request_context
from figmabridge.service import mock_data
from figmabridge.service.models import (
    BrokerStatus,
    ConnectionConfig,
    ConnectionTestResult,
    Environment,
    ServiceDiagnostics,
)
from figmabridge.service.organizer import organize_data
from figmabridge.thumbnails.fetcher import ThumbnailFetcher
from figmabridge.tracking.api_log import ApiCallLog
from figmabridge.transport.broker_client import BrokerClient
from figmabridge.transport.direct_client import DirectClient
from figmabridge.transport.models import (
    BrokerClientConfig,
    ToolResponse,
    TransportMethod,
)
from figmabridge.transport.selector import (
    LOCAL_HOSTNAMES,
    EnvironmentSignals,
    TransportSelector,
    detect_default_transport,
    signals_from_settings,
)
from figmabridge.transport.tool_mapping import extract_file_id, resolve_tool

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")

ProgressCallback = Callable[[ApiProgress], None]

# Order of the aggregate fetch; matches the ApiProgress flags.
AGGREGATE_STEPS = ("file", "user", "comments", "versions", "components", "styles")


class FigmaDataService:
    """Facade over cache, broker transport and direct transport.

    Args:
        settings: Loaded from .env when None.
        cache: Response cache; one is created from settings when None.
        direct_client: Direct REST client; created from settings when None.
        broker_client: Broker client; created from settings when None.
        transport_selector: Picks the initial transport from environment
            signals. Defaults to detect_default_transport.
        api_log: Call log receiving request/response/error/mock records.
        sleep: Awaitable delay used by the broker and thumbnail retries.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        cache: ResponseCache | None = None,
        direct_client: DirectClient | None = None,
        broker_client: BrokerClient | None = None,
        transport_selector: TransportSelector = detect_default_transport,
        api_log: ApiCallLog | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or Settings()
        self._sleep = sleep
        self._cache = cache or ResponseCache(ttl_seconds=self._settings.cache_ttl_seconds)
        self._direct = direct_client or DirectClient(
            base_url=self._settings.figma_api_base,
            timeout_s=self._settings.direct_timeout_ms / 1000,
        )
        self._broker = broker_client or BrokerClient(
            BrokerClientConfig.from_settings(self._settings), sleep=sleep
        )
        self._api_log = api_log or ApiCallLog()
        self._signals = signals_from_settings(self._settings)

        method = transport_selector(self._signals)
        self._connection = ConnectionConfig(
            method=method, token=self._settings.figma_token or None
        )
        self._thumbnails = ThumbnailFetcher(
            self._export_request,
            batch_size=self._settings.thumbnail_batch_size,
            max_retries=self._settings.thumbnail_max_retries,
            retry_delay_s=self._settings.thumbnail_retry_delay_ms / 1000,
            individual_delay_s=self._settings.thumbnail_individual_delay_ms / 1000,
            batch_timeout_s=self._settings.thumbnail_batch_timeout_ms / 1000,
            individual_timeout_s=self._settings.thumbnail_individual_timeout_ms / 1000,
            sleep=sleep,
        )

        for warning in collect_config_warnings(self._settings):
            logger.warning("Configuration warning: %s", warning)
        logger.info("Figma data service initialized (transport=%s)", method)

    # --- Properties ---

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def api_log(self) -> ApiCallLog:
        return self._api_log

    @property
    def broker_client(self) -> BrokerClient:
        return self._broker

    @property
    def transport_method(self) -> TransportMethod:
        return self._connection.method

    @property
    def connection_config(self) -> ConnectionConfig:
        return self._connection.model_copy()

    # --- Lifecycle ---

    async def start(self) -> None:
        """Initial broker connect when the broker is the active transport."""
        if self._connection.method == "broker":
            await self._try_broker_connect()

    async def disconnect(self) -> None:
        """Stop broker timers, drop cached responses, close HTTP clients."""
        await self._broker.disconnect()
        self._cache.clear()
        await self._direct.aclose()
        logger.info("Figma data service disconnected")

    async def __aenter__(self) -> FigmaDataService:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    async def set_connection_config(self, config: ConnectionConfig) -> None:
        """Switch transport/credential. Never raises on broker connect failure.

        Leaving broker mode stops the broker (health checks and pending
        reconnects included). A changed broker URL or timeout recreates
        the broker client.
        """
        if config.token != self._connection.token:
            self._cache.clear()
        self._connection = config.model_copy()
        if config.method != "broker":
            if self._broker.get_connection_state().status != "disconnected":
                await self._broker.disconnect()
                logger.info("Broker stopped after switching to %s transport", config.method)
            return

        overrides: dict[str, Any] = {}
        if config.broker_url and config.broker_url.rstrip("/") != self._broker.server_url:
            overrides["server_url"] = config.broker_url.rstrip("/")
        if config.broker_timeout_ms:
            timeout_s = config.broker_timeout_ms / 1000
            if overrides or timeout_s != self._broker.config.timeout_s:
                overrides["timeout_s"] = timeout_s
        if overrides:
            overrides.setdefault("server_url", self._broker.server_url)
            await self._broker.disconnect()
            self._broker = BrokerClient(
                BrokerClientConfig.from_settings(self._settings, **overrides),
                sleep=self._sleep,
            )
            logger.info("Broker client recreated for %s", self._broker.server_url)

        if not self._broker.is_connected():
            await self._try_broker_connect()

    async def _try_broker_connect(self) -> bool:
        try:
            await self._broker.connect()
        except BrokerConnectionError as exc:
            logger.warning(
                "Broker connection failed, direct API fallback will be used: %s", exc
            )
            return False
        return self._broker.is_connected()

    # --- Request primitive ---

    async def request(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        timeout_s: float | None = None,
        *,
        use_cache: bool = True,
    ) -> Any:
        """Fetch a REST path through cache, broker (if active) and direct API.

        Broker failures never reach the caller; they fall back to the
        direct transport for this call only.

        Raises:
            FigmaBridgeError: The direct transport failed.
        """
        data, _ = await self._request(path, params, timeout_s, use_cache=use_cache)
        return data

    async def _export_request(
        self, path: str, params: dict[str, Any], timeout_s: float | None
    ) -> Any:
        # Retry rounds re-send identical ids and must reach the network.
        return await self.request(path, params, timeout_s, use_cache=False)

    async def _request(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        timeout_s: float | None = None,
        *,
        use_cache: bool = True,
    ) -> tuple[Any, DataSource]:
        query = dict(params or {})
        key = compute_fingerprint(path, query)
        cached = self._cache.get(key) if use_cache else None
        if cached is not None:
            logger.debug("Cache hit for %s", path)
            return cached, "cache"

        if self._connection.method == "broker":
            set_request_context(path, "broker")
            try:
                data = await self._request_via_broker(path, query)
            except FigmaBridgeError as exc:
                logger.warning(
                    "Broker request for %s failed, falling back to direct API: %s",
                    path, exc,
                )
            else:
                if use_cache:
                    self._store(key, data)
                return data, "broker"

        set_request_context(path, "direct")
        data = await self._direct.request(
            path, query, token=self._connection.token, timeout_s=timeout_s
        )
        if use_cache:
            self._store(key, data)
        return data, "direct"

    def _store(self, key: str, data: Any) -> None:
        if _is_cacheable(data):
            self._cache.set(key, data)

    async def _request_via_broker(self, path: str, params: dict[str, Any]) -> Any:
        tool = resolve_tool(path)
        token = self._connection.token
        if not token:
            raise AuthError("Access token is required for broker calls")
        if not self._broker.is_connected():
            state = self._broker.get_connection_state()
            raise NotConnectedError(state.status, state.last_error)

        args: dict[str, Any] = {**params, "token": token}
        file_id = extract_file_id(path)
        if file_id and "file_id" not in args:
            args["file_id"] = file_id

        response = await self._broker.call_tool(tool, args)
        data = parse_tool_response(response)
        logger.debug("Broker tool call succeeded: %s", tool)
        return data

    # --- Per-resource methods ---

    async def _fetch_resource(
        self,
        endpoint: str,
        parse: Callable[[Any], R],
        mock: Callable[[], R] | None = None,
        fallback_to_mock: bool = True,
    ) -> Fetched[R]:
        self._api_log.log_request(endpoint)
        try:
            payload, source = await self._request(endpoint)
            data = parse(payload)
        except FigmaBridgeError as exc:
            self._api_log.log_error(endpoint, exc)
            if mock is None or not fallback_to_mock:
                raise
            logger.warning("Using mock data for %s due to API error: %s", endpoint, exc)
            self._api_log.log_mock_substitution(endpoint, format_api_error(exc))
            return Fetched(data=mock(), source="mock")
        self._api_log.log_response(endpoint, success=True, source=source)
        return Fetched(data=data, source=source)

    async def get_file(self, file_id: str, *, fallback_to_mock: bool = True) -> Fetched[FigmaFile]:
        _require(file_id, "File ID")
        return await self._fetch_resource(
            f"/files/{file_id}",
            lambda p: _parse(FigmaFile, p),
            mock_data.mock_file,
            fallback_to_mock,
        )

    async def get_comments(
        self, file_id: str, *, fallback_to_mock: bool = True
    ) -> Fetched[list[FigmaComment]]:
        _require(file_id, "File ID")
        return await self._fetch_resource(
            f"/files/{file_id}/comments",
            lambda p: _parse(FigmaCommentsResponse, p).comments,
            mock_data.mock_comments,
            fallback_to_mock,
        )

    async def get_versions(
        self, file_id: str, *, fallback_to_mock: bool = True
    ) -> Fetched[list[FigmaVersion]]:
        _require(file_id, "File ID")
        return await self._fetch_resource(
            f"/files/{file_id}/versions",
            lambda p: _parse(FigmaVersionsResponse, p).versions,
            mock_data.mock_versions,
            fallback_to_mock,
        )

    async def get_file_components(
        self, file_id: str, *, fallback_to_mock: bool = True
    ) -> Fetched[list[FigmaComponent]]:
        _require(file_id, "File ID")
        return await self._fetch_resource(
            f"/files/{file_id}/components",
            lambda p: _parse(FigmaFileComponentsResponse, p).meta.components,
            mock_data.mock_components,
            fallback_to_mock,
        )

    async def get_file_styles(
        self, file_id: str, *, fallback_to_mock: bool = True
    ) -> Fetched[list[FigmaStyle]]:
        _require(file_id, "File ID")
        return await self._fetch_resource(
            f"/files/{file_id}/styles",
            lambda p: _parse(FigmaFileStylesResponse, p).meta.styles,
            mock_data.mock_styles,
            fallback_to_mock,
        )

    async def get_user(self, *, fallback_to_mock: bool = True) -> Fetched[FigmaUser]:
        return await self._fetch_resource(
            "/me", lambda p: _parse(FigmaUser, p), mock_data.mock_user, fallback_to_mock
        )

    async def get_team_projects(self, team_id: str) -> FigmaTeamProjectsResponse:
        _require(team_id, "Team ID")
        fetched = await self._fetch_resource(
            f"/teams/{team_id}/projects", lambda p: _parse(FigmaTeamProjectsResponse, p)
        )
        return fetched.data

    async def get_project_files(self, project_id: str) -> FigmaProjectFilesResponse:
        _require(project_id, "Project ID")
        fetched = await self._fetch_resource(
            f"/projects/{project_id}/files", lambda p: _parse(FigmaProjectFilesResponse, p)
        )
        return fetched.data

    async def get_component_set(self, key: str) -> FigmaComponentSetResponse:
        _require(key, "Component set key")
        fetched = await self._fetch_resource(
            f"/component_sets/{key}", lambda p: _parse(FigmaComponentSetResponse, p)
        )
        return fetched.data

    async def get_component(self, key: str) -> FigmaComponentResponse:
        _require(key, "Component key")
        fetched = await self._fetch_resource(
            f"/components/{key}", lambda p: _parse(FigmaComponentResponse, p)
        )
        return fetched.data

    async def get_style(self, key: str) -> FigmaStyleResponse:
        _require(key, "Style key")
        fetched = await self._fetch_resource(
            f"/styles/{key}", lambda p: _parse(FigmaStyleResponse, p)
        )
        return fetched.data

    async def get_page_thumbnails(
        self, file_id: str, page_ids: list[str]
    ) -> dict[str, str | None]:
        """Single image-export call for whole pages (PNG, scale 2).

        Raises:
            InputValidationError: Missing file id or page ids.
            UnexpectedError: The export reported a top-level error.
        """
        if not file_id or not page_ids:
            raise InputValidationError("File ID and page IDs are required")
        payload = await self.request(
            f"/images/{file_id}", {"ids": ",".join(page_ids), "format": "png", "scale": 2}
        )
        response = _parse(FigmaImageResponse, payload)
        if response.err:
            raise UnexpectedError(f"Figma API error: {response.err}")
        return response.images

    async def get_page_nodes(self, file_id: str, page_ids: list[str]) -> FigmaNodesResponse:
        if not file_id or not page_ids:
            raise InputValidationError("File ID and page IDs are required")
        payload = await self.request(f"/files/{file_id}/nodes", {"ids": ",".join(page_ids)})
        return _parse(FigmaNodesResponse, payload)

    async def get_thumbnails(
        self,
        file_id: str,
        node_ids: list[str],
        image_format: str = "png",
        scale: float = 1,
    ) -> ThumbnailResult:
        """Batched, retrying export; partial failures are in result.errors."""
        return await self._thumbnails.fetch(file_id, node_ids, image_format, scale)

    # --- Aggregate fetch ---

    async def get_all_figma_data(
        self, file_id: str, on_progress: ProgressCallback | None = None
    ) -> ComprehensiveResult:
        """Fetch file, user, comments, versions, components and styles.

        Sub-fetches run one after another in a fixed order. A failing
        sub-fetch leaves its resource empty, records the reason in
        result.errors and still marks its progress flag, so progress
        always reaches 100%.

        Raises:
            InputValidationError: file_id is not a valid Figma file key.
        """
        if not validate_file_id(file_id):
            raise InputValidationError(f"Invalid file ID: {file_id!r}")

        set_file_context(file_id)
        use_mock = self._settings.aggregate_mock_fallback
        fetchers: dict[str, Callable[[], Awaitable[Fetched[Any]]]] = {
            "file": lambda: self.get_file(file_id, fallback_to_mock=use_mock),
            "user": lambda: self.get_user(fallback_to_mock=use_mock),
            "comments": lambda: self.get_comments(file_id, fallback_to_mock=use_mock),
            "versions": lambda: self.get_versions(file_id, fallback_to_mock=use_mock),
            "components": lambda: self.get_file_components(file_id, fallback_to_mock=use_mock),
            "styles": lambda: self.get_file_styles(file_id, fallback_to_mock=use_mock),
        }

        progress = ApiProgress()
        fetched: dict[str, Any] = {}
        outcomes: dict[str, Any] = {}
        errors: dict[str, str] = {}

        logger.info("Fetching all data for file %s", file_id)
        for step in AGGREGATE_STEPS:
            try:
                result = await fetchers[step]()
            except FigmaBridgeError as exc:
                logger.warning("Failed to fetch %s for %s: %s", step, file_id, exc)
                outcomes[step] = "failed"
                errors[step] = format_api_error(exc)
            else:
                fetched[step] = result.data
                outcomes[step] = result.source
            setattr(progress, step, True)
            if on_progress is not None:
                on_progress(progress.model_copy())

        bundle = FileBundle(
            info=fetched.get("file"),
            comments=fetched.get("comments", []),
            versions=fetched.get("versions", []),
            components=fetched.get("components", []),
            styles=fetched.get("styles", []),
        )
        if errors:
            logger.warning(
                "Aggregate fetch for %s finished with %d failed resource(s): %s",
                file_id, len(errors), ", ".join(errors),
            )
        return ComprehensiveResult(
            file_id=file_id,
            file=bundle,
            user=fetched.get("user"),
            organized=organize_data(bundle),
            progress=progress,
            outcomes=outcomes,
            errors=errors,
        )

    # --- Diagnostics ---

    def get_connection_status(self) -> BrokerStatus:
        state = self._broker.get_connection_state()
        return BrokerStatus(
            is_connected=state.status == "connected",
            status=state.status,
            server_url=self._broker.server_url,
            last_error=state.last_error,
            available_tools=state.available_tools,
            fallback_enabled=True,
            environment=describe_environment(self._signals),
            transport=self._connection.method,
        )

    def get_config_summary(self) -> dict[str, Any]:
        summary = config_summary(self._settings)
        summary["active_transport"] = self._connection.method
        summary["server_url"] = self._broker.server_url
        return summary

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def get_service_diagnostics(self) -> ServiceDiagnostics:
        return ServiceDiagnostics(
            broker=self.get_connection_status(),
            configuration=self.get_config_summary(),
            cache=self.get_cache_stats(),
            api_calls=self._api_log.summary(),
        )

    async def test_connection(self) -> ConnectionTestResult:
        """Probe the broker. success stays True since the direct API is always available."""
        if not self._settings.broker_enabled:
            return ConnectionTestResult(
                mode="direct",
                message="Broker is disabled, using direct API mode (fallback enabled)",
            )

        warnings = collect_config_warnings(self._settings)
        if warnings:
            return ConnectionTestResult(
                mode="direct",
                message="Broker configuration invalid, using direct API fallback",
                errors=warnings,
            )

        if not self._broker.is_connected():
            await self._try_broker_connect()

        status = self.get_connection_status()
        if status.is_connected:
            return ConnectionTestResult(
                mode="broker", message="Broker connection successful", status=status
            )
        return ConnectionTestResult(
            mode="direct",
            message=f"Broker connection failed: {status.status}, direct API fallback available",
            status=status,
        )


def parse_tool_response(response: ToolResponse) -> Any:
    """Turn a broker tool response into the REST-shaped payload.

    Raises:
        BrokerCallError: The tool or the remote API reported an error.
        InvalidResponseError: No usable content, or text that is not JSON.
    """
    if response.is_error:
        raise BrokerCallError(response.error_message or "Broker tool execution failed")
    if not response.content:
        raise InvalidResponseError("No content in broker response")

    content = response.content[0]
    if content.type == "text" and content.text:
        try:
            payload = json.loads(content.text)
        except ValueError as exc:
            raise InvalidResponseError(f"Invalid JSON response from broker tool: {exc}") from exc
        if isinstance(payload, dict) and payload.get("error"):
            raise BrokerCallError(f"Figma API error via broker: {payload['error']}")
        return payload
    if content.data is not None:
        return content.data
    raise InvalidResponseError("No valid content in broker response")


def describe_environment(signals: EnvironmentSignals) -> Environment:
    if signals.is_production:
        return "production"
    if signals.hostname in LOCAL_HOSTNAMES:
        return "development"
    return "unknown"


def _is_cacheable(data: Any) -> bool:
    """Image exports with an error or with missing URLs are never cached."""
    if data is None:
        return False
    if isinstance(data, dict):
        if data.get("err"):
            return False
        images = data.get("images")
        if isinstance(images, dict) and any(url is None for url in images.values()):
            return False
    return True


def _parse(model: type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidResponseError(
            f"Unexpected {model.__name__} payload ({exc.error_count()} validation errors)"
        ) from exc


def _require(value: str, label: str) -> None:
    if not value:
        raise InputValidationError(f"{label} is required")
