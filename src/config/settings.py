# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for transport, broker, cache, thumbnail and
logging settings. Hard inconsistencies raise ConfigurationError; broker
values that are merely out of range are reported as warnings by
collect_config_warnings() and never block operation.
"""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BROKER_URL = "http://localhost:3001/mcp"
DEFAULT_FIGMA_API_BASE = "https://api.figma.com/v1"

VALID_LOG_LEVELS = ("debug", "info", "warn", "error")


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Figma REST ===
    figma_token: str = ""
    figma_api_base: str = DEFAULT_FIGMA_API_BASE
    direct_timeout_ms: int = 15_000

    # === Transport selection ===
    figma_transport: Literal["auto", "direct", "broker"] = "auto"
    app_env: str = "development"
    deployment_host: str = ""
    hosted: bool = False

    # === Broker ===
    broker_enabled: bool = True
    broker_url: str = DEFAULT_BROKER_URL
    broker_timeout_ms: int = 30_000
    broker_retry_attempts: int = 3
    broker_retry_delay_ms: int = 1_000
    broker_health_check_enabled: bool = True
    broker_health_check_interval_ms: int = 30_000
    broker_health_timeout_ms: int = 5_000
    broker_reconnect_enabled: bool = True

    # === Cache ===
    cache_ttl_seconds: float = 300.0

    # === Thumbnails ===
    thumbnail_batch_size: int = 20
    thumbnail_max_retries: int = 2
    thumbnail_retry_delay_ms: int = 1_000
    thumbnail_individual_delay_ms: int = 100
    thumbnail_batch_timeout_ms: int = 20_000
    thumbnail_individual_timeout_ms: int = 10_000

    # === Aggregate fetch ===
    aggregate_mock_fallback: bool = False

    # === Logging ===
    log_level: str = "info"
    log_format: Literal["json", "text"] = "text"

    # --- Validators ---

    @field_validator("thumbnail_batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ConfigurationError("thumbnail_batch_size must be >= 1")
        return v

    @field_validator("thumbnail_max_retries")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ConfigurationError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ConfigurationError("cache_ttl_seconds must be > 0")
        return v

    # --- Helpers ---

    @property
    def is_production(self) -> bool:
        """Whether the process runs as a deployed/hosted application."""
        return self.hosted or self.app_env.strip().lower() == "production"


def collect_config_warnings(settings: Settings) -> list[str]:
    """Re-validate broker values, returning human-readable warnings.

    Never raises: callers log the result and carry on.
    """
    warnings: list[str] = []

    if not settings.broker_url:
        warnings.append("Broker URL is required")
    else:
        parsed = urlparse(settings.broker_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            warnings.append("Broker URL is not a valid URL")

    if not 1_000 <= settings.broker_timeout_ms <= 300_000:
        warnings.append("Broker timeout must be between 1000ms and 300000ms")

    if not 0 <= settings.broker_retry_attempts <= 10:
        warnings.append("Broker retry attempts must be between 0 and 10")

    if not 100 <= settings.broker_retry_delay_ms <= 30_000:
        warnings.append("Broker retry delay must be between 100ms and 30000ms")

    if settings.log_level.lower() not in VALID_LOG_LEVELS:
        warnings.append(
            f"Log level must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    return warnings


def config_summary(settings: Settings) -> dict[str, Any]:
    """Read-only summary of the effective configuration (token excluded)."""
    warnings = collect_config_warnings(settings)
    return {
        "broker_enabled": settings.broker_enabled,
        "transport": settings.figma_transport,
        "server_url": settings.broker_url,
        "timeout_ms": settings.broker_timeout_ms,
        "retry_attempts": settings.broker_retry_attempts,
        "retry_delay_ms": settings.broker_retry_delay_ms,
        "enable_health_check": settings.broker_health_check_enabled,
        "enable_reconnect": settings.broker_reconnect_enabled,
        "log_level": settings.log_level,
        "token_configured": bool(settings.figma_token),
        "is_valid": not warnings,
        "validation_errors": warnings,
    }


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-session config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
