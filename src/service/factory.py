# src/service/factory.py - v1
"""Factory: build a FigmaDataService from settings."""

from __future__ import annotations

import logging
from typing import Any

from figmabridge.config.settings import Settings, load_settings
from figmabridge.logging.logger import setup_logging
from figmabridge.service.figma_service import FigmaDataService

logger = logging.getLogger(__name__)


def create_figma_service(
    settings: Settings | None = None,
    configure_logging: bool = False,
    **kwargs: Any,
) -> FigmaDataService:
    """Instantiate the data service.

    Args:
        settings: Application settings. Loaded from .env if None.
        configure_logging: Also install the figmabridge log handler using
            settings.log_level and settings.log_format.
        **kwargs: Collaborators passed through to FigmaDataService
            (cache, direct_client, broker_client, transport_selector,
            api_log, sleep).

    Returns:
        A service that is not yet connected; call start() or use it as an
        async context manager.
    """
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)

    service = FigmaDataService(settings, **kwargs)
    logger.debug(
        "Created Figma data service: transport=%s broker=%s",
        service.transport_method, service.broker_client.server_url,
    )
    return service
