# src/transport/selector.py - v1
"""Default transport selection from environment signals.

Selection is a plain function of an EnvironmentSignals value so the
heuristic can be swapped (pass any TransportSelector to the service).
The default prefers the direct transport whenever the signals are
ambiguous.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from figmabridge.config.settings import Settings
from figmabridge.transport.models import TransportMethod

logger = logging.getLogger(__name__)

LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "::1"})


@dataclass(frozen=True)
class EnvironmentSignals:
    """What is known about where the service runs."""

    explicit_transport: TransportMethod | None = None
    broker_enabled: bool = True
    is_production: bool = False
    hostname: str = ""


TransportSelector = Callable[[EnvironmentSignals], TransportMethod]


def signals_from_settings(settings: Settings) -> EnvironmentSignals:
    explicit = None if settings.figma_transport == "auto" else settings.figma_transport
    return EnvironmentSignals(
        explicit_transport=explicit,
        broker_enabled=settings.broker_enabled,
        is_production=settings.is_production,
        hostname=settings.deployment_host.strip().lower(),
    )


def detect_default_transport(signals: EnvironmentSignals) -> TransportMethod:
    """Broker for local interactive use, direct for hosted or unknown hosts.

    Order of precedence: explicit override, broker disabled, production
    or hosted deployment, local hostname. Anything else resolves to direct.
    """
    if signals.explicit_transport is not None:
        return signals.explicit_transport
    if not signals.broker_enabled:
        return "direct"
    if signals.is_production:
        return "direct"
    if signals.hostname in LOCAL_HOSTNAMES:
        return "broker"
    return "direct"
