"""Map provider factory."""

from __future__ import annotations

import logging

from tripwise.core.config import Settings, get_settings
from tripwise.core.errors import MissingConfigurationError

from .base import BaseMapProvider
from .mock import MockMapProvider

logger = logging.getLogger(__name__)

__all__ = ["get_map_provider", "BaseMapProvider", "MockMapProvider"]


def get_map_provider(settings: Settings | None = None) -> BaseMapProvider:
    """Return the configured map provider.

    Unlike the chat providers there is no silent mock fallback: a missing key
    raises ``MissingConfigurationError`` so callers can report why geocoding
    is unavailable.
    """
    settings = settings or get_settings()
    name = settings.map_provider

    if name == "mock":
        return MockMapProvider()

    if name == "baidu":
        if not settings.baidu_map_api_key:
            raise MissingConfigurationError("BAIDU_MAP_API_KEY", "geocoding requires a Baidu Maps key")
        from .baidu import BaiduMapProvider

        return BaiduMapProvider(
            api_key=settings.baidu_map_api_key,
            base_url=settings.baidu_map_base_url,
            timeout_seconds=settings.geocode_timeout_seconds,
        )

    raise MissingConfigurationError("MAP_PROVIDER", f"unknown map provider {name!r}")
