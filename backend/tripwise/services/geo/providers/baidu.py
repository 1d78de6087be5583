"""Baidu Maps web-service provider (geocoding v3, place search v2, reverse geocoding v3)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from tripwise.core.errors import MapProviderError, MissingConfigurationError

from ..contracts import GeoPoint
from .base import BaseMapProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.map.baidu.com"

# Geocoding answers 1 ("no result") / 2 (unparseable address) for plain misses.
_GEOCODE_MISS_STATUSES = frozenset({1, 2})


def _point_from(location: Any) -> Optional[GeoPoint]:
    if not isinstance(location, dict):
        return None
    try:
        return GeoPoint(lat=float(location["lat"]), lng=float(location["lng"]))
    except (KeyError, TypeError, ValueError):
        return None


class BaiduMapProvider(BaseMapProvider):
    name = "baidu"

    def __init__(self, api_key: str, *, base_url: str = DEFAULT_BASE_URL, timeout_seconds: float = 10.0) -> None:
        if not api_key:
            raise MissingConfigurationError("BAIDU_MAP_API_KEY", "geocoding requires a Baidu Maps key")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            resp = await client.get(
                f"{self._base_url}{path}",
                params={**params, "output": "json", "ak": self._api_key},
            )
            resp.raise_for_status()
            return resp.json()

    async def geocode(self, address: str) -> Optional[GeoPoint]:
        data = await self._get("/geocoding/v3/", {"address": address})
        status = data.get("status")
        if status == 0:
            return _point_from((data.get("result") or {}).get("location"))
        if status in _GEOCODE_MISS_STATUSES:
            logger.debug("Baidu geocode miss for %r: %s", address, data.get("msg") or data.get("message"))
            return None
        raise MapProviderError(status, str(data.get("msg") or data.get("message") or ""))

    async def search(self, query: str) -> list[GeoPoint]:
        data = await self._get("/place/v2/search", {"query": query, "region": "全球", "page_size": 10})
        status = data.get("status")
        if status != 0:
            raise MapProviderError(status, str(data.get("message") or data.get("msg") or ""))
        points = []
        for poi in data.get("results") or []:
            point = _point_from(poi.get("location")) if isinstance(poi, dict) else None
            if point is not None:
                points.append(point)
        return points

    async def reverse_geocode(self, point: GeoPoint) -> Optional[str]:
        data = await self._get("/reverse_geocoding/v3/", {"location": f"{point.lat},{point.lng}"})
        status = data.get("status")
        if status != 0:
            raise MapProviderError(status, str(data.get("message") or data.get("msg") or ""))
        return (data.get("result") or {}).get("formatted_address") or None
