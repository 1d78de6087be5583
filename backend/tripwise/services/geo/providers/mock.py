"""Mock map provider backed by a small fixed gazetteer."""

from __future__ import annotations

from typing import Optional

from ..contracts import GeoPoint
from .base import BaseMapProvider

DEFAULT_PLACES: dict[str, GeoPoint] = {
    "北京": GeoPoint(lat=39.9042, lng=116.4074),
    "上海": GeoPoint(lat=31.2304, lng=121.4737),
    "广州": GeoPoint(lat=23.1291, lng=113.2644),
    "成都": GeoPoint(lat=30.5728, lng=104.0668),
    "杭州": GeoPoint(lat=30.2741, lng=120.1551),
    "西安": GeoPoint(lat=34.3416, lng=108.9398),
    "东京": GeoPoint(lat=35.6762, lng=139.6503),
    "首尔": GeoPoint(lat=37.5665, lng=126.9780),
    "巴黎": GeoPoint(lat=48.8566, lng=2.3522),
    "伦敦": GeoPoint(lat=51.5074, lng=-0.1278),
}


class MockMapProvider(BaseMapProvider):
    """Matches addresses by substring against a gazetteer; no network."""

    name = "mock"

    def __init__(self, places: dict[str, GeoPoint] | None = None) -> None:
        self._places = dict(DEFAULT_PLACES if places is None else places)

    def _matches(self, text: str) -> list[GeoPoint]:
        lowered = text.lower()
        return [point for name, point in self._places.items() if name.lower() in lowered]

    async def geocode(self, address: str) -> Optional[GeoPoint]:
        matches = self._matches(address)
        return matches[0] if matches else None

    async def search(self, query: str) -> list[GeoPoint]:
        return self._matches(query)

    async def reverse_geocode(self, point: GeoPoint) -> Optional[str]:
        for name, known in self._places.items():
            if abs(known.lat - point.lat) < 0.05 and abs(known.lng - point.lng) < 0.05:
                return name
        return None
