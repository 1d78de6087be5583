"""Geo value types and lookup outcomes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

_EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """Degrees as used by the mapping provider; no reprojection."""

    lat: float
    lng: float


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, point: GeoPoint) -> bool:
        return self.min_lat <= point.lat <= self.max_lat and self.min_lng <= point.lng <= self.max_lng


# Rough extent of mainland China.
HOME_REGION = BoundingBox(min_lat=18, max_lat=54, min_lng=73, max_lng=135)


class LookupStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class GeocodeOutcome:
    status: LookupStatus
    point: Optional[GeoPoint] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, point: GeoPoint) -> "GeocodeOutcome":
        return cls(LookupStatus.FOUND, point)

    @classmethod
    def not_found(cls) -> "GeocodeOutcome":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "GeocodeOutcome":
        return cls(LookupStatus.FAILED, error=error)


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance in kilometres."""
    lat1, lng1, lat2, lng2 = map(math.radians, (a.lat, a.lng, b.lat, b.lng))
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(h))
