"""Abstract base for mapping providers."""

from __future__ import annotations

import abc
from typing import Optional

from ..contracts import GeoPoint


class BaseMapProvider(abc.ABC):
    """Contract every mapping provider implements.

    ``geocode`` and ``reverse_geocode`` return ``None`` for a genuine miss and
    raise for transport/provider failures.
    """

    name: str = "base"

    @abc.abstractmethod
    async def geocode(self, address: str) -> Optional[GeoPoint]:
        """Direct address -> point lookup."""

    @abc.abstractmethod
    async def search(self, query: str) -> list[GeoPoint]:
        """Region-aware place search; may return several candidates."""

    @abc.abstractmethod
    async def reverse_geocode(self, point: GeoPoint) -> Optional[str]:
        """Point -> formatted address."""
