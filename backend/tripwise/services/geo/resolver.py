"""Place resolver — tiered geocoding behind a cache and a rate-limited queue.

Lookup tiers:

* domestic: direct geocode; a miss, or an in-box hit for a name that reads as
  international, escalates to the search tier;
* international: region-aware search, preferring candidates outside the home
  region; a search error or an empty candidate list falls back to a plain
  geocode.

``found`` and ``not_found`` outcomes are cached for the lifetime of the
resolver. ``failed`` outcomes are not, so an outage does not stick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from tripwise.core.config import Settings, get_settings
from tripwise.core.errors import MapProviderError
from tripwise.utils.rate_limit import CooldownDispatcher, DispatcherClosedError

from .classifier import is_international
from .contracts import HOME_REGION, BoundingBox, GeocodeOutcome, GeoPoint
from .providers import BaseMapProvider, get_map_provider

logger = logging.getLogger(__name__)

LOOKUP_ERRORS = (httpx.HTTPError, MapProviderError, KeyError, TypeError, ValueError)


def cache_key(address: str) -> str:
    return address.lower().strip()


class PlaceResolver:
    def __init__(
        self,
        provider: BaseMapProvider,
        *,
        max_concurrent: int = 2,
        cooldown_seconds: float = 0.5,
        home_region: BoundingBox = HOME_REGION,
    ) -> None:
        self._provider = provider
        self._home_region = home_region
        self._dispatcher = CooldownDispatcher(
            max_concurrent=max_concurrent,
            cooldown_seconds=cooldown_seconds,
            name=f"geocode-{provider.name}",
        )
        self._cache: dict[str, Optional[GeoPoint]] = {}
        self._pending: dict[tuple[str, Optional[bool]], asyncio.Task] = {}

    @property
    def provider(self) -> BaseMapProvider:
        return self._provider

    @property
    def dispatcher(self) -> CooldownDispatcher:
        return self._dispatcher

    def cached(self, address: str) -> tuple[bool, Optional[GeoPoint]]:
        """``(hit, point)`` for *address* without touching the provider."""
        key = cache_key(address)
        if key in self._cache:
            return True, self._cache[key]
        return False, None

    def clear_cache(self) -> None:
        self._cache.clear()

    async def resolve(self, address: str, *, international: bool | None = None) -> Optional[GeoPoint]:
        """Point for *address*, or ``None`` when it was not found or the lookup failed."""
        outcome = await self.lookup(address, international=international)
        return outcome.point

    async def lookup(self, address: str, *, international: bool | None = None) -> GeocodeOutcome:
        """Resolve *address* and say whether it was found, missing, or failed.

        *international* overrides the keyword classification when the caller
        already knows where the place is. Concurrent lookups share one provider
        call only when both the address and the override match.
        """
        if not isinstance(address, str) or not address.strip():
            return GeocodeOutcome.not_found()

        key = cache_key(address)
        if key in self._cache:
            logger.debug("Geocode cache hit for %r", key)
            return self._outcome_from_cache(key)

        pending_key = (key, international)
        task = self._pending.get(pending_key)
        if task is None:
            task = asyncio.create_task(self._queued_lookup(address, key, international))
            self._pending[pending_key] = task
            task.add_done_callback(lambda _t, k=pending_key: self._pending.pop(k, None))
        return await asyncio.shield(task)

    async def reverse(self, point: GeoPoint) -> Optional[str]:
        """Formatted address for *point*; ``None`` on a miss or a provider failure."""
        try:
            return await self._dispatcher.submit(lambda: self._provider.reverse_geocode(point))
        except LOOKUP_ERRORS + (DispatcherClosedError,) as exc:
            logger.warning("Reverse geocode of %s,%s failed: %s", point.lat, point.lng, exc)
            return None

    async def close(self) -> None:
        for task in list(self._pending.values()):
            task.cancel()
        await self._dispatcher.close()

    async def __aenter__(self) -> "PlaceResolver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- internals ---

    def _outcome_from_cache(self, key: str) -> GeocodeOutcome:
        point = self._cache[key]
        return GeocodeOutcome.found(point) if point is not None else GeocodeOutcome.not_found()

    async def _queued_lookup(self, address: str, key: str, international: bool | None) -> GeocodeOutcome:
        try:
            return await self._dispatcher.submit(lambda: self._dispatch(address, key, international))
        except DispatcherClosedError as exc:
            return GeocodeOutcome.failed(str(exc))

    async def _dispatch(self, address: str, key: str, international: bool | None) -> GeocodeOutcome:
        # Another caller may have filled the cache while this job sat in the queue.
        if key in self._cache:
            return self._outcome_from_cache(key)

        if international is None:
            international = is_international(address)

        try:
            if international:
                point = await self._search_tier(address, prefer_abroad=True)
            else:
                point = await self._geocode_tier(address)
        except LOOKUP_ERRORS as exc:
            logger.warning("Geocode of %r failed: %s", address, exc)
            return GeocodeOutcome.failed(str(exc) or type(exc).__name__)

        self._cache[key] = point
        if point is None:
            logger.info("No coordinates found for %r", address)
            return GeocodeOutcome.not_found()
        return GeocodeOutcome.found(point)

    async def _geocode_tier(self, address: str) -> Optional[GeoPoint]:
        point = await self._provider.geocode(address)
        if point is None:
            logger.debug("Geocode miss for %r, trying search", address)
            return await self._search_tier(address, prefer_abroad=False, fallback_geocode=False)
        if self._home_region.contains(point) and is_international(address):
            logger.debug("Domestic hit for international name %r, trying search", address)
            try:
                escalated = await self._search_tier(address, prefer_abroad=True, fallback_geocode=False)
            except LOOKUP_ERRORS as exc:
                logger.info("Place search for %r failed, keeping geocoded point: %s", address, exc)
                return point
            return escalated or point
        return point

    async def _search_tier(
        self, address: str, *, prefer_abroad: bool, fallback_geocode: bool = True
    ) -> Optional[GeoPoint]:
        try:
            candidates = await self._provider.search(address)
        except LOOKUP_ERRORS as exc:
            if not fallback_geocode:
                raise
            logger.info("Place search for %r failed, falling back to geocode: %s", address, exc)
            candidates = []

        if not candidates:
            return await self._provider.geocode(address) if fallback_geocode else None

        inside = [c for c in candidates if self._home_region.contains(c)]
        outside = [c for c in candidates if not self._home_region.contains(c)]
        preferred, other = (outside, inside) if prefer_abroad else (inside, outside)
        if preferred:
            return preferred[0]
        logger.info("No %s candidate for %r, using %s result",
                    "foreign" if prefer_abroad else "domestic", address,
                    "domestic" if prefer_abroad else "foreign")
        return other[0]


def create_place_resolver(settings: Settings | None = None) -> PlaceResolver:
    """Build a resolver from settings; raises ``MissingConfigurationError`` without a map key."""
    settings = settings or get_settings()
    return PlaceResolver(
        get_map_provider(settings),
        max_concurrent=settings.geocode_max_concurrent,
        cooldown_seconds=settings.geocode_request_delay_seconds,
    )


