"""Tests for the place resolver: tiers, caching, dedupe and the concurrency cap."""

import asyncio

import httpx
import pytest

from tripwise.core.errors import MapProviderError
from tripwise.services.geo.contracts import GeoPoint, LookupStatus
from tripwise.services.geo.providers.base import BaseMapProvider
from tripwise.services.geo.resolver import PlaceResolver

BEIJING = GeoPoint(lat=39.9042, lng=116.4074)
TOKYO = GeoPoint(lat=35.6762, lng=139.6503)
TOKYO_HOTEL_IN_CHINA = GeoPoint(lat=31.2304, lng=121.4737)


class FakeMapProvider(BaseMapProvider):
    """Scripted provider; values may be exceptions, which are raised."""

    name = "fake"

    def __init__(self, geocode=None, search=None, delay=0.0):
        self.geocode_results = geocode or {}
        self.search_results = search or {}
        self.delay = delay
        self.calls = []
        self.active = 0
        self.peak = 0

    async def _answer(self, kind, key, default):
        self.calls.append((kind, key))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        table = self.geocode_results if kind == "geocode" else self.search_results
        value = table.get(key, default)
        if isinstance(value, Exception):
            raise value
        return value

    async def geocode(self, address):
        return await self._answer("geocode", address, None)

    async def search(self, query):
        return await self._answer("search", query, [])

    async def reverse_geocode(self, point):
        self.calls.append(("reverse", point))
        if point == BEIJING:
            return "北京市东城区"
        if point == TOKYO:
            raise MapProviderError(302, "quota exceeded")
        return None


def _resolver(provider, **kwargs):
    kwargs.setdefault("cooldown_seconds", 0)
    return PlaceResolver(provider, **kwargs)


@pytest.mark.asyncio
async def test_domestic_hit_is_returned_without_escalation():
    provider = FakeMapProvider(geocode={"北京": BEIJING}, search={"北京": [TOKYO]})
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("北京") == BEIJING
    assert provider.calls == [("geocode", "北京")]


@pytest.mark.asyncio
async def test_international_prefers_candidate_outside_home_region():
    provider = FakeMapProvider(search={"东京": [TOKYO_HOTEL_IN_CHINA, TOKYO]})
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("东京") == TOKYO
    assert provider.calls == [("search", "东京")]


@pytest.mark.asyncio
async def test_international_falls_back_to_home_region_candidate():
    provider = FakeMapProvider(search={"巴黎春天": [TOKYO_HOTEL_IN_CHINA]})
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("巴黎春天") == TOKYO_HOTEL_IN_CHINA


@pytest.mark.asyncio
async def test_search_error_or_empty_falls_back_to_geocode():
    provider = FakeMapProvider(
        geocode={"东京": TOKYO, "paris": GeoPoint(lat=48.8566, lng=2.3522)},
        search={"东京": MapProviderError(2, "bad request"), "paris": []},
    )
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("东京") == TOKYO
        assert (await resolver.resolve("paris")).lat == 48.8566
    assert provider.calls == [("search", "东京"), ("geocode", "东京"), ("search", "paris"), ("geocode", "paris")]


@pytest.mark.asyncio
async def test_in_region_hit_for_international_name_escalates_to_search():
    provider = FakeMapProvider(
        geocode={"东京": TOKYO_HOTEL_IN_CHINA, "大阪": TOKYO_HOTEL_IN_CHINA},
        search={"东京": [TOKYO], "大阪": []},
    )
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("东京", international=False) == TOKYO
        # Nothing better found: the geocoded point stands.
        assert await resolver.resolve("大阪", international=False) == TOKYO_HOTEL_IN_CHINA
    assert ("search", "东京") in provider.calls


@pytest.mark.asyncio
async def test_domestic_miss_tries_search_preferring_home_region():
    provider = FakeMapProvider(search={"宽窄巷子": [TOKYO, BEIJING]})
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("宽窄巷子") == BEIJING
    assert provider.calls == [("geocode", "宽窄巷子"), ("search", "宽窄巷子")]


@pytest.mark.asyncio
async def test_second_call_is_cache_hit_for_normalized_address():
    provider = FakeMapProvider(geocode={"Beijing": BEIJING})
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("Beijing") == BEIJING
        assert await resolver.resolve("  beijing ") == BEIJING
        assert resolver.cached("BEIJING") == (True, BEIJING)
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_not_found_is_cached():
    provider = FakeMapProvider()
    async with _resolver(provider) as resolver:
        first = await resolver.lookup("无名小镇")
        second = await resolver.lookup("无名小镇")
    assert first.status == LookupStatus.NOT_FOUND
    assert second.status == LookupStatus.NOT_FOUND
    assert first.point is None
    assert provider.calls == [("geocode", "无名小镇"), ("search", "无名小镇")]


@pytest.mark.asyncio
async def test_failure_is_reported_but_not_cached():
    provider = FakeMapProvider(geocode={"北京": httpx.ConnectError("down")})
    async with _resolver(provider) as resolver:
        outcome = await resolver.lookup("北京")
        assert outcome.status == LookupStatus.FAILED
        assert "down" in outcome.error
        assert await resolver.resolve("北京") is None
        assert resolver.cached("北京") == (False, None)
    assert provider.calls == [("geocode", "北京"), ("geocode", "北京")]


@pytest.mark.asyncio
async def test_blank_address_is_not_found_without_provider_call():
    provider = FakeMapProvider()
    async with _resolver(provider) as resolver:
        assert (await resolver.lookup("   ")).status == LookupStatus.NOT_FOUND
    assert provider.calls == []


@pytest.mark.asyncio
async def test_concurrent_identical_lookups_share_one_call():
    provider = FakeMapProvider(geocode={"北京": BEIJING}, delay=0.01)
    async with _resolver(provider) as resolver:
        results = await asyncio.gather(*(resolver.resolve("北京") for _ in range(5)))
    assert results == [BEIJING] * 5
    assert provider.calls == [("geocode", "北京")]


@pytest.mark.asyncio
async def test_in_flight_calls_never_exceed_cap():
    addresses = [f"城市{i}" for i in range(8)]
    provider = FakeMapProvider(geocode={a: BEIJING for a in addresses}, delay=0.01)
    async with _resolver(provider, max_concurrent=2) as resolver:
        results = await asyncio.gather(*(resolver.resolve(a) for a in addresses))
    assert results == [BEIJING] * 8
    assert provider.peak == 2


@pytest.mark.asyncio
async def test_lookups_dispatch_in_submission_order():
    addresses = [f"地点{i}" for i in range(5)]
    provider = FakeMapProvider(geocode={a: BEIJING for a in addresses})
    async with _resolver(provider, max_concurrent=1) as resolver:
        await asyncio.gather(*(resolver.resolve(a) for a in addresses))
    assert [key for _, key in provider.calls] == addresses


@pytest.mark.asyncio
async def test_reverse_geocode():
    provider = FakeMapProvider()
    async with _resolver(provider) as resolver:
        assert await resolver.reverse(BEIJING) == "北京市东城区"
        assert await resolver.reverse(TOKYO) is None
        assert await resolver.reverse(GeoPoint(lat=0, lng=0)) is None


@pytest.mark.asyncio
async def test_closed_resolver_reports_failure():
    provider = FakeMapProvider(geocode={"北京": BEIJING})
    resolver = _resolver(provider)
    await resolver.close()
    outcome = await resolver.lookup("北京")
    assert outcome.status == LookupStatus.FAILED
    assert provider.calls == []


def test_create_place_resolver_from_settings(monkeypatch):
    from tripwise.core.config import Settings
    from tripwise.core.errors import MissingConfigurationError
    from tripwise.services.geo.providers.mock import MockMapProvider
    from tripwise.services.geo.resolver import create_place_resolver

    with pytest.raises(MissingConfigurationError) as excinfo:
        create_place_resolver(Settings(map_provider="baidu"))
    assert excinfo.value.setting == "BAIDU_MAP_API_KEY"

    resolver = create_place_resolver(
        Settings(map_provider="mock", geocode_max_concurrent=3, geocode_request_delay_ms=200)
    )
    assert isinstance(resolver.provider, MockMapProvider)
    assert resolver.dispatcher.max_concurrent == 3
    assert resolver.dispatcher.cooldown_seconds == 0.2


@pytest.mark.asyncio
async def test_search_error_after_geocode_miss_is_failure_and_not_cached():
    provider = FakeMapProvider(search={"小镇": httpx.ConnectError("boom")})
    async with _resolver(provider) as resolver:
        first = await resolver.lookup("小镇")
        assert first.status == LookupStatus.FAILED
        assert resolver.cached("小镇") == (False, None)
        second = await resolver.lookup("小镇")
    assert second.status == LookupStatus.FAILED
    assert provider.calls == [("geocode", "小镇"), ("search", "小镇")] * 2


@pytest.mark.asyncio
async def test_search_error_during_escalation_keeps_geocoded_point():
    provider = FakeMapProvider(
        geocode={"东京": TOKYO_HOTEL_IN_CHINA},
        search={"东京": MapProviderError(302, "quota exceeded")},
    )
    async with _resolver(provider) as resolver:
        assert await resolver.resolve("东京", international=False) == TOKYO_HOTEL_IN_CHINA


@pytest.mark.asyncio
async def test_concurrent_lookups_with_different_overrides_are_not_merged():
    provider = FakeMapProvider(
        geocode={"东京": TOKYO_HOTEL_IN_CHINA},
        search={"东京": [TOKYO]},
        delay=0.01,
    )
    async with _resolver(provider) as resolver:
        abroad, forced_domestic = await asyncio.gather(
            resolver.lookup("东京"), resolver.lookup("东京", international=False)
        )
    assert abroad.point == TOKYO
    assert forced_domestic.point == TOKYO
    assert ("geocode", "东京") in provider.calls
