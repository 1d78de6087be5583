import httpx
import pytest
import pytest_asyncio

from tripwise.core.config import get_settings

_PROVIDER_ENV_VARS = (
    "AI_PROVIDER",
    "AI_MODEL",
    "QWEN_API_KEY",
    "VITE_QWEN_API_KEY",
    "ERNIE_API_KEY",
    "VITE_ERNIE_API_KEY",
    "ZHIPU_API_KEY",
    "VITE_ZHIPU_API_KEY",
    "BAIDU_MAP_API_KEY",
    "VITE_BAIDU_MAP_API_KEY",
    "MAP_PROVIDER",
)


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    # Tests mutate env vars; a developer's real keys must not leak in either.
    for name in _PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AI_PROVIDER", "mock")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def client():
    """In-process ASGI client with a mock-backed place resolver (no cooldown)."""
    from httpx import ASGITransport

    from tripwise.main import app
    from tripwise.services.geo.providers.mock import MockMapProvider
    from tripwise.services.geo.resolver import PlaceResolver

    resolver = PlaceResolver(MockMapProvider(), max_concurrent=2, cooldown_seconds=0)
    app.state.place_resolver = resolver
    try:
        async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.state.place_resolver = None
        await resolver.close()
