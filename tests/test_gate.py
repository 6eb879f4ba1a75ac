import pathlib
import sys

import pytest

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront_page_cache.cache import PageCache
from storefront_page_cache.gate import CACHE_CONTROL, CacheGate
from storefront_page_cache.models import PageRequest, locale_route_param


class _BrokenCache(PageCache):
    """Store whose reads and writes always fail."""

    async def get(self, key):  # type: ignore[override]
        raise RuntimeError("store unavailable")

    async def set(self, key, value, ttl_seconds=None):  # type: ignore[override]
        raise RuntimeError("store unavailable")


class _SpyCache(PageCache):
    """Store that records every operation the gate performs."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    async def get(self, key):  # type: ignore[override]
        self.calls.append(("get", key))
        return await super().get(key)

    async def set(self, key, value, ttl_seconds=None):  # type: ignore[override]
        self.calls.append(("set", key))
        await super().set(key, value, ttl_seconds)


def _page(path="/en/necklaces", **kwargs) -> PageRequest:
    return PageRequest(path=path, locale=locale_route_param(path), **kwargs)


@pytest.mark.asyncio
async def test_miss_then_store_then_hit():
    cache = PageCache(max_entries=10)
    gate = CacheGate(cache)
    request = _page()

    assert await gate.try_serve(request) is None
    assert await gate.after_render(request, 200, "<html>necklaces</html>") is True

    cached = await gate.try_serve(request)
    assert cached is not None
    assert cached.key == "/en/necklaces:en:USD"
    assert cached.body == "<html>necklaces</html>"


@pytest.mark.asyncio
async def test_after_render_skips_unsuccessful_status():
    cache = PageCache(max_entries=10)
    gate = CacheGate(cache)
    request = _page()

    for status in (201, 301, 404, 500):
        assert await gate.after_render(request, status, "<html>x</html>") is False
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_after_render_decodes_utf8_bytes_and_rejects_binary():
    cache = PageCache(max_entries=10)
    gate = CacheGate(cache)

    assert await gate.after_render(_page("/he"), 200, "<p>שלום</p>".encode()) is True
    assert await cache.get("/he:he:ILS") == "<p>שלום</p>"

    assert await gate.after_render(_page("/en/logo"), 200, b"\xff\xd8\xff\xe0") is False
    assert await cache.get("/en/logo:en:USD") is None


@pytest.mark.asyncio
async def test_after_render_ttl_can_be_overridden_per_call():
    now = [0.0]
    cache = PageCache(max_entries=10, timer=lambda: now[0])
    gate = CacheGate(cache, ttl_seconds=3600)
    request = _page()

    await gate.after_render(request, 200, "<html/>", ttl_seconds=5)
    now[0] = 5.0

    assert await gate.try_serve(request) is None


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"method": "POST"},
        {"method": "HEAD"},
        {"path": "/admin/products"},
        {"has_authorization": True},
    ],
)
def test_should_bypass(request_kwargs):
    gate = CacheGate(PageCache(max_entries=10))
    assert gate.should_bypass(PageRequest(**{"path": "/en", **request_kwargs})) is True


@pytest.mark.asyncio
async def test_authorized_request_never_touches_store():
    cache = _SpyCache(max_entries=10)
    gate = CacheGate(cache)
    await cache.set("/en/necklaces:en:USD", "<html>public</html>")
    cache.calls.clear()

    request = _page(has_authorization=True)
    assert await gate.try_serve(request) is None
    assert await gate.after_render(request, 200, "<html>private</html>") is False

    assert cache.calls == []


@pytest.mark.asyncio
async def test_disabled_gate_passes_everything_through():
    cache = _SpyCache(max_entries=10)
    gate = CacheGate(cache, enabled=False)
    request = _page()

    assert gate.should_bypass(request) is True
    assert await gate.try_serve(request) is None
    assert await gate.after_render(request, 200, "<html/>") is False
    assert cache.calls == []


@pytest.mark.asyncio
async def test_store_failures_fail_open():
    gate = CacheGate(_BrokenCache(max_entries=10))
    request = _page()

    assert await gate.try_serve(request) is None
    assert await gate.after_render(request, 200, "<html/>") is False


def test_cache_headers():
    assert CacheGate.cache_headers("HIT") == {"X-Cache": "HIT", "Cache-Control": CACHE_CONTROL}
    assert CACHE_CONTROL == "public, max-age=3600, stale-while-revalidate=86400"


def test_locale_route_param():
    assert locale_route_param("/en/necklaces") == "en"
    assert locale_route_param("/he") == "he"
    assert locale_route_param("/about") is None
    assert locale_route_param("/") is None
    assert locale_route_param("/EN/necklaces") is None
