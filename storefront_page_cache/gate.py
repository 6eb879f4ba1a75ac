"""
Response cache gate for server-rendered pages.

The gate decides per request whether the page cache applies at all
(PASSTHROUGH vs CACHEABLE), serves cached bodies before rendering and
stores freshly rendered bodies after rendering. It knows nothing about the
web framework; :mod:`middleware` wires the two phases into Starlette's
response lifecycle.

The gate is fail-open: a store error is logged and handled as a miss or a
skipped write, so the page is always rendered normally.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal

from .cache import DEFAULT_TTL_SECONDS, PageCache
from .cache_keys import derive_key
from .models import CachedPage, PageRequest

logger = logging.getLogger(__name__)

CACHE_STATUS_HEADER = "X-Cache"
CACHE_CONTROL = "public, max-age=3600, stale-while-revalidate=86400"

CacheOutcome = Literal["HIT", "MISS"]


class CacheGate:
    """Two-phase page cache contract: ``try_serve`` then ``after_render``."""

    def __init__(
        self,
        cache: PageCache,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        excluded_prefixes: Iterable[str] = ("/admin", "/health"),
        enabled: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.excluded_prefixes = tuple(excluded_prefixes)
        self.enabled = enabled
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    def should_bypass(self, request: PageRequest) -> bool:
        """True when the request must skip the cache entirely."""
        if not self.enabled:
            return True
        if request.method != "GET":
            return True
        if request.path.startswith(self.excluded_prefixes):
            return True
        return request.has_authorization

    def key_for(self, request: PageRequest) -> str:
        return derive_key(request.path, request.locale, request.query)

    async def try_serve(self, request: PageRequest) -> CachedPage | None:
        """
        Look up a cached body for the request.

        Returns:
            CachedPage on a hit; None on a miss or when the request bypasses
            the cache (the store is not touched in that case).
        """
        if self.should_bypass(request):
            return None

        key = self.key_for(request)
        try:
            body = await self.cache.get(key)
        except Exception as exc:  # noqa: BLE001 - fail open to a normal render
            self.logger.warning("Page cache read failed for %s: %s", key, exc)
            return None

        if body is None:
            self.logger.debug("Page cache MISS %s", key)
            return None
        self.logger.debug("Page cache HIT %s", key)
        return CachedPage(key=key, body=body)

    async def after_render(
        self,
        request: PageRequest,
        status_code: int,
        body: str | bytes,
        ttl_seconds: int | None = None,
    ) -> bool:
        """
        Store a rendered body so the next identical request is a hit.

        Only successful (200) text bodies of cacheable requests are stored.
        The write has completed by the time this coroutine returns.

        Returns:
            True when the body was stored.
        """
        if self.should_bypass(request) or status_code != 200:
            return False

        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError:
                self.logger.debug("Not caching non-text body for %s", request.path)
                return False
        if not isinstance(body, str):
            return False

        key = self.key_for(request)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        try:
            await self.cache.set(key, body, ttl)
        except Exception as exc:  # noqa: BLE001 - fail open, response still goes out
            self.logger.warning("Page cache write failed for %s: %s", key, exc)
            return False
        return True

    @staticmethod
    def cache_headers(outcome: CacheOutcome) -> dict[str, str]:
        """Client-facing headers applied to every cacheable response."""
        return {CACHE_STATUS_HEADER: outcome, "Cache-Control": CACHE_CONTROL}


__all__ = ["CacheGate", "CacheOutcome", "CACHE_STATUS_HEADER", "CACHE_CONTROL"]
