"""Starlette middleware that runs the page cache gate around page rendering."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Request, Response
from fastapi.responses import HTMLResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .gate import CacheGate
from .models import PageRequest

logger = logging.getLogger(__name__)

CACHEABLE_MEDIA_TYPE = "text/html"


async def _replay(body: bytes) -> AsyncIterator[bytes]:
    yield body


class PageCacheMiddleware(BaseHTTPMiddleware):
    """
    Serve cached pages on hit and capture rendered pages on miss.

    On a miss the downstream body is buffered so the gate can store it
    before the response leaves; the buffered bytes are then replayed to the
    client unchanged.
    """

    def __init__(self, app: ASGIApp, gate: CacheGate, ttl_seconds: int | None = None) -> None:
        super().__init__(app)
        self.gate = gate
        self.ttl_seconds = ttl_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        page_request = PageRequest.from_request(request)
        if self.gate.should_bypass(page_request):
            return await call_next(request)

        cached = await self.gate.try_serve(page_request)
        if cached is not None:
            return HTMLResponse(cached.body, headers=self.gate.cache_headers("HIT"))

        response = await call_next(request)
        content_type = response.headers.get("content-type", "")
        if content_type.startswith(CACHEABLE_MEDIA_TYPE):
            body = b"".join([chunk async for chunk in response.body_iterator])
            await self.gate.after_render(
                page_request,
                response.status_code,
                body,
                ttl_seconds=self.ttl_seconds,
            )
            response.body_iterator = _replay(body)

        # Same directives on HIT and MISS so intermediaries behave consistently.
        response.headers.update(self.gate.cache_headers("MISS"))
        return response


__all__ = ["PageCacheMiddleware"]
