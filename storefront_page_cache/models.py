"""
Pydantic models for the page cache subsystem.

This module contains the cache entry record, the request descriptor the
cache gate consumes, and the request/response schemas of the cache
administration endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from starlette.requests import Request

from .cache_keys import SUPPORTED_LOCALES


class CacheEntry(BaseModel):
    """
    A single stored page body.

    Entries are immutable; writing the same key replaces the entry.

    Attributes:
        key: Canonical page cache key
        value: Serialized response body
        inserted_at: Store clock reading at write time
        ttl_seconds: Lifetime in seconds (0 = no expiry)
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    inserted_at: float
    ttl_seconds: int

    @property
    def expires_at(self) -> float | None:
        if self.ttl_seconds <= 0:
            return None
        return self.inserted_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and now >= expires_at


class PageRequest(BaseModel):
    """
    HTTP request descriptor consumed by the cache gate.

    Attributes:
        method: HTTP method, upper-case
        path: Request path as received
        locale: Locale route parameter, None when the route has none
        query: Query parameters; repeated keys carry a list of values
        has_authorization: Whether an Authorization header was sent
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str = "/"
    locale: str | None = None
    query: dict[str, str | list[str]] = Field(default_factory=dict)
    has_authorization: bool = False

    @classmethod
    def from_request(cls, request: Request) -> PageRequest:
        """Build a descriptor from a Starlette request."""
        path = request.url.path
        query: dict[str, str | list[str]] = {}
        for name in request.query_params.keys():
            values = request.query_params.getlist(name)
            query[name] = values[0] if len(values) == 1 else values
        return cls(
            method=request.method.upper(),
            path=path,
            locale=locale_route_param(path),
            query=query,
            has_authorization="authorization" in request.headers,
        )


def locale_route_param(path: str) -> str | None:
    """
    Return the ``/{lang}/...`` route parameter of a storefront path.

    Only a leading segment naming a supported locale counts as the
    parameter; anything else means the route carries no locale.
    """
    segments = path.lstrip("/").split("/", 1)
    first = segments[0]
    return first if first in SUPPORTED_LOCALES else None


class CachedPage(BaseModel):
    """Cached body returned by the gate on a hit."""

    key: str
    body: str


class CacheStats(BaseModel):
    """
    Monitoring snapshot of the page cache.

    Attributes:
        keys: Current number of entries
        hits: Cumulative hits since start or last flush
        misses: Cumulative misses since start or last flush
        hit_rate: Hit percentage, 0 when nothing was looked up
    """

    keys: int
    hits: int
    misses: int
    hit_rate: float


class InvalidateCategoryRequest(BaseModel):
    category_slug: str = Field(min_length=1)


class InvalidateProductRequest(BaseModel):
    product_slug: str = Field(min_length=1)
    category_slug: str | None = None


class InvalidationResponse(BaseModel):
    """
    Result of an invalidation call.

    Attributes:
        scope: What was invalidated
        keys: Keys targeted for deletion (empty for a full flush)
    """

    scope: Literal["category", "product", "all"]
    keys: list[str] = Field(default_factory=list)


__all__ = [
    "CacheEntry",
    "PageRequest",
    "CachedPage",
    "CacheStats",
    "InvalidateCategoryRequest",
    "InvalidateProductRequest",
    "InvalidationResponse",
    "locale_route_param",
]
