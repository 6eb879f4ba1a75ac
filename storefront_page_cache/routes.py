"""
FastAPI route handlers for page cache operations.

This module exposes the monitoring surface of the page cache and the
administration endpoints that content-mutation handlers (product and
category saves, the exchange rate job) call to invalidate stale pages.
Route handlers stay thin and delegate to the invalidator.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from .cache import PageCache
from .config_loader import config
from .invalidation import PageCacheInvalidator
from .models import (
    CacheStats,
    InvalidateCategoryRequest,
    InvalidateProductRequest,
    InvalidationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(prefix="/admin/cache")


def get_page_cache(request: Request) -> PageCache:
    return request.app.state.page_cache


def get_invalidator(request: Request) -> PageCacheInvalidator:
    return request.app.state.invalidator


def require_admin(request: Request, authorization: str | None = Header(default=None)) -> None:
    """
    Check the bearer token of an administration request.

    Raises:
        HTTPException: 503 when no admin token is configured, 401 when the
            header is missing or does not match.
    """
    settings = getattr(request.app.state, "settings", config)
    expected = settings.admin_token
    if not expected:
        raise HTTPException(status_code=503, detail="Cache administration is not configured")

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.encode(), expected.encode()):
        logger.warning("Rejected cache administration request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid admin credentials")


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dictionary with status and service name
    """
    return {"status": "ok", "service": "storefront-page-cache"}


@admin_router.get("/stats", response_model=CacheStats, dependencies=[Depends(require_admin)])
async def cache_stats(cache: PageCache = Depends(get_page_cache)) -> CacheStats:
    """Current entry count and cumulative hit/miss counters."""
    return cache.stats()


@admin_router.post(
    "/invalidate/category",
    response_model=InvalidationResponse,
    dependencies=[Depends(require_admin)],
)
async def invalidate_category(
    payload: InvalidateCategoryRequest,
    invalidator: PageCacheInvalidator = Depends(get_invalidator),
) -> InvalidationResponse:
    keys = await invalidator.invalidate_category(payload.category_slug)
    return InvalidationResponse(scope="category", keys=keys)


@admin_router.post(
    "/invalidate/product",
    response_model=InvalidationResponse,
    dependencies=[Depends(require_admin)],
)
async def invalidate_product(
    payload: InvalidateProductRequest,
    invalidator: PageCacheInvalidator = Depends(get_invalidator),
) -> InvalidationResponse:
    keys = await invalidator.invalidate_product(payload.product_slug, payload.category_slug)
    return InvalidationResponse(scope="product", keys=keys)


@admin_router.post(
    "/flush",
    response_model=InvalidationResponse,
    dependencies=[Depends(require_admin)],
)
async def flush(
    invalidator: PageCacheInvalidator = Depends(get_invalidator),
) -> InvalidationResponse:
    """
    Drop every cached page.

    Called after an exchange rate update since every page shows prices.
    """
    await invalidator.invalidate_all()
    return InvalidationResponse(scope="all")


router.include_router(admin_router)
