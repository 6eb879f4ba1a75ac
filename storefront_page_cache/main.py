"""
FastAPI application entry point for the storefront page cache.

Builds the application around one explicitly owned PageCache: the cache
gate middleware and the invalidation routes share it, and its background
expiry sweep (plus hourly stats logging in production) runs for the
lifetime of the app. Page routers are supplied by the host application.
"""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from .cache import PageCache
from .config_loader import Config, config
from .gate import CacheGate
from .invalidation import PageCacheInvalidator
from .middleware import PageCacheMiddleware
from .routes import router

# Configure logging for the application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """
    FastAPI lifespan handler.

    Starts the page cache background tasks on enter and cancels them on
    exit. The cache itself is dropped with the app; nothing is persisted.
    """
    settings: Config = app.state.settings
    cache: PageCache = app.state.page_cache
    logger.info("Starting storefront page cache")
    logger.info(
        "Page cache: enabled=%s max_entries=%s ttl=%ss",
        settings.page_cache_enabled,
        cache.max_entries,
        settings.page_cache_ttl,
    )

    tasks = [asyncio.create_task(cache.run_sweeper(settings.page_cache_check_period))]
    if settings.is_production:
        tasks.append(
            asyncio.create_task(cache.run_stats_logger(settings.page_cache_stats_interval))
        )
    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await cache.flush_all()
        logger.info("Shutting down storefront page cache")


def create_app(
    settings: Config | None = None,
    page_router: APIRouter | None = None,
    cache: PageCache | None = None,
) -> FastAPI:
    """
    Build the storefront application.

    Args:
        settings: Configuration; defaults to the global config
        page_router: Router with the server-rendered pages to cache
        cache: Pre-built store, mainly for tests; built from settings otherwise

    Returns:
        Configured FastAPI app with the cache gate installed
    """
    settings = settings or config
    if cache is None:
        cache = PageCache(
            max_entries=settings.page_cache_max_entries,
            default_ttl_seconds=settings.page_cache_ttl,
        )
    gate = CacheGate(
        cache,
        ttl_seconds=settings.page_cache_ttl,
        excluded_prefixes=settings.page_cache_excluded_prefixes,
        enabled=settings.page_cache_enabled,
    )

    app = FastAPI(
        title="Storefront Page Cache",
        version="1.0.0",
        description="Server-side page cache for the storefront's rendered pages",
        lifespan=app_lifespan,
    )
    app.state.settings = settings
    app.state.page_cache = cache
    app.state.cache_gate = gate
    app.state.invalidator = PageCacheInvalidator(cache)

    app.add_middleware(PageCacheMiddleware, gate=gate)
    app.include_router(router)
    if page_router is not None:
        app.include_router(page_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level="info",
    )
