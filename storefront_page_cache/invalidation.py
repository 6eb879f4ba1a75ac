"""
Targeted page cache invalidation for content changes.

Each operation deletes an explicit list of keys built with
:mod:`cache_keys`; nothing scans the store. A new locale, currency or page
path pattern therefore only needs to be added to ``cache_keys``.
"""

from __future__ import annotations

import logging

from .cache import PageCache
from .cache_keys import category_path, home_path, page_keys, product_path


class PageCacheInvalidator:
    """Delete the cached pages made stale by a catalog change."""

    def __init__(self, cache: PageCache, logger: logging.Logger | None = None) -> None:
        self.cache = cache
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    async def _delete_keys(self, keys: list[str]) -> None:
        for key in keys:
            await self.cache.delete(key)

    async def invalidate_category(self, category_slug: str) -> list[str]:
        """
        Drop a category listing page in every locale and currency.

        The home page shows the category grid, so its entries are dropped
        too.

        Returns:
            Keys targeted for deletion.
        """
        keys = page_keys(lambda locale: category_path(locale, category_slug))
        keys += page_keys(home_path)
        await self._delete_keys(keys)
        self.logger.info("Cache invalidated for category: %s", category_slug)
        return keys

    async def invalidate_product(
        self,
        product_slug: str,
        category_slug: str | None = None,
    ) -> list[str]:
        """
        Drop a product detail page in every locale and currency.

        When the product's category is given, its listing (and with it the
        home page) is dropped as well since the product appears in that grid.

        Returns:
            Keys targeted for deletion, product keys first.
        """
        keys = page_keys(lambda locale: product_path(locale, product_slug))
        await self._delete_keys(keys)
        self.logger.info("Cache invalidated for product: %s", product_slug)

        if category_slug:
            keys += await self.invalidate_category(category_slug)
        return keys

    async def invalidate_all(self) -> None:
        """Flush every cached page, e.g. after an exchange rate update."""
        await self.cache.flush_all()
        self.logger.info("All page cache invalidated")


__all__ = ["PageCacheInvalidator"]
