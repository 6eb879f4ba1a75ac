"""
Storefront page cache package.

An in-memory TTL cache for server-rendered storefront pages with locale-
and currency-aware keys, a fail-open HTTP cache gate and targeted
invalidation on catalog changes.
"""
from .main import app, create_app

__version__ = "1.0.0"
__all__ = ["app", "create_app"]
