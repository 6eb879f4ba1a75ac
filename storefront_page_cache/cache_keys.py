"""
Cache key construction for storefront pages.

Keys have the form ``normalizedPath:locale:currency[?sortedQuery]``, e.g.
``/en/necklaces:en:USD``. Every component that reads, writes or deletes
page cache entries builds its keys through this module, so the gate and
the invalidator always agree on the key format, the supported locales and
the currency each locale is priced in.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence

DEFAULT_LOCALE = "en"
DEFAULT_CURRENCY = "USD"

SUPPORTED_LOCALES: tuple[str, ...] = ("en", "he")

# Locales priced in something other than the default currency.
LOCALE_CURRENCIES: dict[str, str] = {"he": "ILS"}

SUPPORTED_CURRENCIES: tuple[str, ...] = (DEFAULT_CURRENCY, *LOCALE_CURRENCIES.values())


def normalize_path(path: str) -> str:
    """Lower-case the path and strip trailing slashes; empty becomes ``/``."""
    return path.lower().rstrip("/") or "/"


def currency_for_locale(locale: str) -> str:
    return LOCALE_CURRENCIES.get(locale, DEFAULT_CURRENCY)


def _query_value(value: str | Sequence[str]) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence):
        return ",".join(str(item) for item in value)
    return str(value)


def build_query_string(query: Mapping[str, str | Sequence[str]] | None) -> str:
    """Serialize query parameters as ``k=v`` pairs sorted by key, or ``""``."""
    if not query:
        return ""
    return "&".join(f"{name}={_query_value(query[name])}" for name in sorted(query))


def build_cache_key(
    path: str,
    locale: str,
    currency: str,
    query: Mapping[str, str | Sequence[str]] | None = None,
) -> str:
    """
    Assemble a cache key from its parts.

    Only the path is case-folded; locale, currency and query values are
    used exactly as given.
    """
    key = f"{normalize_path(path)}:{locale}:{currency}"
    query_string = build_query_string(query)
    if query_string:
        key = f"{key}?{query_string}"
    return key


def derive_key(
    path: str,
    locale_param: str | None,
    query_params: Mapping[str, str | Sequence[str]] | None = None,
) -> str:
    """
    Derive the canonical key of an incoming page request.

    Args:
        path: Request path as received
        locale_param: Locale route parameter; None or empty falls back to
            the default locale
        query_params: Query parameters in any order

    Returns:
        Cache key string, e.g. ``/he/product/ring:he:ILS?color=red``
    """
    locale = locale_param or DEFAULT_LOCALE
    return build_cache_key(path, locale, currency_for_locale(locale), query_params)


def home_path(locale: str) -> str:
    return f"/{locale}"


def category_path(locale: str, category_slug: str) -> str:
    return f"/{locale}/{category_slug}"


def product_path(locale: str, product_slug: str) -> str:
    return f"/{locale}/product/{product_slug}"


def page_keys(
    path_for_locale: Callable[[str], str],
    locales: Iterable[str] = SUPPORTED_LOCALES,
    currencies: Iterable[str] = SUPPORTED_CURRENCIES,
) -> list[str]:
    """
    Enumerate the keys of one page for every locale and currency.

    Used for targeted invalidation: a page is rendered once per locale and
    its prices once per currency, so each combination is a separate entry.
    """
    currencies = tuple(currencies)
    return [
        build_cache_key(path_for_locale(locale), locale, currency)
        for locale in locales
        for currency in currencies
    ]


__all__ = [
    "DEFAULT_LOCALE",
    "DEFAULT_CURRENCY",
    "SUPPORTED_LOCALES",
    "SUPPORTED_CURRENCIES",
    "LOCALE_CURRENCIES",
    "normalize_path",
    "currency_for_locale",
    "build_query_string",
    "build_cache_key",
    "derive_key",
    "home_path",
    "category_path",
    "product_path",
    "page_keys",
]
