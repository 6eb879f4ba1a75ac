"""
Configuration loader for the storefront page cache.

Looks for config.yaml in this order:
1. Environment variable CONFIG_PATH
2. ./config.yaml (local development)
3. /srv/storefront/config.yaml (Docker)
4. Falls back to default config

Process-level switches (APP_ENV, PAGE_CACHE_DISABLED, ADMIN_TOKEN) are
always read from the environment.
"""

import os
from pathlib import Path
from typing import Any

import yaml

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    def __init__(self, config_path: str = None):
        # Determine config path in order of priority
        if config_path:
            self.config_path = Path(config_path)
        elif os.getenv("CONFIG_PATH"):
            self.config_path = Path(os.getenv("CONFIG_PATH"))
        elif Path("./config.yaml").exists():
            self.config_path = Path("./config.yaml")
        elif Path("/srv/storefront/config.yaml").exists():
            self.config_path = Path("/srv/storefront/config.yaml")
        else:
            self.config_path = None

        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Returns default config if file not found.
        """
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
                    print(f"✓ Loaded config from: {self.config_path}")
                    return config_data
            except Exception as e:
                print(f"✗ Error loading config from {self.config_path}: {e}")
        elif self.config_path:
            print(f"⚠ Config file not found, using defaults. Tried: {self.config_path}")

        return {
            "storefront": {
                "server": {"host": "0.0.0.0", "port": 8000},
                "page_cache": {
                    "ttl_seconds": 3600,
                    "max_entries": 500,
                    "check_period_seconds": 600,
                    "stats_interval_seconds": 3600,
                    "excluded_prefixes": ["/admin", "/health"],
                },
            }
        }

    def _section(self, name: str) -> dict[str, Any]:
        section = self._config.get("storefront", {}).get(name, {})
        return section if isinstance(section, dict) else {}

    @property
    def server_host(self) -> str:
        return self._section("server").get("host", "0.0.0.0")

    @property
    def server_port(self) -> int:
        return self._section("server").get("port", 8000)

    # =========================================================================
    # Page cache
    # =========================================================================

    @property
    def page_cache_ttl(self) -> int:
        """Default lifetime of a cached page in seconds (default 1 hour)."""
        return self._section("page_cache").get("ttl_seconds", 3600)

    @property
    def page_cache_max_entries(self) -> int:
        """Hard cap on cached pages (default 500, ~50MB at 100KB per page)."""
        return self._section("page_cache").get("max_entries", 500)

    @property
    def page_cache_check_period(self) -> int:
        """Interval of the expired-entry sweep in seconds (default 10 minutes)."""
        return self._section("page_cache").get("check_period_seconds", 600)

    @property
    def page_cache_stats_interval(self) -> int:
        return self._section("page_cache").get("stats_interval_seconds", 3600)

    @property
    def page_cache_excluded_prefixes(self) -> tuple[str, ...]:
        prefixes = self._section("page_cache").get("excluded_prefixes", ["/admin", "/health"])
        return tuple(prefixes) if isinstance(prefixes, list) else ("/admin", "/health")

    # =========================================================================
    # Environment-driven switches
    # =========================================================================

    @property
    def app_env(self) -> str:
        """Execution environment from APP_ENV (development, test, production)."""
        return os.getenv("APP_ENV", "development").lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def page_cache_enabled(self) -> bool:
        """
        Whether the page cache gate serves and stores pages.

        Disabled when APP_ENV=test so test runs never see each other's
        pages, or when PAGE_CACHE_DISABLED is set to a truthy value.
        """
        if self.app_env == "test":
            return False
        return os.getenv("PAGE_CACHE_DISABLED", "").lower() not in _TRUTHY

    @property
    def admin_token(self) -> str | None:
        """
        Bearer token for the cache administration endpoints.

        Set via ADMIN_TOKEN environment variable. The endpoints are
        unavailable while it is unset.
        """
        return os.getenv("ADMIN_TOKEN") or None


# Global config singleton used across the service
config = Config()
