import pathlib
import sys

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront_page_cache.config_loader import Config


def test_defaults_when_config_file_missing(tmp_path):
    settings = Config(str(tmp_path / "absent.yaml"))

    assert settings.page_cache_ttl == 3600
    assert settings.page_cache_max_entries == 500
    assert settings.page_cache_check_period == 600
    assert settings.page_cache_stats_interval == 3600
    assert settings.page_cache_excluded_prefixes == ("/admin", "/health")
    assert settings.server_port == 8000


def test_values_loaded_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "storefront:\n"
        "  server:\n"
        "    port: 9000\n"
        "  page_cache:\n"
        "    ttl_seconds: 120\n"
        "    max_entries: 10\n"
        "    excluded_prefixes: ['/admin', '/checkout']\n",
        encoding="utf-8",
    )

    settings = Config(str(config_file))

    assert settings.server_port == 9000
    assert settings.page_cache_ttl == 120
    assert settings.page_cache_max_entries == 10
    assert settings.page_cache_excluded_prefixes == ("/admin", "/checkout")
    # Keys missing from the file fall back to defaults.
    assert settings.page_cache_check_period == 600


def test_config_path_env_var(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text("storefront:\n  page_cache:\n    ttl_seconds: 42\n", encoding="utf-8")
    monkeypatch.setenv("CONFIG_PATH", str(config_file))

    assert Config().page_cache_ttl == 42


def test_page_cache_toggle_from_environment(tmp_path, monkeypatch):
    settings = Config(str(tmp_path / "absent.yaml"))
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("PAGE_CACHE_DISABLED", raising=False)
    assert settings.page_cache_enabled is True

    monkeypatch.setenv("APP_ENV", "test")
    assert settings.page_cache_enabled is False

    monkeypatch.setenv("APP_ENV", "production")
    assert settings.page_cache_enabled is True
    assert settings.is_production is True

    monkeypatch.setenv("PAGE_CACHE_DISABLED", "true")
    assert settings.page_cache_enabled is False


def test_admin_token_from_environment(tmp_path, monkeypatch):
    settings = Config(str(tmp_path / "absent.yaml"))

    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    assert settings.admin_token is None

    monkeypatch.setenv("ADMIN_TOKEN", "")
    assert settings.admin_token is None

    monkeypatch.setenv("ADMIN_TOKEN", "abc")
    assert settings.admin_token == "abc"
