from __future__ import annotations

from pathlib import Path

import pytest

from storefront_admin.config import load_admin_config
from storefront_sdk.config import ConfigError, load_config


def test_env_specific_base_url_wins(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_ENV", "prod")
    monkeypatch.setenv("STOREFRONT_API_BASE_URL", "https://fallback.example.com")
    monkeypatch.setenv("STOREFRONT_API_BASE_URL_PROD", "https://prod.example.com/")

    config = load_config()

    assert config.env_name == "prod"
    assert config.api_base_url == "https://prod.example.com"
    assert config.backend == "http"


def test_http_backend_requires_base_url() -> None:
    with pytest.raises(ConfigError, match="STOREFRONT_API_BASE_URL"):
        load_config()


def test_memory_backend_needs_no_base_url(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_BACKEND", "memory")

    config = load_config()

    assert config.uses_memory_backend
    assert config.api_base_url == ""
    assert config.seed_file is None


def test_seed_file_is_read(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STOREFRONT_BACKEND", "memory")
    monkeypatch.setenv("STOREFRONT_SEED_FILE", f" {tmp_path / 'seed.json'} ")

    assert load_config().seed_file == str(tmp_path / "seed.json")


def test_unknown_backend_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_BACKEND", "graphql")

    with pytest.raises(ConfigError, match="STOREFRONT_BACKEND"):
        load_config()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("STOREFRONT_RETRIES", "-1"),
        ("STOREFRONT_TIMEOUT_SECONDS", "0"),
        ("STOREFRONT_MAX_CONNECTIONS", "0"),
        ("STOREFRONT_RETRY_BACKOFF_SECONDS", "abc"),
    ],
)
def test_invalid_numeric_values(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv("STOREFRONT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=name):
        load_config()


def test_timeouts_derive_from_general_timeout(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("STOREFRONT_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("STOREFRONT_VERIFY_SSL", "false")

    config = load_config()

    assert config.connect_timeout_seconds == 5.0
    assert config.read_timeout_seconds == 30.0
    assert config.verify_ssl is False


def test_admin_config_defaults() -> None:
    config = load_admin_config()

    assert config.search_debounce_ms == 350
    assert config.search_debounce_seconds == pytest.approx(0.35)
    assert config.page_size == 20
    assert config.export_dir == Path("exports")
    assert config.log_level == "INFO"


def test_admin_config_rejects_short_debounce(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_SEARCH_DEBOUNCE_MS", "100")

    with pytest.raises(ConfigError, match="STOREFRONT_SEARCH_DEBOUNCE_MS"):
        load_admin_config()


@pytest.mark.parametrize("value", ["0", "501", "twenty"])
def test_admin_config_page_size_bounds(monkeypatch, value: str) -> None:
    monkeypatch.setenv("STOREFRONT_PAGE_SIZE", value)

    with pytest.raises(ConfigError, match="STOREFRONT_PAGE_SIZE"):
        load_admin_config()


def test_admin_config_reads_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STOREFRONT_SEARCH_DEBOUNCE_MS", "500")
    monkeypatch.setenv("STOREFRONT_PAGE_SIZE", "50")
    monkeypatch.setenv("STOREFRONT_EXPORT_DIR", str(tmp_path))
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")

    config = load_admin_config()

    assert config.search_debounce_ms == 500
    assert config.page_size == 50
    assert config.export_dir == tmp_path
    assert config.log_level == "DEBUG"


def test_env_file_values_are_loaded(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("STOREFRONT_BACKEND=memory\nSTOREFRONT_RETRIES=1\n")

    config = load_config(str(env_file))

    assert config.uses_memory_backend
    assert config.retries == 1


def test_blank_numeric_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("STOREFRONT_RETRIES", "  ")
    monkeypatch.setenv("STOREFRONT_MAX_CONNECTIONS", "")

    config = load_config()

    assert config.retries == 3
    assert config.max_connections == 20
    assert config.read_timeout_seconds == 10.0


def test_missing_base_url_names_env_specific_variable(monkeypatch) -> None:
    monkeypatch.setenv("STOREFRONT_ENV", "staging")

    with pytest.raises(ConfigError, match="STOREFRONT_API_BASE_URL_STAGING"):
        load_config()
