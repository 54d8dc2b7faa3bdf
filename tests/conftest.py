from __future__ import annotations

import os

import pytest

from storefront_sdk.config import ClientConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("STOREFRONT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("storefront_sdk.auth_store.user_data_dir", lambda *_args, **_kwargs: str(tmp_path / "userdata"))


@pytest.fixture
def http_config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url="https://api.example.com", retries=2, retry_backoff_seconds=0)


@pytest.fixture
def memory_config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url="", backend="memory")
