from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from storefront_sdk.config import ConfigError, env_number, env_text

MIN_SEARCH_DEBOUNCE_MS = 250
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class AdminConfig:
    search_debounce_ms: int = 350
    page_size: int = 20
    export_dir: Path = Path("exports")
    log_level: str = "INFO"

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000


def load_admin_config(env_file: str | None = None) -> AdminConfig:
    load_dotenv(env_file)

    log_level = env_text("STOREFRONT_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Invalid STOREFRONT_LOG_LEVEL: {log_level!r}")

    return AdminConfig(
        search_debounce_ms=env_number("STOREFRONT_SEARCH_DEBOUNCE_MS", 350, int, minimum=MIN_SEARCH_DEBOUNCE_MS),
        page_size=env_number("STOREFRONT_PAGE_SIZE", 20, int, minimum=1, maximum=MAX_PAGE_SIZE),
        export_dir=Path(env_text("STOREFRONT_EXPORT_DIR", "exports")),
        log_level=log_level,
    )
