from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from dotenv import load_dotenv

BACKENDS = ("http", "memory")
TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

N = TypeVar("N", int, float)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for the storefront REST backend.

    ``backend="memory"`` swaps every resource client for an in-process store,
    optionally seeded from ``seed_file``; ``api_base_url`` may then be empty.
    """

    env_name: str
    api_base_url: str
    backend: str = "http"
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    seed_file: str | None = None

    @property
    def uses_memory_backend(self) -> bool:
        return self.backend == "memory"


def env_text(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_flag(name: str, default: bool) -> bool:
    raw = env_text(name)
    return raw.lower() in TRUE_VALUES if raw else default


def env_number(
    name: str,
    default: N,
    cast: Callable[[str], N],
    *,
    minimum: N | None = None,
    maximum: N | None = None,
    exclusive: bool = False,
) -> N:
    """Read a numeric setting; blank means ``default``.

    ``minimum`` is exclusive when ``exclusive`` is set, ``maximum`` always inclusive.
    """
    raw = env_text(name)
    try:
        value = cast(raw) if raw else default
    except ValueError as exc:
        kind = "an integer" if cast is int else "a number"
        raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    if minimum is not None and (value <= minimum if exclusive else value < minimum):
        raise ConfigError(f"Invalid {name}: expected {'>' if exclusive else '>='} {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"Invalid {name}: expected <= {maximum}, got {value}")
    return value


def load_config(env_file: str | None = None) -> ClientConfig:
    """Build a ``ClientConfig`` from ``STOREFRONT_*`` variables.

    Values in ``env_file`` fill in whatever the process environment leaves
    unset. ``STOREFRONT_API_BASE_URL_<ENV>`` beats the plain base URL.
    """
    load_dotenv(env_file)

    env_name = env_text("STOREFRONT_ENV", "dev")
    backend = env_text("STOREFRONT_BACKEND", "http").lower()
    if backend not in BACKENDS:
        raise ConfigError(f"Invalid STOREFRONT_BACKEND: expected one of {', '.join(BACKENDS)}, got {backend!r}")

    api_base_url = env_text(f"STOREFRONT_API_BASE_URL_{env_name.upper()}") or env_text("STOREFRONT_API_BASE_URL")
    # The in-memory backend never opens a connection.
    if backend == "http" and not api_base_url:
        raise ConfigError(f"Missing STOREFRONT_API_BASE_URL (or STOREFRONT_API_BASE_URL_{env_name.upper()})")

    timeout = env_number("STOREFRONT_TIMEOUT_SECONDS", 10.0, float, minimum=0.0, exclusive=True)
    connect = env_number("STOREFRONT_CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0), float, minimum=0.0, exclusive=True)

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        backend=backend,
        connect_timeout_seconds=connect,
        read_timeout_seconds=env_number(
            "STOREFRONT_READ_TIMEOUT_SECONDS", max(timeout, connect), float, minimum=0.0, exclusive=True
        ),
        retries=env_number("STOREFRONT_RETRIES", 3, int, minimum=0),
        retry_backoff_seconds=env_number("STOREFRONT_RETRY_BACKOFF_SECONDS", 0.3, float, minimum=0.0),
        max_connections=env_number("STOREFRONT_MAX_CONNECTIONS", 20, int, minimum=1),
        verify_ssl=env_flag("STOREFRONT_VERIFY_SSL", True),
        seed_file=env_text("STOREFRONT_SEED_FILE") or None,
    )
