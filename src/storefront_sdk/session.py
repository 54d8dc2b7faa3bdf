from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from .auth_store import AuthStore
from .clients.auth import AuthClient
from .clients.customers import CustomersClient
from .clients.inventory import InventoryClient
from .clients.marketing import CampaignsClient, PromotionsClient
from .clients.orders import OrdersClient
from .clients.pages import PagesClient
from .clients.products import ProductsClient
from .clients.resource import ResourceClient, ResourceService
from .config import ClientConfig
from .exceptions import SessionExpiredError
from .http_client import HttpClient
from .memory import InMemoryResource, load_seed
from .models import SessionData, TokenResponse, UserResponse
from .tracing import TraceContext

logger = logging.getLogger(__name__)

RESOURCE_CLIENTS: dict[str, type[ResourceClient[Any]]] = {
    "products": ProductsClient,
    "orders": OrdersClient,
    "customers": CustomersClient,
    "inventory": InventoryClient,
    "promotions": PromotionsClient,
    "campaigns": CampaignsClient,
    "pages": PagesClient,
}

EXPIRY_SKEW = timedelta(seconds=30)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ApiSession:
    """Authenticated access to the storefront backend.

    Lifecycle: ``start()`` restores a persisted session, ``login()`` creates one,
    ``ensure_fresh()`` runs before every resource call and refreshes an expired
    token, ``logout()`` clears the store and closes the HTTP client.
    """

    config: ClientConfig
    auth_store: AuthStore | None = None
    trace: TraceContext | None = None
    http: HttpClient | None = None
    token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    user: UserResponse | None = None
    clock: Callable[[], datetime] = utcnow
    memory: dict[str, InMemoryResource[Any]] = field(default_factory=dict)
    _seed: dict[str, list[dict[str, Any]]] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.auth_store = self.auth_store or AuthStore()
        self.trace = self.trace or TraceContext()
        if self.http is None and not self.config.uses_memory_backend:
            self.http = HttpClient(config=self.config, trace=self.trace)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at if self.expires_at.tzinfo else self.expires_at.replace(tzinfo=timezone.utc)
        return self.clock() + EXPIRY_SKEW >= expires_at

    def start(self) -> bool:
        stored = self.auth_store.load()
        if stored is None:
            return False
        if stored.env_name and stored.env_name != self.config.env_name:
            logger.info("session_env_mismatch", extra={"stored": stored.env_name, "current": self.config.env_name})
            return False
        self.token = stored.access_token
        self.refresh_token = stored.refresh_token
        self.expires_at = stored.expires_at
        self.user = stored.user
        return True

    def _auth_client(self) -> AuthClient:
        return AuthClient(http=self._require_http(), token_provider=self.current_token)

    def _require_http(self) -> HttpClient:
        if self.http is None:
            raise RuntimeError("HTTP client is not available for the memory backend")
        return self.http

    async def login(self, email: str, password: str) -> UserResponse | None:
        if self.config.uses_memory_backend:
            token = TokenResponse(access_token=f"memory-{uuid.uuid4().hex}")
            self.establish(token, UserResponse(id="local-admin", email=email, name="Local admin", role="admin"))
            return self.user
        auth = self._auth_client()
        token = await auth.login(email, password)
        self.token = token.access_token
        user = await auth.me()
        self.establish(token, user)
        return user

    async def refresh(self) -> None:
        if self.config.uses_memory_backend:
            self.expires_at = None
            return
        if not self.refresh_token:
            self.clear()
            raise SessionExpiredError(
                code="SESSION_EXPIRED",
                message="Session expired; sign in again",
                details=None,
                trace_id=self.trace.last_trace_id,
                status_code=401,
            )
        token = await self._auth_client().refresh(self.refresh_token)
        self.establish(token, self.user)
        logger.info("session_refreshed", extra={"trace_id": token.trace_id})

    async def ensure_fresh(self) -> None:
        if self.token and self.is_expired:
            await self.refresh()

    def establish(self, token: TokenResponse, user: UserResponse | None) -> None:
        self.token = token.access_token
        self.refresh_token = token.refresh_token or self.refresh_token
        self.expires_at = token.expires_at
        self.user = user
        self.auth_store.save(
            SessionData(
                access_token=self.token,
                refresh_token=self.refresh_token,
                expires_at=self.expires_at,
                user=self.user,
                env_name=self.config.env_name,
            )
        )

    def current_token(self) -> str | None:
        return self.token

    def clear(self) -> None:
        self.token = None
        self.refresh_token = None
        self.expires_at = None
        self.user = None
        self.auth_store.clear()

    async def logout(self) -> None:
        try:
            if self.token and self.http is not None:
                await self._auth_client().logout()
        finally:
            self.clear()
            await self.aclose()

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()

    def service(self, entity: str) -> ResourceService[Any]:
        try:
            client_type = RESOURCE_CLIENTS[entity]
        except KeyError:
            raise ValueError(f"Unknown entity: {entity}") from None
        if self.config.uses_memory_backend:
            if entity not in self.memory:
                self.memory[entity] = InMemoryResource(entity, client_type.model_type, self._seed_records(entity))
            return self.memory[entity]
        return client_type(
            http=self._require_http(),
            token_provider=self.current_token,
            before_call=self.ensure_fresh,
        )

    def _seed_records(self, entity: str) -> list[dict[str, Any]]:
        if not self.config.seed_file:
            return []
        if self._seed is None:
            self._seed = load_seed(self.config.seed_file)
        return self._seed.get(entity, [])

    def products(self) -> ResourceService[Any]:
        return self.service("products")

    def orders(self) -> ResourceService[Any]:
        return self.service("orders")

    def customers(self) -> ResourceService[Any]:
        return self.service("customers")

    def inventory(self) -> ResourceService[Any]:
        return self.service("inventory")

    def promotions(self) -> ResourceService[Any]:
        return self.service("promotions")

    def campaigns(self) -> ResourceService[Any]:
        return self.service("campaigns")

    def pages(self) -> ResourceService[Any]:
        return self.service("pages")
