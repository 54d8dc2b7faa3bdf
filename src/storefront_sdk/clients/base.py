from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..http_client import HttpClient

TokenProvider = Callable[[], str | None]
BeforeCall = Callable[[], Awaitable[None]]


def new_idempotency_key() -> str:
    return str(uuid.uuid4())


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    token_provider: TokenProvider | None = None
    before_call: BeforeCall | None = None
    module: str = "api"

    def _current_token(self) -> str | None:
        if self.token_provider is not None:
            return self.token_provider()
        return self.access_token

    def _auth_headers(self) -> dict[str, str]:
        token = self._current_token()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _prepare(self, kwargs: dict[str, Any]) -> dict[str, str]:
        if self.before_call is not None:
            await self.before_call()
        headers = kwargs.pop("headers", None) or {}
        kwargs.setdefault("module", self.module)
        return {**self._auth_headers(), **headers}

    async def _request(self, method: str, path: str, **kwargs: Any):
        headers = await self._prepare(kwargs)
        return await self.http.request(method, path, headers=headers, **kwargs)

    async def _download(self, path: str, **kwargs: Any):
        headers = await self._prepare(kwargs)
        return await self.http.download(path, headers=headers, **kwargs)
