from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import AuthError
from ..models import TokenResponse, UserResponse
from .base import BaseClient


@dataclass
class AuthClient(BaseClient):
    module: str = "auth"

    async def login(self, email: str, password: str) -> TokenResponse:
        payload = {"email": email, "password": password}
        data = await self.http.request("POST", "/api/auth/login", json_body=payload, module=self.module, operation="auth.login")
        return TokenResponse.model_validate(data)

    async def refresh(self, refresh_token: str) -> TokenResponse:
        if not refresh_token:
            raise AuthError(
                code="NO_REFRESH_TOKEN",
                message="No refresh token available",
                details=None,
                trace_id=None,
                status_code=401,
            )
        data = await self.http.request(
            "POST",
            "/api/auth/refresh",
            json_body={"refreshToken": refresh_token},
            module=self.module,
            operation="auth.refresh",
        )
        return TokenResponse.model_validate(data)

    async def me(self) -> UserResponse:
        data = await self._request("GET", "/api/auth/me", operation="auth.me")
        return UserResponse.model_validate(data)

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout", operation="auth.logout")
