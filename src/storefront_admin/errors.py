from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pydantic

from storefront_sdk.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)

RETRYABLE_CATEGORIES = {"network", "server", "throttled"}


@dataclass(frozen=True)
class PresentedError:
    category: str
    message: str
    safe_to_retry: bool
    details: dict[str, Any]

    @property
    def trace_id(self) -> str | None:
        return self.details.get("trace_id")

    def render(self, *, expanded: bool = False) -> dict[str, Any]:
        payload = {
            "category": self.category,
            "message": self.message,
            "safe_to_retry": self.safe_to_retry,
        }
        if expanded:
            payload["technical_details"] = self.details
        return payload


class ErrorPresenter:
    """Turns any failure into a user-facing message the list pages can show."""

    _CATEGORY_MESSAGES = {
        "validation": "Please correct the highlighted values and submit again.",
        "auth": "Your session has expired. Sign in again.",
        "permission": "Your role does not allow this action.",
        "not_found": "The record no longer exists. Refresh the list.",
        "conflict": "This record was changed by someone else. Refresh and try again.",
        "throttled": "Too many requests. Wait a moment and retry.",
        "network": "Network issue detected. Retry when connectivity is stable.",
        "server": "Server error encountered. Retry in a moment or contact support.",
        "unexpected": "Something went wrong. Retry or review the technical details.",
    }

    _TYPE_CATEGORIES: tuple[tuple[type[BaseException], str], ...] = (
        (ValidationError, "validation"),
        (pydantic.ValidationError, "validation"),
        (AuthError, "auth"),
        (PermissionError, "permission"),
        (NotFoundError, "not_found"),
        (ConflictError, "conflict"),
        (RateLimitError, "throttled"),
        (TransportError, "network"),
        (TimeoutError, "network"),
        (ConnectionError, "network"),
        (ServerError, "server"),
    )

    def present(self, error: BaseException, *, action: str, timestamp: datetime | None = None) -> PresentedError:
        category = self.categorize(error)
        api_error = error if isinstance(error, ApiError) else None
        return PresentedError(
            category=category,
            message=self._CATEGORY_MESSAGES[category],
            safe_to_retry=category in RETRYABLE_CATEGORIES,
            details={
                "trace_id": api_error.trace_id if api_error else None,
                "code": api_error.code if api_error else type(error).__name__.upper(),
                "status_code": api_error.status_code if api_error else None,
                "action": action,
                "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
                "raw": api_error.details if api_error else str(error),
            },
        )

    def categorize(self, error: BaseException) -> str:
        for error_type, category in self._TYPE_CATEGORIES:
            if isinstance(error, error_type):
                return category
        if isinstance(error, ApiError):
            return self._categorize_code(error.code)
        return "unexpected"

    @staticmethod
    def _categorize_code(code: str) -> str:
        probe = code.lower()
        if any(token in probe for token in ("validation", "invalid", "required")):
            return "validation"
        if any(token in probe for token in ("timeout", "network", "transport")):
            return "network"
        return "unexpected"

