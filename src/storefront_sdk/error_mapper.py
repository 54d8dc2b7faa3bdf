"""Turn storefront backend error responses into typed exceptions.

The backend answers failures with one of a few envelopes::

    {"code": "...", "message": "...", "details": {...}, "traceId": "..."}
    {"error": "Product not found"}
    {"error": {"code": "...", "message": "..."}}
    {"message": "...", "errors": [{"field": "price", "message": "..."}]}

Field errors always come out as a ``{field: message}`` mapping so forms can
attach them to inputs.
"""

from __future__ import annotations

from typing import Any, Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}

DEFAULT_MESSAGE = "Request failed"


def error_type(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return STATUS_ERRORS.get(status_code, ApiError)


def _envelope(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    nested = payload.get("error")
    if isinstance(nested, Mapping):
        return {**payload, **nested}
    return payload


def field_errors(errors: Any) -> Any:
    """``[{"field": "price", "message": "..."}]`` becomes ``{"price": "..."}``."""
    if not isinstance(errors, list) or not all(isinstance(entry, Mapping) for entry in errors):
        return errors
    mapped: dict[str, str] = {}
    for entry in errors:
        location = entry.get("field") or entry.get("path") or entry.get("loc") or "_"
        if isinstance(location, (list, tuple)):
            location = ".".join(str(part) for part in location)
        mapped[str(location)] = str(entry.get("message") or entry.get("msg") or "")
    return mapped


def map_error(status_code: int, payload: Mapping[str, Any] | None, trace_id: str | None) -> ApiError:
    body = _envelope(payload or {})
    error_text = body.get("error")
    message = body.get("message") or (error_text if isinstance(error_text, str) else None) or DEFAULT_MESSAGE
    payload_trace = body.get("traceId", body.get("trace_id"))
    return error_type(status_code)(
        code=str(body.get("code") or f"HTTP_{status_code}"),
        message=str(message),
        details=field_errors(body.get("details") or body.get("errors")),
        trace_id=str(payload_trace) if payload_trace is not None else trace_id,
        status_code=status_code,
        raw_payload=dict(payload or {}),
    )
