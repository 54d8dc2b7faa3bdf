from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ListPage(Generic[ModelT]):
    items: list[ModelT]
    page: int = 1
    page_size: int = 20
    total: int | None = None
    has_next: bool | None = None
    has_prev: bool = False
    raw_meta: dict[str, Any] = field(default_factory=dict)


def normalize_listing(payload: Any, *, page: int = 1, page_size: int = 20) -> dict[str, Any]:
    """Accept a bare JSON array or any of the backend's listing envelopes."""
    safe_page = max(1, int(page or 1))
    safe_page_size = max(1, int(page_size or 20))

    rows: list[Any] = []
    total: int | None = None
    has_next: bool | None = None
    has_prev: bool | None = None
    raw_meta: dict[str, Any] = {}

    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        for key in ("items", "rows", "data", "results"):
            if isinstance(payload.get(key), list):
                rows = payload[key]
                break

        meta = payload.get("meta") or payload.get("pagination")
        if isinstance(meta, dict):
            raw_meta.update(meta)

        total = _to_int(payload.get("total"))
        total = total if total is not None else _to_int(raw_meta.get("total"))

        safe_page = _to_int(payload.get("page")) or _to_int(raw_meta.get("page")) or safe_page
        safe_page_size = (
            _to_int(payload.get("pageSize"))
            or _to_int(payload.get("page_size"))
            or _to_int(raw_meta.get("pageSize"))
            or _to_int(raw_meta.get("page_size"))
            or safe_page_size
        )

        has_next = _to_bool(payload.get("hasNext", payload.get("has_next")))
        if has_next is None:
            has_next = _to_bool(raw_meta.get("hasNext", raw_meta.get("has_next")))
        has_prev = _to_bool(payload.get("hasPrev", payload.get("has_prev")))

    safe_page = max(1, int(safe_page))
    safe_page_size = max(1, int(safe_page_size))

    if total is None and len(rows) < safe_page_size and safe_page == 1:
        total = len(rows)

    if has_prev is None:
        has_prev = safe_page > 1
    if has_next is None and total is not None:
        has_next = safe_page * safe_page_size < total

    return {
        "rows": rows,
        "page": safe_page,
        "page_size": safe_page_size,
        "total": total,
        "has_next": has_next,
        "has_prev": has_prev,
        "raw_meta": raw_meta,
    }


def to_list_page(payload: Any, model_type: type[ModelT], *, page: int = 1, page_size: int = 20) -> ListPage[ModelT]:
    normalized = normalize_listing(payload, page=page, page_size=page_size)
    return ListPage(
        items=[model_type.model_validate(row) for row in normalized["rows"]],
        page=normalized["page"],
        page_size=normalized["page_size"],
        total=normalized["total"],
        has_next=normalized["has_next"],
        has_prev=normalized["has_prev"],
        raw_meta=normalized["raw_meta"],
    )


def _to_int(value: Any) -> int | None:
    try:
        if value is None or value == "":
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return None
