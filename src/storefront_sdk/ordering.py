from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, TypeVar

T = TypeVar("T")


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def rank(value: Any) -> tuple[int, Any]:
    """Comparable key for a single cell value.

    Numbers sort before text, text before dates. Text compares case-insensitively.
    Dates compare as UTC instants; naive values are taken to be UTC.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (int, float)):
        return (0, float(value))
    if isinstance(value, str):
        return (1, value.strip().casefold())
    if isinstance(value, datetime):
        return (2, value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc))
    if isinstance(value, date):
        return (2, datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    return (3, str(value))


def sort_records(items: Iterable[T], value_of: Callable[[T], Any], *, descending: bool = False) -> list[T]:
    """Stable sort with missing values always last, whatever the direction."""
    present: list[T] = []
    missing: list[T] = []
    for item in items:
        (missing if is_missing(value_of(item)) else present).append(item)
    present.sort(key=lambda item: rank(value_of(item)), reverse=descending)
    return present + missing


def field_value(item: Any, key: str) -> Any:
    """Read ``key`` from a model, object or mapping; dotted keys walk nested values."""
    value = item
    for part in key.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value
