"""Query-string serialization for list and export filters.

Filter values arrive from the admin filter panels as plain Python values and
leave as the backend's camelCase query parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

QueryValue = str | list[str]


@dataclass(frozen=True)
class NumericRange:
    minimum: float | int | None = None
    maximum: float | int | None = None

    @property
    def is_empty(self) -> bool:
        return self.minimum is None and self.maximum is None


@dataclass(frozen=True)
class DateRange:
    start: date | datetime | None = None
    end: date | datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    if isinstance(value, (NumericRange, DateRange)):
        return value.is_empty
    return False


def clean_filters(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    return {key: value for key, value in (filters or {}).items() if not is_blank(value)}


def scalar_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() if isinstance(value, str) else str(value)


def _prefixed(prefix: str, field_name: str) -> str:
    return to_camel(f"{prefix}_{field_name}")


def serialize_filters(filters: Mapping[str, Any] | BaseModel | None) -> dict[str, QueryValue]:
    """Turn a filter mapping into query parameters.

    Blank values are dropped, ranges expand to ``min<Field>``/``max<Field>``
    (numbers) or ``<field>From``/``<field>To`` (dates) and sequences become
    repeated parameters.
    """
    if isinstance(filters, BaseModel):
        filters = filters.model_dump(exclude_none=True)
    params: dict[str, QueryValue] = {}
    for field_name, value in clean_filters(filters).items():
        if isinstance(value, NumericRange):
            if value.minimum is not None:
                params[_prefixed("min", field_name)] = scalar_param(value.minimum)
            if value.maximum is not None:
                params[_prefixed("max", field_name)] = scalar_param(value.maximum)
            continue
        if isinstance(value, DateRange):
            if value.start is not None:
                params[to_camel(f"{field_name}_from")] = scalar_param(value.start)
            if value.end is not None:
                params[to_camel(f"{field_name}_to")] = scalar_param(value.end)
            continue
        key = to_camel(field_name)
        if isinstance(value, (list, tuple, set, frozenset)):
            params[key] = [scalar_param(item) for item in value]
            continue
        params[key] = scalar_param(value)
    return params


def sort_params(sort_by: str | None, sort_order: str | None) -> dict[str, str]:
    if not sort_by:
        return {}
    return {"sortBy": to_camel(sort_by), "sortOrder": "desc" if sort_order == "desc" else "asc"}


def page_params(page: int | None, page_size: int | None) -> dict[str, str]:
    params: dict[str, str] = {}
    if page is not None:
        params["page"] = str(max(1, int(page)))
    if page_size is not None:
        params["pageSize"] = str(max(1, int(page_size)))
    return params
