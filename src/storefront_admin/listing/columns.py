from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

from storefront_sdk.ordering import field_value

T = TypeVar("T")

EMPTY_VALUE = "—"


@dataclass(frozen=True)
class ColumnDescriptor(Generic[T]):
    """Declarative column metadata.

    ``key`` identifies the column, is the sort field sent to the server and,
    without a ``render`` function, the attribute read from each row.
    """

    key: str
    header: str
    sortable: bool = False
    render: Callable[[T], str] | None = None
    width: int | None = None
    sort_value: Callable[[T], Any] | None = None

    def cell(self, item: T) -> str:
        if self.render is not None:
            return self.render(item)
        return format_value(field_value(item, self.key))

    def value(self, item: T) -> Any:
        if self.sort_value is not None:
            return self.sort_value(item)
        return field_value(item, self.key)


def format_value(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value) or EMPTY_VALUE
    text = str(value).strip()
    return text or EMPTY_VALUE


def validate_columns(columns: Sequence[ColumnDescriptor[Any]]) -> list[ColumnDescriptor[Any]]:
    seen: set[str] = set()
    for column in columns:
        if column.key in seen:
            raise ValueError(f"Duplicate column key: {column.key}")
        seen.add(column.key)
    return list(columns)


def column_keys(columns: Iterable[ColumnDescriptor[Any]]) -> list[str]:
    return [column.key for column in columns]


def find_column(columns: Iterable[ColumnDescriptor[Any]], key: str) -> ColumnDescriptor[Any] | None:
    return next((column for column in columns if column.key == key), None)
