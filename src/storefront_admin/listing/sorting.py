from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Sequence, TypeVar

from storefront_sdk.ordering import sort_records

from .columns import ColumnDescriptor, find_column

T = TypeVar("T")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortState:
    key: str | None = None
    direction: SortDirection = SortDirection.ASC

    @property
    def is_active(self) -> bool:
        return self.key is not None


SortListener = Callable[[SortState], None]

INDICATORS = {SortDirection.ASC: "▲", SortDirection.DESC: "▼"}


class SortController:
    def __init__(self, initial: SortState | None = None) -> None:
        self._state = initial or SortState()
        self._listeners: list[SortListener] = []

    @property
    def state(self) -> SortState:
        return self._state

    def subscribe(self, listener: SortListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _set(self, state: SortState) -> SortState:
        if state != self._state:
            self._state = state
            for listener in list(self._listeners):
                listener(state)
        return self._state

    def toggle_sort(self, key: str) -> SortState:
        if self._state.key == key:
            return self._set(SortState(key, self._state.direction.flipped()))
        return self._set(SortState(key, SortDirection.ASC))

    def reset(self) -> SortState:
        return self._set(SortState())

    def reset_if_missing(self, keys: Iterable[str]) -> bool:
        """Drop the sort when its column is no longer part of the table."""
        if self._state.key is None or self._state.key in set(keys):
            return False
        self.reset()
        return True

    def indicator(self, key: str) -> str:
        if self._state.key != key:
            return ""
        return INDICATORS[self._state.direction]

    def as_params(self) -> dict[str, str | None]:
        if self._state.key is None:
            return {"sort_by": None, "sort_order": None}
        return {"sort_by": self._state.key, "sort_order": self._state.direction.value}


def sort_items(items: Sequence[T], columns: Sequence[ColumnDescriptor[T]], state: SortState) -> list[T]:
    """Client-side sort; blank values stay at the bottom in both directions."""
    if state.key is None:
        return list(items)
    column = find_column(columns, state.key)
    if column is None:
        return list(items)
    value_of: Callable[[T], Any] = column.value
    return sort_records(items, value_of, descending=state.direction is SortDirection.DESC)
