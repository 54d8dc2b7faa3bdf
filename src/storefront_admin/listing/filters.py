from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from storefront_sdk.query import clean_filters

from .debounce import Debouncer

logger = logging.getLogger(__name__)

MIN_TEXT_DEBOUNCE_SECONDS = 0.25

FilterListener = Callable[[Mapping[str, Any]], None]


class FilterStore:
    """Current filter values for one list page.

    Every change produces a new read-only mapping. Changes to ``text_fields``
    are announced after ``debounce_seconds`` of quiet; any other change is
    announced at once and supersedes a pending text announcement.
    """

    def __init__(
        self,
        defaults: Mapping[str, Any] | None = None,
        *,
        text_fields: Iterable[str] = ("search",),
        debounce_seconds: float = 0.35,
    ) -> None:
        self._defaults: Mapping[str, Any] = MappingProxyType(dict(defaults or {}))
        self._state: Mapping[str, Any] = self._defaults
        self.text_fields = frozenset(text_fields)
        self._listeners: list[FilterListener] = []
        self._debouncer = Debouncer(max(debounce_seconds, MIN_TEXT_DEBOUNCE_SECONDS), self._emit)

    @property
    def state(self) -> Mapping[str, Any]:
        return self._state

    @property
    def defaults(self) -> Mapping[str, Any]:
        return self._defaults

    @property
    def debounce_seconds(self) -> float:
        return self._debouncer.delay

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def is_default(self) -> bool:
        return dict(self._state) == dict(self._defaults)

    def get(self, field_name: str, default: Any = None) -> Any:
        return self._state.get(field_name, default)

    def active(self) -> dict[str, Any]:
        return clean_filters(self._state)

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def set_filter(self, field_name: str, value: Any) -> Mapping[str, Any]:
        if field_name in self._state and self._state[field_name] == value:
            return self._state
        self._state = MappingProxyType({**self._state, field_name: value})
        if field_name in self.text_fields:
            self._debouncer.call()
        else:
            self._debouncer.cancel()
            self._emit()
        return self._state

    def set_filters(self, values: Mapping[str, Any]) -> Mapping[str, Any]:
        """Apply several fields at once with a single immediate announcement."""
        merged = {**self._state, **values}
        if merged == dict(self._state):
            return self._state
        self._state = MappingProxyType(merged)
        self._debouncer.cancel()
        self._emit()
        return self._state

    def reset(self) -> Mapping[str, Any]:
        # Always announced so listeners return to the first page.
        self._debouncer.cancel()
        self._state = self._defaults
        self._emit()
        return self._state

    def flush(self) -> bool:
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel()
        self._listeners.clear()

    def _emit(self) -> None:
        state = self._state
        logger.debug("filters_changed", extra={"filters": dict(state)})
        for listener in list(self._listeners):
            listener(state)
