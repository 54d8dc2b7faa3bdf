"""In-process backend used when ``STOREFRONT_BACKEND=memory``.

It honours the same list/get/create/update/remove/export contract as the REST
resource clients, so list pages and tests can run without a server.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Generic, Iterable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel, to_snake

from .config import ConfigError
from .exceptions import NotFoundError
from .http_client import DownloadedFile
from .models import Entity, camel_keys
from .normalizers import ListPage
from .ordering import field_value, sort_records
from .query import DateRange, NumericRange, clean_filters

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)

SEARCH_FIELD = "search"


def load_seed(path: str | Path) -> dict[str, list[dict[str, Any]]]:
    """Read a JSON object mapping entity names to lists of records."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid STOREFRONT_SEED_FILE {str(path)!r}: {exc}") from exc
    if not isinstance(data, dict) or not all(isinstance(rows, list) for rows in data.values()):
        raise ConfigError(f"Invalid STOREFRONT_SEED_FILE {str(path)!r}: expected {{entity: [records]}}")
    return data


def _comparable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return value.strip().casefold()
    return value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _text_values(item: BaseModel) -> Iterable[str]:
    for value in item.model_dump().values():
        if isinstance(value, Enum):
            yield str(value.value)
        elif isinstance(value, str):
            yield value
    full_name = getattr(item, "full_name", None)
    if isinstance(full_name, str):
        yield full_name


def matches(item: BaseModel, field_name: str, expected: Any) -> bool:
    if field_name == SEARCH_FIELD:
        needle = str(expected).strip().casefold()
        return any(needle in text.casefold() for text in _text_values(item))

    actual = field_value(item, to_snake(field_name))
    if isinstance(expected, NumericRange):
        if actual is None:
            return False
        if expected.minimum is not None and actual < expected.minimum:
            return False
        return expected.maximum is None or actual <= expected.maximum
    if isinstance(expected, DateRange):
        if not isinstance(actual, (date, datetime)):
            return False
        moment = _as_datetime(actual)
        if expected.start is not None and moment < _as_datetime(expected.start):
            return False
        if expected.end is None:
            return True
        end = expected.end
        if not isinstance(end, datetime):
            # A bare end date includes the whole day.
            return moment.date() <= end
        return moment <= _as_datetime(end)
    if isinstance(expected, (list, tuple, set, frozenset)):
        wanted = {_comparable(value) for value in expected}
        if isinstance(actual, list):
            return any(_comparable(value) in wanted for value in actual)
        return _comparable(actual) in wanted
    if isinstance(actual, list):
        return _comparable(expected) in {_comparable(value) for value in actual}
    if isinstance(actual, bool) and isinstance(expected, str):
        return actual == (expected.strip().lower() == "true")
    return _comparable(actual) == _comparable(expected)


def _camel_keys(payload: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return camel_keys(payload)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class InMemoryResource(Generic[EntityT]):
    def __init__(
        self,
        name: str,
        model_type: type[EntityT],
        records: Iterable[EntityT | Mapping[str, Any]] = (),
        *,
        latency: float = 0.0,
    ) -> None:
        self.name = name
        self.model_type = model_type
        self.latency = latency
        self._items: dict[str, EntityT] = {}
        self.seed(records)

    def seed(self, records: Iterable[EntityT | Mapping[str, Any]]) -> None:
        for record in records:
            item = record if isinstance(record, self.model_type) else self.model_type.model_validate(record)
            self._items[item.id] = item

    def all(self) -> list[EntityT]:
        return list(self._items.values())

    async def _pause(self) -> None:
        # Yields control even at zero latency so callers see real await points.
        await asyncio.sleep(self.latency)

    def _select(self, filters: Mapping[str, Any] | None) -> list[EntityT]:
        active = clean_filters(filters)
        known = set(self.model_type.model_fields) | {SEARCH_FIELD}
        for field_name in list(active):
            if to_snake(field_name) not in known:
                logger.debug("memory_filter_ignored", extra={"entity": self.name, "field": field_name})
                active.pop(field_name)
        return [
            item
            for item in self._items.values()
            if all(matches(item, field_name, expected) for field_name, expected in active.items())
        ]

    def _require(self, item_id: str) -> EntityT:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError(
                code="NOT_FOUND",
                message=f"{self.name} {item_id} not found",
                details={"id": item_id},
                trace_id=None,
                status_code=404,
            ) from None

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> ListPage[EntityT]:
        await self._pause()
        rows = self._select(filters)
        if sort_by:
            key = to_snake(sort_by)
            rows = sort_records(rows, lambda item: field_value(item, key), descending=sort_order == "desc")
        safe_page = max(1, page or 1)
        safe_size = max(1, page_size or 20)
        start = (safe_page - 1) * safe_size
        return ListPage(
            items=rows[start : start + safe_size],
            page=safe_page,
            page_size=safe_size,
            total=len(rows),
            has_next=start + safe_size < len(rows),
            has_prev=safe_page > 1,
        )

    async def get(self, item_id: str) -> EntityT:
        await self._pause()
        return self._require(item_id)

    async def create(self, payload: Mapping[str, Any] | BaseModel) -> EntityT:
        await self._pause()
        now = datetime.now(timezone.utc)
        data = {**_camel_keys(payload), "id": uuid.uuid4().hex}
        for stamp in ("created_at", "updated_at"):
            if stamp in self.model_type.model_fields:
                data.setdefault(to_camel(stamp), now)
        item = self.model_type.model_validate(data)
        self._items[item.id] = item
        return item

    async def update(self, item_id: str, payload: Mapping[str, Any] | BaseModel) -> EntityT:
        await self._pause()
        current = self._require(item_id)
        data = {**current.model_dump(by_alias=True), **_camel_keys(payload), "id": item_id}
        if "updated_at" in self.model_type.model_fields:
            data["updatedAt"] = datetime.now(timezone.utc)
        item = self.model_type.model_validate(data)
        self._items[item_id] = item
        return item

    async def remove(self, item_id: str) -> None:
        await self._pause()
        self._require(item_id)
        del self._items[item_id]

    async def export(self, filters: Mapping[str, Any] | None = None, export_format: str = "csv") -> DownloadedFile:
        await self._pause()
        rows = [item.model_dump(mode="json") for item in self._select(filters)]
        stamp = date.today().isoformat()
        if export_format == "json":
            return DownloadedFile(
                content=json.dumps(rows, indent=2).encode("utf-8"),
                content_type="application/json",
                file_name=f"{self.name}-{stamp}.json",
            )
        if export_format != "csv":
            raise ValueError(f"Unsupported export format for the memory backend: {export_format}")
        headers = list(self.model_type.model_fields)
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({header: _cell(row.get(header)) for header in headers})
        return DownloadedFile(
            content=buffer.getvalue().encode("utf-8"),
            content_type="text/csv",
            file_name=f"{self.name}-{stamp}.csv",
        )
