from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Mapping, Protocol, TypeVar

from pydantic import BaseModel

from ..http_client import DownloadedFile
from ..models import Entity, camel_keys
from ..normalizers import ListPage, to_list_page
from ..query import page_params, serialize_filters, sort_params
from .base import BaseClient, new_idempotency_key

EntityT = TypeVar("EntityT", bound=Entity)

EXPORT_FORMATS = ("csv", "xlsx", "json")


class ResourceService(Protocol[EntityT]):
    """What a list page needs from a data service, HTTP-backed or not."""

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> ListPage[EntityT]: ...

    async def get(self, item_id: str) -> EntityT: ...

    async def create(self, payload: Mapping[str, Any] | BaseModel) -> EntityT: ...

    async def update(self, item_id: str, payload: Mapping[str, Any] | BaseModel) -> EntityT: ...

    async def remove(self, item_id: str) -> None: ...

    async def export(self, filters: Mapping[str, Any] | None = None, export_format: str = "csv") -> DownloadedFile: ...


def to_body(payload: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    return camel_keys(payload)


@dataclass
class ResourceClient(BaseClient, Generic[EntityT]):
    """REST resource with the list/get/create/update/remove/export contract."""

    resource_path: ClassVar[str] = ""
    model_type: ClassVar[type[Entity]] = Entity

    def _item_path(self, item_id: str) -> str:
        return f"{self.resource_path}/{item_id}"

    def _parse(self, data: Any) -> EntityT:
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        if not isinstance(data, dict):
            raise ValueError(f"Expected {self.model_type.__name__} response to be a JSON object")
        return self.model_type.model_validate(data)

    async def list(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> ListPage[EntityT]:
        params: dict[str, Any] = {
            **serialize_filters(filters),
            **sort_params(sort_by, sort_order),
            **page_params(page, page_size),
        }
        data = await self._request("GET", self.resource_path, params=params or None, operation=f"{self.module}.list")
        return to_list_page(data, self.model_type, page=page or 1, page_size=page_size or 20)

    async def get(self, item_id: str) -> EntityT:
        data = await self._request("GET", self._item_path(item_id), operation=f"{self.module}.get")
        return self._parse(data)

    async def create(self, payload: Mapping[str, Any] | BaseModel, *, idempotency_key: str | None = None) -> EntityT:
        data = await self._request(
            "POST",
            self.resource_path,
            json_body=to_body(payload),
            headers={"Idempotency-Key": idempotency_key or new_idempotency_key()},
            operation=f"{self.module}.create",
        )
        return self._parse(data)

    async def update(self, item_id: str, payload: Mapping[str, Any] | BaseModel) -> EntityT:
        data = await self._request(
            "PATCH",
            self._item_path(item_id),
            json_body=to_body(payload),
            operation=f"{self.module}.update",
        )
        return self._parse(data)

    async def remove(self, item_id: str) -> None:
        await self._request("DELETE", self._item_path(item_id), operation=f"{self.module}.remove")

    async def export(self, filters: Mapping[str, Any] | None = None, export_format: str = "csv") -> DownloadedFile:
        if export_format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {export_format}")
        params: dict[str, Any] = {**serialize_filters(filters), "format": export_format}
        return await self._download(f"{self.resource_path}/export", params=params, operation=f"{self.module}.export")
