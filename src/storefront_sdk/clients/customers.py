from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from ..models import Customer, CustomerNote, CustomerStats
from .resource import ResourceClient


@dataclass
class CustomersClient(ResourceClient[Customer]):
    resource_path = "/api/customers"
    model_type = Customer
    module: str = "customers"

    async def stats(self) -> CustomerStats:
        data = await self._request("GET", f"{self.resource_path}/stats", operation="customers.stats")
        if not isinstance(data, dict):
            raise ValueError("Expected customer stats response to be a JSON object")
        return CustomerStats.model_validate(data)

    async def add_note(self, customer_id: str, content: str) -> CustomerNote:
        if not content.strip():
            raise ValueError("Note content must not be empty")
        data = await self._request(
            "POST",
            f"{self._item_path(customer_id)}/notes",
            json_body={"content": content.strip()},
            operation="customers.add_note",
        )
        return CustomerNote.model_validate(data)

    async def delete_note(self, customer_id: str, note_id: str) -> None:
        await self._request(
            "DELETE",
            f"{self._item_path(customer_id)}/notes/{note_id}",
            operation="customers.delete_note",
        )

    async def add_tag(self, customer_id: str, tag: str) -> Customer:
        data = await self._request(
            "POST",
            f"{self._item_path(customer_id)}/tags",
            json_body={"tag": tag},
            operation="customers.add_tag",
        )
        return self._parse(data)

    async def remove_tag(self, customer_id: str, tag: str) -> Customer:
        data = await self._request(
            "DELETE",
            f"{self._item_path(customer_id)}/tags/{quote(tag, safe='')}",
            operation="customers.remove_tag",
        )
        return self._parse(data)
