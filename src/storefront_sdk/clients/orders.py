from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models import Order, OrderStatus, PaymentStatus
from .resource import ResourceClient


@dataclass
class OrdersClient(ResourceClient[Order]):
    resource_path = "/api/orders"
    model_type = Order
    module: str = "orders"

    async def update_status(self, order_id: str, status: OrderStatus | str) -> Order:
        data = await self._request(
            "PATCH",
            f"{self._item_path(order_id)}/status",
            json_body={"status": OrderStatus(status).value},
            operation="orders.update_status",
        )
        return self._parse(data)

    async def update_payment_status(self, order_id: str, status: PaymentStatus | str) -> Order:
        data = await self._request(
            "PATCH",
            f"{self._item_path(order_id)}/payment",
            json_body={"status": PaymentStatus(status).value},
            operation="orders.update_payment_status",
        )
        return self._parse(data)

    async def stats(self) -> dict[str, Any]:
        data = await self._request("GET", f"{self.resource_path}/stats", operation="orders.stats")
        if not isinstance(data, dict):
            raise ValueError("Expected order stats response to be a JSON object")
        return data
