from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models import StockAdjustment, StockAlert, StockMovement
from .resource import ResourceClient, to_body


@dataclass
class InventoryClient(ResourceClient[StockMovement]):
    """Stock movements are the listed resource; alerts and adjustments hang off it."""

    resource_path = "/api/inventory/movements"
    model_type = StockMovement
    module: str = "inventory"

    async def alerts(self) -> list[StockAlert]:
        data = await self._request("GET", "/api/inventory/alerts", operation="inventory.alerts")
        rows = data.get("items", []) if isinstance(data, dict) else data or []
        return [StockAlert.model_validate(row) for row in rows]

    async def adjust_stock(self, adjustment: StockAdjustment | Mapping[str, Any]) -> StockMovement:
        if not isinstance(adjustment, StockAdjustment):
            adjustment = StockAdjustment.model_validate(adjustment)
        data = await self._request(
            "POST",
            "/api/inventory/adjustments",
            json_body=to_body(adjustment),
            operation="inventory.adjust_stock",
        )
        return self._parse(data)
