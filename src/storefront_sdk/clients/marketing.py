from __future__ import annotations

from dataclasses import dataclass

from ..models import Campaign, Promotion, PromotionStats
from .resource import ResourceClient


@dataclass
class PromotionsClient(ResourceClient[Promotion]):
    resource_path = "/api/promotions"
    model_type = Promotion
    module: str = "promotions"

    async def generate_code(self) -> str:
        data = await self._request("POST", f"{self.resource_path}/generate-code", operation="promotions.generate_code")
        code = data.get("code") if isinstance(data, dict) else data
        if not isinstance(code, str) or not code:
            raise ValueError("Expected generate-code response to contain a code")
        return code

    async def stats(self, promotion_id: str) -> PromotionStats:
        data = await self._request("GET", f"{self._item_path(promotion_id)}/stats", operation="promotions.stats")
        if not isinstance(data, dict):
            raise ValueError("Expected promotion stats response to be a JSON object")
        return PromotionStats.model_validate(data)


@dataclass
class CampaignsClient(ResourceClient[Campaign]):
    resource_path = "/api/campaigns"
    model_type = Campaign
    module: str = "campaigns"
