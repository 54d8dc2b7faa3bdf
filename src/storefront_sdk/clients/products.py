from __future__ import annotations

from dataclasses import dataclass

from ..models import Product
from .resource import ResourceClient


@dataclass
class ProductsClient(ResourceClient[Product]):
    resource_path = "/api/products"
    model_type = Product
    module: str = "products"
