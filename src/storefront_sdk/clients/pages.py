from __future__ import annotations

from dataclasses import dataclass

from ..models import Page
from .resource import ResourceClient


@dataclass
class PagesClient(ResourceClient[Page]):
    resource_path = "/api/pages"
    model_type = Page
    module: str = "pages"
