from .auth import AuthClient
from .customers import CustomersClient
from .inventory import InventoryClient
from .marketing import CampaignsClient, PromotionsClient
from .orders import OrdersClient
from .pages import PagesClient
from .products import ProductsClient
from .resource import ResourceClient, ResourceService

__all__ = [
    "AuthClient",
    "CampaignsClient",
    "CustomersClient",
    "InventoryClient",
    "OrdersClient",
    "PagesClient",
    "ProductsClient",
    "PromotionsClient",
    "ResourceClient",
    "ResourceService",
]
