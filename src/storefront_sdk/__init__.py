from .auth_store import AuthStore
from .clients.resource import ResourceClient, ResourceService
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    SessionExpiredError,
    TransportError,
    ValidationError,
)
from .http_client import DownloadedFile, HttpClient
from .memory import InMemoryResource
from .models import (
    Campaign,
    Customer,
    Entity,
    Order,
    Page,
    Product,
    Promotion,
    SessionData,
    SortOrder,
    StockAdjustment,
    StockMovement,
    TokenResponse,
    UserResponse,
)
from .normalizers import ListPage
from .query import DateRange, NumericRange
from .session import ApiSession
from .tracing import TraceContext

__all__ = [
    "ApiError",
    "ApiSession",
    "AuthError",
    "AuthStore",
    "Campaign",
    "ClientConfig",
    "ConfigError",
    "ConflictError",
    "Customer",
    "DateRange",
    "DownloadedFile",
    "Entity",
    "HttpClient",
    "InMemoryResource",
    "ListPage",
    "NotFoundError",
    "NumericRange",
    "Order",
    "Page",
    "PermissionError",
    "Product",
    "Promotion",
    "RateLimitError",
    "ResourceClient",
    "ResourceService",
    "ServerError",
    "SessionData",
    "SessionExpiredError",
    "SortOrder",
    "StockAdjustment",
    "StockMovement",
    "TokenResponse",
    "TraceContext",
    "TransportError",
    "UserResponse",
    "ValidationError",
    "load_config",
]
