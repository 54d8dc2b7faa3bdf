from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Backend payloads are camelCase; Python code uses snake_case."""

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def camel_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    """camelCase the keys of a snake_case payload, nested mappings included."""
    return {
        (to_camel(key) if "_" in key.strip("_") else key): camel_keys(value) if isinstance(value, Mapping) else value
        for key, value in payload.items()
    }


class Entity(ApiModel):
    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # Some backends emit integer primary keys.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CustomerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"


class CustomerSegment(str, Enum):
    NEW = "new"
    REGULAR = "regular"
    VIP = "vip"


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class PromotionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromotionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    CANCELLED = "cancelled"


class PublishStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"


class Product(Entity):
    name: str
    description: str | None = None
    sku: str | None = None
    category: str | None = None
    price: float = 0.0
    sale_price: float | None = None
    quantity: int = 0
    status: ProductStatus = ProductStatus.DRAFT
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderItem(ApiModel):
    id: str | None = None
    product_id: str
    product_name: str | None = None
    quantity: int = 1
    price: float = 0.0
    total: float = 0.0


class Address(ApiModel):
    id: str | None = None
    type: str = "shipping"
    street: str = ""
    city: str = ""
    state: str | None = None
    country: str = ""
    zip_code: str | None = None
    is_default: bool = False


class Order(Entity):
    order_number: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0
    shipping_address: Address | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CustomerNote(ApiModel):
    id: str | None = None
    content: str
    created_at: datetime | None = None
    created_by: str | None = None


class Customer(Entity):
    first_name: str = ""
    last_name: str = ""
    email: str
    phone: str | None = None
    status: CustomerStatus = CustomerStatus.ACTIVE
    segment: CustomerSegment = CustomerSegment.NEW
    total_orders: int = 0
    total_spent: float = 0.0
    average_order_value: float = 0.0
    last_order_date: datetime | None = None
    registration_date: datetime | None = None
    addresses: list[Address] = Field(default_factory=list)
    notes: list[CustomerNote] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CustomerStats(ApiModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    blocked: int = 0
    new: int = 0
    regular: int = 0
    vip: int = 0
    average_order_value: float = 0.0
    total_revenue: float = 0.0


class StockMovement(Entity):
    product_id: str
    product_name: str | None = None
    type: MovementType = MovementType.ADJUSTMENT
    quantity: int
    reason: str | None = None
    reference: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class StockAlert(ApiModel):
    product_id: str
    product_name: str | None = None
    current_stock: int = 0
    low_stock_threshold: int = 0
    reorder_point: int = 0
    suggested_order: int = 0


class StockAdjustment(ApiModel):
    product_id: str
    quantity: int
    type: MovementType = MovementType.ADJUSTMENT
    reason: str
    reference: str | None = None


class PromotionRestrictions(ApiModel):
    categories: list[str] = Field(default_factory=list)
    products: list[str] = Field(default_factory=list)
    customer_groups: list[str] = Field(default_factory=list)


class Promotion(Entity):
    code: str
    type: PromotionType = PromotionType.PERCENTAGE
    value: float = 0.0
    min_purchase: float | None = None
    max_discount: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    status: PromotionStatus = PromotionStatus.INACTIVE
    restrictions: PromotionRestrictions = Field(default_factory=PromotionRestrictions)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PromotionStats(ApiModel):
    total_usage: int = 0
    total_discount: float = 0.0
    average_order_value: float = 0.0
    conversion_rate: float = 0.0


class Campaign(Entity):
    name: str
    subject: str = ""
    segment: str | None = None
    status: CampaignStatus = CampaignStatus.DRAFT
    scheduled_at: datetime | None = None
    sent_at: datetime | None = None
    recipients: int = 0
    open_rate: float = 0.0
    click_rate: float = 0.0
    created_at: datetime | None = None


class Seo(ApiModel):
    title: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)


class Page(Entity):
    title: str
    slug: str
    status: PublishStatus = PublishStatus.DRAFT
    template: str = "default"
    content: Any = None
    seo: Seo = Field(default_factory=Seo)
    published_at: datetime | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TokenResponse(ApiModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    trace_id: str | None = None


class UserResponse(ApiModel):
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None


class SessionData(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    user: UserResponse | None = None
    env_name: str | None = None
