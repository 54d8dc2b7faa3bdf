"""One list-page definition per entity, and the factory that wires it up."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar

from storefront_sdk.clients.resource import ResourceService
from storefront_sdk.models import Entity, Product, Promotion, PromotionType

from .config import AdminConfig
from .errors import ErrorPresenter
from .export import ExportWriter
from .listing.columns import ColumnDescriptor, format_value
from .listing.controller import ConfirmHandler, ListController
from .listing.filters import FilterStore
from .listing.sorting import SortController, SortDirection, SortState
from .listing.table import TableRenderer, TableView
from .listing.view_state import DisplayStatus
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


def currency(value: float | None) -> str:
    if value is None:
        return format_value(None)
    return f"${value:,.2f}"


def _product_price(product: Product) -> str:
    if product.sale_price is not None:
        return f"{currency(product.sale_price)} (was {currency(product.price)})"
    return currency(product.price)


def _promotion_value(promotion: Promotion) -> str:
    if promotion.type is PromotionType.PERCENTAGE:
        return f"{promotion.value:g}%"
    return currency(promotion.value)


def _promotion_usage(promotion: Promotion) -> str:
    limit = promotion.usage_limit if promotion.usage_limit is not None else "∞"
    return f"{promotion.usage_count}/{limit}"


@dataclass(frozen=True)
class ListPageDefinition:
    entity: str
    title: str
    columns: tuple[ColumnDescriptor[Any], ...]
    default_filters: Mapping[str, Any] = field(default_factory=dict)
    text_fields: tuple[str, ...] = ("search",)
    empty_message: str = "No data available"
    server_sort: bool = True


PAGE_DEFINITIONS: dict[str, ListPageDefinition] = {
    "products": ListPageDefinition(
        entity="products",
        title="Products",
        columns=(
            ColumnDescriptor("name", "Name", sortable=True),
            ColumnDescriptor("sku", "SKU"),
            ColumnDescriptor("category", "Category", sortable=True),
            ColumnDescriptor(
                "price",
                "Price",
                sortable=True,
                render=_product_price,
                sort_value=lambda product: product.sale_price if product.sale_price is not None else product.price,
            ),
            ColumnDescriptor("quantity", "Stock", sortable=True),
            ColumnDescriptor("status", "Status", sortable=True),
        ),
        default_filters={"search": "", "category": None, "status": None},
        empty_message="No products found",
    ),
    "orders": ListPageDefinition(
        entity="orders",
        title="Orders",
        columns=(
            ColumnDescriptor("order_number", "Order", sortable=True),
            ColumnDescriptor("customer_name", "Customer", sortable=True),
            ColumnDescriptor("total", "Total", sortable=True, render=lambda order: currency(order.total)),
            ColumnDescriptor("status", "Status", sortable=True),
            ColumnDescriptor("payment_status", "Payment"),
            ColumnDescriptor("created_at", "Placed", sortable=True),
        ),
        default_filters={"search": "", "status": None, "payment_status": None, "created_at": None},
        empty_message="No orders found",
    ),
    "customers": ListPageDefinition(
        entity="customers",
        title="Customers",
        columns=(
            ColumnDescriptor("full_name", "Name", sortable=True),
            ColumnDescriptor("email", "Email", sortable=True),
            ColumnDescriptor("segment", "Segment"),
            ColumnDescriptor("status", "Status"),
            ColumnDescriptor("total_orders", "Orders", sortable=True),
            ColumnDescriptor(
                "total_spent",
                "Total spent",
                sortable=True,
                render=lambda customer: currency(customer.total_spent),
            ),
        ),
        default_filters={"search": "", "status": None, "segment": None},
        empty_message="No customers found",
    ),
    "inventory": ListPageDefinition(
        entity="inventory",
        title="Stock movements",
        columns=(
            ColumnDescriptor("product_name", "Product", sortable=True),
            ColumnDescriptor("type", "Type"),
            ColumnDescriptor("quantity", "Quantity", sortable=True),
            ColumnDescriptor("reason", "Reason"),
            ColumnDescriptor("created_at", "Date", sortable=True),
        ),
        default_filters={"search": "", "type": None},
        empty_message="No stock movements recorded",
    ),
    "promotions": ListPageDefinition(
        entity="promotions",
        title="Promotions",
        columns=(
            ColumnDescriptor("code", "Code", sortable=True),
            ColumnDescriptor("type", "Type"),
            ColumnDescriptor("value", "Discount", sortable=True, render=_promotion_value),
            ColumnDescriptor("usage", "Usage", render=_promotion_usage),
            ColumnDescriptor("status", "Status", sortable=True),
            ColumnDescriptor("end_date", "Ends", sortable=True),
        ),
        default_filters={"search": "", "status": None, "type": None},
        empty_message="No promotions yet",
    ),
    "campaigns": ListPageDefinition(
        entity="campaigns",
        title="Email campaigns",
        columns=(
            ColumnDescriptor("name", "Name", sortable=True),
            ColumnDescriptor("subject", "Subject"),
            ColumnDescriptor("status", "Status", sortable=True),
            ColumnDescriptor("scheduled_at", "Scheduled", sortable=True),
            ColumnDescriptor("recipients", "Recipients", sortable=True),
            ColumnDescriptor("open_rate", "Open rate", render=lambda campaign: f"{campaign.open_rate:.1f}%"),
        ),
        default_filters={"search": "", "status": None},
        empty_message="No campaigns yet",
    ),
    "pages": ListPageDefinition(
        entity="pages",
        title="Pages",
        columns=(
            ColumnDescriptor("title", "Title", sortable=True),
            ColumnDescriptor("slug", "Slug"),
            ColumnDescriptor("status", "Status", sortable=True),
            ColumnDescriptor("template", "Template"),
            ColumnDescriptor("updated_at", "Updated", sortable=True),
        ),
        default_filters={"search": "", "status": None},
        empty_message="No pages yet",
    ),
}

ENTITY_NAMES = tuple(PAGE_DEFINITIONS)


def get_definition(entity: str) -> ListPageDefinition:
    try:
        return PAGE_DEFINITIONS[entity]
    except KeyError:
        raise ValueError(f"Unknown entity: {entity}. Expected one of {', '.join(ENTITY_NAMES)}") from None


@dataclass
class AdminListPage(Generic[T]):
    definition: ListPageDefinition
    controller: ListController[T]
    table: TableRenderer[T]

    @property
    def filters(self) -> FilterStore:
        return self.controller.filters

    @property
    def sort(self) -> SortController:
        return self.controller.sort

    async def open(self) -> bool:
        return await self.controller.refresh()

    async def retry(self) -> bool:
        return await self.controller.retry()

    def view(self) -> TableView[T]:
        display = self.controller.display()
        if display.status is DisplayStatus.ERROR:
            return self.table.render((), error=display.message, can_retry=display.can_retry)
        return self.table.render(self.controller.items, is_loading=display.status is DisplayStatus.LOADING)

    def close(self) -> None:
        self.controller.close()
        self.filters.close()


def build_list_page(
    entity: str,
    service: ResourceService[T],
    *,
    config: AdminConfig | None = None,
    notifications: NotificationCenter | None = None,
    confirm: ConfirmHandler | None = None,
    on_row_click: Callable[[T], None] | None = None,
    columns: Sequence[ColumnDescriptor[T]] | None = None,
    server_sort: bool | None = None,
    initial_sort: SortState | None = None,
) -> AdminListPage[T]:
    definition = get_definition(entity)
    config = config or AdminConfig()
    use_server_sort = definition.server_sort if server_sort is None else server_sort
    filters = FilterStore(
        definition.default_filters,
        text_fields=definition.text_fields,
        debounce_seconds=config.search_debounce_seconds,
    )
    sort = SortController(initial_sort)
    controller: ListController[T] = ListController(
        service,
        entity=entity,
        filters=filters,
        sort=sort,
        page_size=config.page_size,
        server_sort=use_server_sort,
        confirm=confirm,
        notifications=notifications,
        presenter=ErrorPresenter(),
        exporter=ExportWriter(config.export_dir),
    )

    def _server_sort(key: str, direction: SortDirection) -> None:
        logger.debug("server_sort_requested", extra={"entity": entity, "key": key, "direction": direction.value})

    table: TableRenderer[T] = TableRenderer(
        columns or definition.columns,
        sort=sort,
        on_row_click=on_row_click,
        on_sort=_server_sort if use_server_sort else None,
        empty_message=definition.empty_message,
    )
    return AdminListPage(definition=definition, controller=controller, table=table)
