from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel

from storefront_sdk.models import ProductStatus
from storefront_sdk.query import DateRange, NumericRange, page_params, serialize_filters, sort_params


def test_blank_values_are_dropped_and_names_camelized() -> None:
    params = serialize_filters(
        {"search": "  ", "status": None, "category": "shoes", "payment_status": "paid", "tags": []}
    )

    assert params == {"category": "shoes", "paymentStatus": "paid"}


def test_scalar_encoding() -> None:
    params = serialize_filters(
        {"in_stock": True, "featured": False, "status": ProductStatus.ACTIVE, "min_quantity": 5.0}
    )

    assert params == {"inStock": "true", "featured": "false", "status": "active", "minQuantity": "5"}


def test_lists_become_repeated_parameters() -> None:
    class Color(str, Enum):
        RED = "red"

    params = serialize_filters({"tags": ["vip", "wholesale"], "colors": (Color.RED,)})

    assert params == {"tags": ["vip", "wholesale"], "colors": ["red"]}


def test_ranges_expand_to_bounds() -> None:
    params = serialize_filters(
        {
            "price": NumericRange(minimum=10, maximum=99.5),
            "stock": NumericRange(maximum=3),
            "created_at": DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31)),
            "empty": NumericRange(),
        }
    )

    assert params == {
        "minPrice": "10",
        "maxPrice": "99.5",
        "maxStock": "3",
        "createdAtFrom": "2024-01-01",
        "createdAtTo": "2024-01-31",
    }


def test_pydantic_filter_models_are_accepted() -> None:
    class OrderFilters(BaseModel):
        status: str | None = None
        customer_id: str | None = None

    assert serialize_filters(OrderFilters(customer_id="c-1")) == {"customerId": "c-1"}


def test_sort_and_page_params() -> None:
    assert sort_params(None, "desc") == {}
    assert sort_params("created_at", "desc") == {"sortBy": "createdAt", "sortOrder": "desc"}
    assert sort_params("name", "sideways") == {"sortBy": "name", "sortOrder": "asc"}
    assert page_params(0, 25) == {"page": "1", "pageSize": "25"}
    assert page_params(None, None) == {}
