from __future__ import annotations

import json

import httpx
import pytest

from storefront_admin.export import ExportWriter
from storefront_admin.listing.controller import ListController, MutationStatus
from storefront_admin.notifications import NotificationCenter
from storefront_sdk.clients import CustomersClient, InventoryClient, OrdersClient, ProductsClient, PromotionsClient
from storefront_sdk.http_client import HttpClient
from storefront_sdk.models import OrderStatus, PaymentStatus, StockAdjustment
from storefront_sdk.query import NumericRange
from storefront_sdk.tracing import TraceContext


class Recorder:
    def __init__(self, responses: dict[tuple[str, str], httpx.Response]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses[(request.method, request.url.path)]


def _http(config, recorder: Recorder) -> HttpClient:
    return HttpClient(config, trace=TraceContext(), client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)))


@pytest.mark.asyncio
async def test_list_serializes_filters_sort_and_pagination(http_config) -> None:
    recorder = Recorder(
        {
            ("GET", "/api/products"): httpx.Response(
                200,
                json={"items": [{"id": "p1", "name": "Mug", "price": 12}], "total": 21, "page": 1, "pageSize": 20},
            )
        }
    )
    client = ProductsClient(http=_http(http_config, recorder), access_token="token-1")

    page = await client.list(
        {"search": "mug", "status": None, "tags": ["a", "b"], "price": NumericRange(5, 50)},
        page=1,
        page_size=20,
        sort_by="created_at",
        sort_order="desc",
    )

    request = recorder.requests[0]
    assert request.headers["Authorization"] == "Bearer token-1"
    assert request.url.params["search"] == "mug"
    assert "status" not in request.url.params
    assert request.url.params.get_list("tags") == ["a", "b"]
    assert request.url.params["minPrice"] == "5"
    assert request.url.params["maxPrice"] == "50"
    assert request.url.params["sortBy"] == "createdAt"
    assert request.url.params["sortOrder"] == "desc"
    assert request.url.params["pageSize"] == "20"
    assert page.total == 21
    assert page.has_next is True
    assert page.items[0].name == "Mug"


@pytest.mark.asyncio
async def test_create_sends_camel_case_body_and_idempotency_key(http_config) -> None:
    recorder = Recorder(
        {("POST", "/api/products"): httpx.Response(201, json={"id": "p2", "name": "Tea", "price": 4, "salePrice": 3})}
    )
    client = ProductsClient(http=_http(http_config, recorder), token_provider=lambda: "live-token")

    created = await client.create({"name": "Tea", "price": 4, "salePrice": 3}, idempotency_key="idem-1")

    request = recorder.requests[0]
    assert request.headers["Idempotency-Key"] == "idem-1"
    assert request.headers["Authorization"] == "Bearer live-token"
    assert json.loads(request.content) == {"name": "Tea", "price": 4, "salePrice": 3}
    assert created.id == "p2"
    assert created.sale_price == 3


@pytest.mark.asyncio
async def test_update_remove_and_export_paths(http_config) -> None:
    recorder = Recorder(
        {
            ("PATCH", "/api/products/p1"): httpx.Response(200, json={"data": {"id": "p1", "name": "Mug XL", "price": 15}}),
            ("DELETE", "/api/products/p1"): httpx.Response(204),
            ("GET", "/api/products/export"): httpx.Response(200, content=b"id\np1\n", headers={"Content-Type": "text/csv"}),
        }
    )
    client = ProductsClient(http=_http(http_config, recorder))

    updated = await client.update("p1", {"name": "Mug XL"})
    await client.remove("p1")
    exported = await client.export({"status": "active"})

    assert updated.name == "Mug XL"
    assert [request.method for request in recorder.requests] == ["PATCH", "DELETE", "GET"]
    export_params = recorder.requests[2].url.params
    assert dict(export_params) == {"status": "active", "format": "csv"}
    assert exported.content == b"id\np1\n"
    assert exported.file_name is None


@pytest.mark.asyncio
async def test_export_rejects_unknown_format(http_config) -> None:
    client = ProductsClient(http=_http(http_config, Recorder({})))

    with pytest.raises(ValueError, match="pdf"):
        await client.export(export_format="pdf")


@pytest.mark.asyncio
async def test_order_status_endpoints(http_config) -> None:
    order = {"id": "o1", "status": "shipped", "paymentStatus": "refunded"}
    recorder = Recorder(
        {
            ("PATCH", "/api/orders/o1/status"): httpx.Response(200, json=order),
            ("PATCH", "/api/orders/o1/payment"): httpx.Response(200, json=order),
        }
    )
    client = OrdersClient(http=_http(http_config, recorder))

    shipped = await client.update_status("o1", "shipped")
    refunded = await client.update_payment_status("o1", PaymentStatus.REFUNDED)

    assert json.loads(recorder.requests[0].content) == {"status": "shipped"}
    assert json.loads(recorder.requests[1].content) == {"status": "refunded"}
    assert shipped.status is OrderStatus.SHIPPED
    assert refunded.payment_status is PaymentStatus.REFUNDED


@pytest.mark.asyncio
async def test_customer_notes_tags_and_stats(http_config) -> None:
    customer = {"id": "c1", "email": "a@b.co", "tags": ["vip"]}
    recorder = Recorder(
        {
            ("GET", "/api/customers/stats"): httpx.Response(200, json={"total": 10, "vip": 2, "totalRevenue": 99.5}),
            ("POST", "/api/customers/c1/notes"): httpx.Response(201, json={"id": "n1", "content": "Called"}),
            ("DELETE", "/api/customers/c1/notes/n1"): httpx.Response(204),
            ("POST", "/api/customers/c1/tags"): httpx.Response(200, json=customer),
            ("DELETE", "/api/customers/c1/tags/big spender"): httpx.Response(200, json={**customer, "tags": []}),
        }
    )
    client = CustomersClient(http=_http(http_config, recorder))

    stats = await client.stats()
    note = await client.add_note("c1", "  Called  ")
    await client.delete_note("c1", "n1")
    tagged = await client.add_tag("c1", "vip")
    untagged = await client.remove_tag("c1", "big spender")

    assert stats.total == 10 and stats.total_revenue == 99.5
    assert note.content == "Called"
    assert json.loads(recorder.requests[1].content) == {"content": "Called"}
    assert tagged.tags == ["vip"]
    assert untagged.tags == []
    assert recorder.requests[4].url.raw_path == b"/api/customers/c1/tags/big%20spender"


@pytest.mark.asyncio
async def test_customer_note_must_not_be_blank(http_config) -> None:
    client = CustomersClient(http=_http(http_config, Recorder({})))

    with pytest.raises(ValueError):
        await client.add_note("c1", "   ")


@pytest.mark.asyncio
async def test_inventory_alerts_and_adjustments(http_config) -> None:
    recorder = Recorder(
        {
            ("GET", "/api/inventory/alerts"): httpx.Response(
                200, json=[{"productId": "p1", "currentStock": 2, "lowStockThreshold": 5}]
            ),
            ("POST", "/api/inventory/adjustments"): httpx.Response(
                201, json={"id": "m1", "productId": "p1", "type": "in", "quantity": 10}
            ),
        }
    )
    client = InventoryClient(http=_http(http_config, recorder))

    alerts = await client.alerts()
    movement = await client.adjust_stock(StockAdjustment(product_id="p1", quantity=10, type="in", reason="Restock"))

    assert alerts[0].current_stock == 2
    assert json.loads(recorder.requests[1].content) == {
        "productId": "p1",
        "quantity": 10,
        "type": "in",
        "reason": "Restock",
    }
    assert movement.quantity == 10


@pytest.mark.asyncio
async def test_promotion_code_and_stats(http_config) -> None:
    recorder = Recorder(
        {
            ("POST", "/api/promotions/generate-code"): httpx.Response(200, json={"code": "SPRING24"}),
            ("GET", "/api/promotions/pr1/stats"): httpx.Response(200, json={"totalUsage": 7, "conversionRate": 0.12}),
        }
    )
    client = PromotionsClient(http=_http(http_config, recorder))

    code = await client.generate_code()
    stats = await client.stats("pr1")

    assert code == "SPRING24"
    assert stats.total_usage == 7
    assert stats.conversion_rate == pytest.approx(0.12)


@pytest.mark.asyncio
async def test_snake_case_changes_are_sent_camel_case(http_config, tmp_path) -> None:
    sent: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": "p1", "name": "Mug", "price": 10}])
        body = json.loads(request.content)
        sent.append(body)
        return httpx.Response(200, json={"data": {"id": "p1", "name": "Mug", "price": 10, **body}})

    http = HttpClient(http_config, trace=TraceContext(), client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    controller = ListController(
        ProductsClient(http=http),
        entity="products",
        notifications=NotificationCenter(),
        exporter=ExportWriter(tmp_path / "exports"),
    )
    await controller.refresh()

    result = await controller.update("p1", {"sale_price": 3, "meta": {"seo_title": "Mug"}})

    assert result.status is MutationStatus.SUCCESS
    assert sent == [{"salePrice": 3, "meta": {"seoTitle": "Mug"}}]
    assert controller.items[0].sale_price == 3
