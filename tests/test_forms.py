from __future__ import annotations

import pytest

from listing_helpers import ScriptedProducts, product, validation_error
from storefront_admin.forms import (
    CampaignForm,
    CustomerForm,
    FormEditor,
    FormStatus,
    PageForm,
    ProductForm,
    PromotionForm,
    StockAdjustmentForm,
    map_api_validation_errors,
    validate_form,
)
from storefront_admin.listing.controller import ListController


def test_product_sale_price_must_be_below_price() -> None:
    result = validate_form(ProductForm, {"name": "Mug", "price": 10, "salePrice": 12})

    assert not result.is_valid
    assert result.field_errors == {"sale_price": "Sale price must be lower than the regular price"}


def test_product_payload_uses_camel_case_and_trims() -> None:
    result = validate_form(ProductForm, {"name": "  Mug ", "price": 10, "sale_price": 8})

    assert result.is_valid
    assert result.model.to_payload() == {"name": "Mug", "price": 10.0, "salePrice": 8.0, "quantity": 0, "status": "draft"}


def test_missing_required_field_is_reported() -> None:
    result = validate_form(ProductForm, {"price": 5})

    assert result.first_invalid_field == "name"
    assert result.field_errors["name"] == "Field required"


def test_customer_email_is_normalized_and_checked() -> None:
    valid = validate_form(CustomerForm, {"firstName": "Ada", "lastName": "Lovelace", "email": " ADA@Example.com "})
    invalid = validate_form(CustomerForm, {"firstName": "Ada", "lastName": "Lovelace", "email": "nope"})

    assert valid.model.email == "ada@example.com"
    assert invalid.field_errors == {"email": "Invalid email; use name@domain.com"}


def test_promotion_rules() -> None:
    ok = validate_form(PromotionForm, {"code": " summer-10 ", "type": "percentage", "value": 10})
    too_big = validate_form(PromotionForm, {"code": "BIG", "type": "percentage", "value": 150})
    fixed = validate_form(PromotionForm, {"code": "BIG", "type": "fixed", "value": 150})
    backwards = validate_form(
        PromotionForm,
        {"code": "DATES", "value": 5, "startDate": "2024-05-02T00:00:00Z", "endDate": "2024-05-01T00:00:00Z"},
    )

    assert ok.model.code == "SUMMER-10"
    assert "value" in too_big.field_errors
    assert fixed.is_valid
    assert backwards.field_errors == {"end_date": "End date must be after the start date"}


def test_scheduled_campaign_needs_send_date() -> None:
    result = validate_form(CampaignForm, {"name": "Spring", "subject": "Hello", "status": "scheduled"})

    assert result.field_errors == {"scheduled_at": "Scheduled campaigns need a send date"}


def test_stock_adjustment_rejects_zero_quantity() -> None:
    result = validate_form(StockAdjustmentForm, {"productId": "p1", "quantity": 0, "reason": "count"})

    assert result.field_errors == {"quantity": "Quantity must not be zero"}


def test_page_slug_and_nested_seo_errors() -> None:
    result = validate_form(PageForm, {"title": "About", "slug": "About Us", "seo": {"title": "x" * 61}})

    assert set(result.field_errors) == {"slug", "seo.title"}


def test_map_api_validation_errors_shapes() -> None:
    assert map_api_validation_errors({"errors": {"sku": "SKU already exists"}}) == {"sku": "SKU already exists"}
    assert map_api_validation_errors({"fields": {"seo.metaTitle": ["too long", "other"]}}) == {"seo.meta_title": "too long"}
    assert map_api_validation_errors([{"loc": ["body", "salePrice"], "msg": "too high"}]) == {"sale_price": "too high"}
    assert map_api_validation_errors([{"field": "email", "message": "taken"}, "junk"]) == {"email": "taken"}
    assert map_api_validation_errors(None) == {}


def test_editor_tracks_dirty_fields_and_copies_nested_values() -> None:
    editor = FormEditor(PageForm, initial={"title": "About", "slug": "about", "seo": {"title": "About us"}})
    before = editor.values

    editor.set("seo.title", "About our shop")

    assert before["seo"]["title"] == "About us"
    assert editor.get("seo.title") == "About our shop"
    assert editor.is_dirty
    assert editor.dirty_fields == ["seo"]
    assert editor.status is FormStatus.DIRTY

    editor.reset()
    assert not editor.is_dirty
    assert editor.status is FormStatus.IDLE


def test_editor_reports_errors_per_tab() -> None:
    editor = FormEditor(
        PageForm,
        initial={"title": "About", "slug": "about"},
        tabs={"general": ["title", "slug", "status"], "seo": ["seo"]},
    )
    editor.set("seo.description", "x" * 200)

    editor.validate()

    assert editor.status is FormStatus.ERROR
    assert editor.tab_errors() == {"general": 0, "seo": 1}
    assert editor.first_invalid_tab() == "seo"


@pytest.mark.asyncio
async def test_invalid_form_never_calls_save() -> None:
    calls: list[ProductForm] = []

    async def save(model: ProductForm) -> None:
        calls.append(model)

    editor = FormEditor(ProductForm, initial={"name": "", "price": 5})

    assert await editor.submit(save) is None
    assert calls == []
    assert "name" in editor.field_errors


@pytest.mark.asyncio
async def test_server_validation_errors_map_to_fields() -> None:
    async def save(model: ProductForm) -> None:
        raise validation_error({"errors": {"sku": "SKU already exists"}})

    editor = FormEditor(ProductForm, initial={"name": "Mug", "price": 5, "sku": "MUG-1"})

    assert await editor.submit(save) is None
    assert editor.status is FormStatus.ERROR
    assert editor.field_errors == {"sku": "SKU already exists"}
    assert editor.submit_error.category == "validation"
    assert editor.submit_error.trace_id == "trace-422"


@pytest.mark.asyncio
async def test_submit_through_list_controller(tmp_path) -> None:
    service = ScriptedProducts([product("p1", "Mug", 10)])
    controller = ListController(service, entity="products")
    await controller.refresh()
    editor = FormEditor.for_entity(ProductForm, controller.items[0])
    editor.set("price", 14)

    result = await editor.submit(lambda model: controller.update("p1", model))

    assert result.ok
    assert controller.items[0].price == 14
    assert editor.status is FormStatus.SUCCESS
    assert not editor.is_dirty


@pytest.mark.asyncio
async def test_failed_mutation_result_maps_field_errors() -> None:
    service = ScriptedProducts([product("p1", "Mug", 10)])
    service.fail_on("update", validation_error([{"field": "price", "message": "Price locked"}]), "p1")
    controller = ListController(service, entity="products")
    await controller.refresh()
    editor = FormEditor.for_entity(ProductForm, controller.items[0])
    editor.set("price", 14)

    assert await editor.submit(lambda model: controller.update("p1", model)) is None
    assert editor.field_errors == {"price": "Price locked"}
    assert controller.items[0].price == 10
