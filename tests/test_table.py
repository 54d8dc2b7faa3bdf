from __future__ import annotations

import pytest

from storefront_admin.listing.columns import EMPTY_VALUE, ColumnDescriptor
from storefront_admin.listing.sorting import SortDirection, SortState
from storefront_admin.listing.table import SKELETON_ROWS, TableRenderer, diff_rows, format_table

COLUMNS = [
    ColumnDescriptor("name", "Name", sortable=True),
    ColumnDescriptor("stock", "Stock", sortable=True),
    ColumnDescriptor("notes", "Notes", render=lambda row: (row.get("notes") or "").upper() or EMPTY_VALUE),
]

ROWS = [
    {"id": "p1", "name": "B", "stock": 10, "notes": "fragile"},
    {"id": "p2", "name": "A", "stock": 20, "notes": None},
]


def test_loading_renders_skeleton_without_rows_or_empty_message() -> None:
    view = TableRenderer(COLUMNS).render(ROWS, is_loading=True)

    assert view.is_loading
    assert view.rows == ()
    assert view.skeleton_rows == SKELETON_ROWS
    assert view.empty_message is None
    assert view.column_span == 3


def test_empty_message_only_when_not_loading() -> None:
    renderer = TableRenderer(COLUMNS, empty_message="No products found")

    assert renderer.render([]).empty_message == "No products found"
    assert renderer.render([], is_loading=True).empty_message is None


def test_cells_use_render_functions_and_placeholder() -> None:
    view = TableRenderer(COLUMNS).render(ROWS)

    assert view.row("p1").cells == ("B", "10", "FRAGILE")
    assert view.row("p2").cells == ("A", "20", EMPTY_VALUE)


def test_header_click_sorts_rows_locally() -> None:
    renderer = TableRenderer(COLUMNS)

    assert renderer.click_header("name") == SortState("name", SortDirection.ASC)
    assert renderer.render(ROWS).keys == ("p2", "p1")
    renderer.click_header("name")
    view = renderer.render(ROWS)

    assert view.keys == ("p1", "p2")
    assert view.headers[0].label == "Name ▼"


def test_non_sortable_header_click_is_ignored() -> None:
    renderer = TableRenderer(COLUMNS)

    assert renderer.click_header("notes") is None
    assert renderer.click_header("unknown") is None
    assert renderer.sort.state == SortState()


def test_server_sorting_delegates_and_keeps_given_order() -> None:
    requests: list[tuple[str, SortDirection]] = []
    renderer = TableRenderer(COLUMNS, on_sort=lambda key, direction: requests.append((key, direction)))

    renderer.click_header("stock")
    renderer.click_header("stock")

    assert requests == [("stock", SortDirection.ASC), ("stock", SortDirection.DESC)]
    assert renderer.render(ROWS).keys == ("p1", "p2")


def test_row_click_passes_full_record() -> None:
    clicked: list[dict] = []
    renderer = TableRenderer(COLUMNS, on_row_click=clicked.append)
    view = renderer.render(ROWS)

    assert view.clickable_rows
    assert renderer.click_row("p2") is ROWS[1]
    assert renderer.click_row("missing") is None
    assert clicked == [ROWS[1]]


def test_row_click_without_handler_does_nothing() -> None:
    renderer = TableRenderer(COLUMNS)
    renderer.render(ROWS)

    assert renderer.click_row("p1") is None


def test_duplicate_row_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate row key"):
        TableRenderer(COLUMNS).render([ROWS[0], dict(ROWS[0])])


def test_duplicate_column_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate column key"):
        TableRenderer([COLUMNS[0], COLUMNS[0]])


def test_custom_key_extractor() -> None:
    renderer = TableRenderer(COLUMNS, key_extractor=lambda row: f"sku-{row['name']}")

    assert renderer.render(ROWS).keys == ("sku-B", "sku-A")


def test_row_keys_stay_stable_across_renders() -> None:
    renderer = TableRenderer(COLUMNS)
    first = renderer.render(ROWS)
    second = renderer.render([ROWS[1], {"id": "p3", "name": "C", "stock": 1}])

    diff = diff_rows(first, second)

    assert diff.kept == ("p2",)
    assert diff.added == ("p3",)
    assert diff.removed == ("p1",)


def test_set_columns_drops_sort_on_removed_column() -> None:
    renderer = TableRenderer(COLUMNS)
    renderer.click_header("stock")

    renderer.set_columns(COLUMNS[:1])

    assert renderer.sort.state == SortState()


def test_format_table_outputs() -> None:
    renderer = TableRenderer(COLUMNS, empty_message="Nothing here")

    text = format_table(renderer.render(ROWS), title="Products")
    lines = text.splitlines()

    assert lines[0] == "Products"
    assert lines[1].split(" | ")[0].strip() == "Name"
    assert "FRAGILE" in lines[3]
    assert format_table(renderer.render([])).splitlines()[-1] == "Nothing here"
    assert format_table(renderer.render([], is_loading=True)).count("...") == SKELETON_ROWS


def test_error_view_replaces_rows_and_empty_message() -> None:
    renderer = TableRenderer(COLUMNS, empty_message="Nothing here")

    view = renderer.render(ROWS, error="Server unavailable", can_retry=True)
    lines = format_table(view).splitlines()

    assert view.rows == ()
    assert view.empty_message is None
    assert lines[-2:] == ["Error: Server unavailable", "Retry available"]
    assert "Nothing here" not in lines
    assert format_table(renderer.render([], error="Denied")).splitlines()[-1] == "Error: Denied"


def test_format_table_pads_to_column_width() -> None:
    renderer = TableRenderer([ColumnDescriptor("name", "Name", width=8), ColumnDescriptor("stock", "Stock")])

    lines = format_table(renderer.render(ROWS)).splitlines()

    assert lines[0] == "Name     | Stock"
    assert lines[1] == "-" * 8 + "-+-" + "-" * 5
    assert lines[2] == "B        | 10   "
