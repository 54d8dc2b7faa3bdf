from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Sequence, TypeVar

from .columns import ColumnDescriptor, column_keys, find_column, validate_columns
from .sorting import SortController, SortDirection, SortState, sort_items

T = TypeVar("T")

KeyExtractor = Callable[[T], str]
RowClickHandler = Callable[[T], None]
SortHandler = Callable[[str, SortDirection], None]

DEFAULT_EMPTY_MESSAGE = "No data available"
SKELETON_ROWS = 5


def id_key(item: Any) -> str:
    return str(getattr(item, "id", None) or item["id"])


@dataclass(frozen=True)
class HeaderCell:
    key: str
    header: str
    sortable: bool
    indicator: str = ""
    width: int | None = None

    @property
    def label(self) -> str:
        return f"{self.header} {self.indicator}".rstrip()


@dataclass(frozen=True)
class TableRow(Generic[T]):
    key: str
    cells: tuple[str, ...]
    item: T


@dataclass(frozen=True)
class TableView(Generic[T]):
    headers: tuple[HeaderCell, ...]
    rows: tuple[TableRow[T], ...] = ()
    is_loading: bool = False
    skeleton_rows: int = 0
    empty_message: str | None = None
    clickable_rows: bool = False
    error: str | None = None
    can_retry: bool = False

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(row.key for row in self.rows)

    @property
    def column_span(self) -> int:
        return len(self.headers)

    def row(self, key: str) -> TableRow[T] | None:
        return next((row for row in self.rows if row.key == key), None)


@dataclass(frozen=True)
class RowDiff:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    kept: tuple[str, ...] = ()


class TableRenderer(Generic[T]):
    """Builds a ``TableView`` from column descriptors and rows.

    With ``on_sort`` the server sorts and rows are shown in the order given;
    without it rows are sorted here by the current ``SortController`` state.
    """

    def __init__(
        self,
        columns: Sequence[ColumnDescriptor[T]],
        key_extractor: KeyExtractor[T] = id_key,
        *,
        sort: SortController | None = None,
        on_row_click: RowClickHandler[T] | None = None,
        on_sort: SortHandler | None = None,
        empty_message: str = DEFAULT_EMPTY_MESSAGE,
    ) -> None:
        self.columns = validate_columns(columns)
        self.key_extractor = key_extractor
        self.sort = sort or SortController()
        self.on_row_click = on_row_click
        self.on_sort = on_sort
        self.empty_message = empty_message
        self._last_view: TableView[T] | None = None

    @property
    def client_sorting(self) -> bool:
        return self.on_sort is None

    @property
    def last_view(self) -> TableView[T] | None:
        return self._last_view

    def set_columns(self, columns: Sequence[ColumnDescriptor[T]]) -> None:
        self.columns = validate_columns(columns)
        self.sort.reset_if_missing(column_keys(self.columns))

    def headers(self) -> tuple[HeaderCell, ...]:
        return tuple(
            HeaderCell(
                key=column.key,
                header=column.header,
                sortable=column.sortable,
                indicator=self.sort.indicator(column.key) if column.sortable else "",
                width=column.width,
            )
            for column in self.columns
        )

    def render(
        self,
        data: Sequence[T],
        *,
        is_loading: bool = False,
        error: str | None = None,
        can_retry: bool = False,
    ) -> TableView[T]:
        headers = self.headers()
        if is_loading:
            view: TableView[T] = TableView(headers=headers, is_loading=True, skeleton_rows=SKELETON_ROWS)
        elif error is not None:
            view = TableView(headers=headers, error=error, can_retry=can_retry)
        elif not data:
            view = TableView(headers=headers, empty_message=self.empty_message)
        else:
            items = sort_items(data, self.columns, self.sort.state) if self.client_sorting else list(data)
            view = TableView(
                headers=headers,
                rows=self._rows(items),
                clickable_rows=self.on_row_click is not None,
            )
        self._last_view = view
        return view

    def _rows(self, items: Sequence[T]) -> tuple[TableRow[T], ...]:
        rows: list[TableRow[T]] = []
        seen: set[str] = set()
        for item in items:
            key = self.key_extractor(item)
            if key in seen:
                raise ValueError(f"Duplicate row key: {key}")
            seen.add(key)
            rows.append(TableRow(key=key, cells=tuple(column.cell(item) for column in self.columns), item=item))
        return tuple(rows)

    def click_header(self, key: str) -> SortState | None:
        column = find_column(self.columns, key)
        if column is None or not column.sortable:
            return None
        state = self.sort.toggle_sort(key)
        if self.on_sort is not None:
            self.on_sort(key, state.direction)
        return state

    def click_row(self, key: str) -> T | None:
        if self.on_row_click is None or self._last_view is None:
            return None
        row = self._last_view.row(key)
        if row is None:
            return None
        self.on_row_click(row.item)
        return row.item


def diff_rows(previous: TableView[Any] | None, current: TableView[Any]) -> RowDiff:
    before = previous.keys if previous is not None else ()
    after = current.keys
    before_set = set(before)
    after_set = set(after)
    return RowDiff(
        added=tuple(key for key in after if key not in before_set),
        removed=tuple(key for key in before if key not in after_set),
        kept=tuple(key for key in after if key in before_set),
    )


def format_table(view: TableView[Any], *, title: str | None = None) -> str:
    lines: list[str] = [title] if title else []
    labels = [header.label for header in view.headers]
    if view.is_loading:
        lines.append(" | ".join(labels))
        lines.extend("..." for _ in range(view.skeleton_rows))
        return "\n".join(lines)
    if view.error is not None:
        lines.append(" | ".join(labels))
        lines.append(f"Error: {view.error}")
        if view.can_retry:
            lines.append("Retry available")
        return "\n".join(lines)
    if not view.rows:
        lines.append(" | ".join(labels))
        lines.append(view.empty_message or DEFAULT_EMPTY_MESSAGE)
        return "\n".join(lines)

    widths = []
    for index, header in enumerate(view.headers):
        max_cell = max(len(row.cells[index]) for row in view.rows)
        widths.append(max(header.width or 0, len(labels[index]), max_cell))

    lines.append(" | ".join(label.ljust(widths[idx]) for idx, label in enumerate(labels)))
    lines.append("-+-".join("-" * width for width in widths))
    for row in view.rows:
        lines.append(" | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row.cells)))
    return "\n".join(lines)
