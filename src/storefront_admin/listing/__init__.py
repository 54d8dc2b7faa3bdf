from .columns import ColumnDescriptor
from .controller import ListController, MutationResult, MutationStatus
from .filters import FilterStore
from .pagination import PaginationState
from .sorting import SortController, SortDirection, SortState, sort_items
from .table import TableRenderer, TableView, diff_rows, format_table
from .view_state import DisplayState, DisplayStatus, ListStatus

__all__ = [
    "ColumnDescriptor",
    "DisplayState",
    "DisplayStatus",
    "FilterStore",
    "ListController",
    "ListStatus",
    "MutationResult",
    "MutationStatus",
    "PaginationState",
    "SortController",
    "SortDirection",
    "SortState",
    "TableRenderer",
    "TableView",
    "diff_rows",
    "format_table",
    "sort_items",
]
