from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class PaginationState:
    page: int = 1
    page_size: int = 20
    total: int | None = None
    has_next: bool | None = None

    @property
    def total_pages(self) -> int | None:
        if self.total is None:
            return None
        return max(1, math.ceil(self.total / self.page_size))

    @property
    def can_go_next(self) -> bool:
        if self.has_next is not None:
            return self.has_next
        pages = self.total_pages
        return pages is not None and self.page < pages

    @property
    def can_go_prev(self) -> bool:
        return self.page > 1


def next_page(state: PaginationState) -> PaginationState:
    if not state.can_go_next:
        return state
    return replace(state, page=state.page + 1)


def prev_page(state: PaginationState) -> PaginationState:
    return replace(state, page=max(1, state.page - 1))


def goto_page(state: PaginationState, page: int) -> PaginationState:
    target = max(1, page)
    pages = state.total_pages
    if pages is not None:
        target = min(target, pages)
    return replace(state, page=target)


def first_page(state: PaginationState) -> PaginationState:
    return replace(state, page=1)
