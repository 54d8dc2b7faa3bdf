from __future__ import annotations

import asyncio

import pytest

from storefront_admin.listing.debounce import Debouncer
from storefront_admin.listing.filters import FilterStore

DEFAULTS = {"search": "", "category": None, "status": None}


def test_set_filter_changes_only_named_field_and_keeps_old_mapping() -> None:
    store = FilterStore(DEFAULTS)
    before = store.state

    after = store.set_filter("status", "active")

    assert dict(after) == {"search": "", "category": None, "status": "active"}
    assert dict(before) == DEFAULTS
    assert after is not before
    with pytest.raises(TypeError):
        after["status"] = "draft"  # type: ignore[index]


def test_non_text_filters_are_announced_immediately() -> None:
    store = FilterStore(DEFAULTS)
    seen: list[dict] = []
    store.subscribe(lambda state: seen.append(dict(state)))

    store.set_filter("category", "kitchen")
    store.set_filter("category", "kitchen")

    assert seen == [{"search": "", "category": "kitchen", "status": None}]


def test_active_drops_blank_values() -> None:
    store = FilterStore(DEFAULTS)
    store.set_filters({"search": "  ", "status": "active", "tags": []})

    assert store.active() == {"status": "active"}


def test_debounce_is_clamped_to_minimum() -> None:
    assert FilterStore(debounce_seconds=0.05).debounce_seconds == 0.25
    assert FilterStore(debounce_seconds=0.5).debounce_seconds == 0.5


@pytest.mark.asyncio
async def test_search_is_announced_once_after_quiet_period() -> None:
    store = FilterStore(DEFAULTS, debounce_seconds=0.25)
    seen: list[str] = []
    store.subscribe(lambda state: seen.append(state["search"]))

    for text in ("m", "mu", "mug"):
        store.set_filter("search", text)
        await asyncio.sleep(0.05)

    assert seen == []
    assert store.pending
    await asyncio.sleep(0.35)

    assert seen == ["mug"]
    assert not store.pending


@pytest.mark.asyncio
async def test_immediate_change_supersedes_pending_search() -> None:
    store = FilterStore(DEFAULTS, debounce_seconds=0.25)
    seen: list[dict] = []
    store.subscribe(lambda state: seen.append(dict(state)))

    store.set_filter("search", "mug")
    store.set_filter("status", "active")
    await asyncio.sleep(0.35)

    assert seen == [{"search": "mug", "category": None, "status": "active"}]


@pytest.mark.asyncio
async def test_reset_restores_defaults_and_cancels_pending() -> None:
    store = FilterStore(DEFAULTS, debounce_seconds=0.25)
    seen: list[dict] = []
    store.subscribe(lambda state: seen.append(dict(state)))
    store.set_filter("search", "mug")

    store.reset()
    await asyncio.sleep(0.3)

    assert store.is_default
    assert seen == [DEFAULTS]


@pytest.mark.asyncio
async def test_flush_announces_pending_search_now() -> None:
    store = FilterStore(DEFAULTS)
    seen: list[str] = []
    store.subscribe(lambda state: seen.append(state["search"]))
    store.set_filter("search", "apron")

    assert store.flush() is True
    assert store.flush() is False
    assert seen == ["apron"]


@pytest.mark.asyncio
async def test_close_drops_pending_announcement() -> None:
    store = FilterStore(DEFAULTS, debounce_seconds=0.25)
    seen: list[str] = []
    store.subscribe(lambda state: seen.append(state["search"]))
    store.set_filter("search", "mug")

    store.close()
    await asyncio.sleep(0.3)

    assert seen == []


def test_debouncer_without_loop_fires_immediately() -> None:
    calls: list[int] = []
    debouncer = Debouncer(0.3, lambda: calls.append(1))

    debouncer.call()

    assert calls == [1]
    assert not debouncer.pending


def test_reset_announces_even_when_already_default() -> None:
    store = FilterStore(DEFAULTS)
    seen: list[dict] = []
    store.subscribe(lambda state: seen.append(dict(state)))

    store.reset()

    assert seen == [DEFAULTS]
