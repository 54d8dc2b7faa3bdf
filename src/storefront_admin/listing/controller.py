from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, Mapping, Sequence, TypeVar

from pydantic import BaseModel

from storefront_sdk.clients.resource import ResourceService
from storefront_sdk.exceptions import ApiError

from ..errors import ErrorPresenter, PresentedError
from ..export import ExportResult, ExportWriter
from ..logger import get_action_logger, log_action
from ..notifications import NotificationCenter
from .filters import FilterStore
from .pagination import PaginationState, first_page, goto_page, next_page, prev_page
from .sorting import SortController, SortState
from .table import id_key
from .view_state import DisplayState, ListStatus, resolve_display_state

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ConfirmHandler = Callable[[str, Sequence[Any]], bool | Awaitable[bool]]
StateListener = Callable[[], None]


class MutationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    status: MutationStatus
    action: str
    ids: tuple[str, ...] = ()
    item: T | None = None
    failed_ids: tuple[str, ...] = ()
    error: PresentedError | None = None
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.SUCCESS


def _changes_of(changes: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(changes, BaseModel):
        return changes.model_dump(exclude_unset=True)
    return dict(changes)


class ListController(Generic[T]):
    """Owns the rows of one list page.

    Fetches whenever filters, server-side sort or pagination change, applies
    mutations optimistically and rolls back only the rows a failed mutation
    touched. Failures never escape: they become ``ERROR`` state or a failed
    ``MutationResult`` plus a notification.
    """

    def __init__(
        self,
        service: ResourceService[T],
        *,
        entity: str,
        filters: FilterStore | None = None,
        sort: SortController | None = None,
        page_size: int = 20,
        server_sort: bool = True,
        confirm: ConfirmHandler | None = None,
        notifications: NotificationCenter | None = None,
        presenter: ErrorPresenter | None = None,
        exporter: ExportWriter | None = None,
        key_of: Callable[[T], str] = id_key,
    ) -> None:
        self.service = service
        self.entity = entity
        self.filters = filters or FilterStore()
        self.sort = sort or SortController()
        self.server_sort = server_sort
        self.confirm = confirm
        self.notifications = notifications or NotificationCenter()
        self.presenter = presenter or ErrorPresenter()
        self.exporter = exporter or ExportWriter(Path("exports"))
        self.key_of = key_of

        self._status = ListStatus.IDLE
        self._items: tuple[T, ...] = ()
        self._error: PresentedError | None = None
        self._pagination = PaginationState(page_size=page_size)
        self._generation = 0
        self._list_version = 0
        self._inflight: asyncio.Task[bool] | None = None
        self._busy: set[str] = set()
        self._closed = False
        self._listeners: list[StateListener] = []
        self._action_logger = get_action_logger()

        self._unsubscribe = [self.filters.subscribe(self._on_filters_changed)]
        if server_sort:
            self._unsubscribe.append(self.sort.subscribe(self._on_sort_changed))

    @property
    def status(self) -> ListStatus:
        return self._status

    @property
    def items(self) -> tuple[T, ...]:
        return self._items

    @property
    def error(self) -> PresentedError | None:
        return self._error

    @property
    def pagination(self) -> PaginationState:
        return self._pagination

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._status is ListStatus.LOADING

    @property
    def closed(self) -> bool:
        return self._closed

    def busy_ids(self) -> frozenset[str]:
        return frozenset(self._busy)

    def display(self, empty_message: str = "No records") -> DisplayState:
        return resolve_display_state(
            status=self._status,
            has_rows=bool(self._items),
            error=self._error,
            empty_message=empty_message,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _set_items(self, items: Sequence[T]) -> None:
        self._items = tuple(items)
        self._notify()

    def _find(self, item_id: str) -> T | None:
        return next((item for item in self._items if self.key_of(item) == item_id), None)

    # Fetching

    def _on_filters_changed(self, _filters: Mapping[str, Any]) -> None:
        self._pagination = first_page(self._pagination)
        self.schedule_refresh()

    def _on_sort_changed(self, _state: SortState) -> None:
        self._pagination = first_page(self._pagination)
        self.schedule_refresh()

    def schedule_refresh(self) -> asyncio.Task[bool] | None:
        if self._closed:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("refresh_skipped_no_loop", extra={"entity": self.entity})
            return None
        if self._inflight is not None and not self._inflight.done():
            # Invalidate before cancelling so the superseded fetch exits quietly.
            self._generation += 1
            self._inflight.cancel()
        task = loop.create_task(self.refresh())
        self._inflight = task
        return task

    async def refresh(self) -> bool:
        """Fetch the current page; returns False when the response was discarded or failed."""
        if self._closed:
            return False
        self._generation += 1
        generation = self._generation
        current = asyncio.current_task()
        previous = self._inflight
        if previous is not None and previous is not current and not previous.done():
            previous.cancel()
        if previous is not current:
            self._inflight = None

        self._status = ListStatus.LOADING
        self._notify()
        sort = self.sort.as_params() if self.server_sort else {"sort_by": None, "sort_order": None}
        try:
            page = await self.service.list(
                self.filters.active(),
                page=self._pagination.page,
                page_size=self._pagination.page_size,
                sort_by=sort["sort_by"],
                sort_order=sort["sort_order"],
            )
        except asyncio.CancelledError:
            if generation != self._generation or self._closed:
                logger.debug("list_fetch_superseded", extra={"entity": self.entity, "generation": generation})
                return False
            raise
        except Exception as exc:
            if generation != self._generation or self._closed:
                return False
            self._error = self.presenter.present(exc, action=f"{self.entity}.list")
            self._items = ()
            self._status = ListStatus.ERROR
            logger.warning(
                "list_fetch_failed",
                extra={"entity": self.entity, "generation": generation, "trace_id": self._error.trace_id},
            )
            self._notify()
            return False
        finally:
            if self._inflight is current:
                self._inflight = None

        if generation != self._generation or self._closed:
            logger.debug("list_response_stale", extra={"entity": self.entity, "generation": generation})
            return False

        self._items = tuple(page.items)
        self._list_version += 1
        self._error = None
        self._pagination = replace(
            self._pagination,
            page=page.page,
            page_size=page.page_size,
            total=page.total,
            has_next=page.has_next,
        )
        self._status = ListStatus.LOADED
        logger.debug(
            "list_loaded",
            extra={"entity": self.entity, "generation": generation, "count": len(self._items)},
        )
        self._notify()
        return True

    async def retry(self) -> bool:
        return await self.refresh()

    async def settle(self) -> None:
        """Wait until no scheduled fetch is running."""
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})

    async def next_page(self) -> bool:
        target = next_page(self._pagination)
        if target == self._pagination:
            return False
        self._pagination = target
        return await self.refresh()

    async def prev_page(self) -> bool:
        target = prev_page(self._pagination)
        if target == self._pagination:
            return False
        self._pagination = target
        return await self.refresh()

    async def goto_page(self, page: int) -> bool:
        self._pagination = goto_page(self._pagination, page)
        return await self.refresh()

    async def set_page_size(self, page_size: int) -> bool:
        self._pagination = PaginationState(page=1, page_size=max(1, page_size))
        return await self.refresh()

    def close(self) -> None:
        self._closed = True
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        self._listeners.clear()

    # Mutations

    async def _confirmed(self, action: str, items: Sequence[T]) -> bool:
        if self.confirm is None:
            return False
        answer = self.confirm(action, items)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _reject(self, action: str, ids: Sequence[str], reason: str) -> MutationResult[T]:
        logger.info("mutation_rejected", extra={"entity": self.entity, "action": action, "ids": list(ids), "reason": reason})
        return MutationResult(status=MutationStatus.REJECTED, action=action, ids=tuple(ids))

    def _failure(self, action: str, ids: Sequence[str], exc: Exception) -> PresentedError:
        presented = self.presenter.present(exc, action=f"{self.entity}.{action}")
        self.notifications.error(
            presented.message,
            scope=self.entity,
            trace_id=presented.trace_id,
            details={"action": action, "ids": list(ids)},
        )
        for item_id in ids:
            log_action(self._action_logger, self.entity, action, item_id, presented.trace_id, "failed")
        return presented

    def _restore(self, snapshot: Sequence[T], ids: set[str]) -> None:
        """Put back the snapshot rows in ``ids`` without touching any other row."""
        current = list(self._items)
        for index, original in enumerate(snapshot):
            key = self.key_of(original)
            if key not in ids:
                continue
            existing = next((pos for pos, item in enumerate(current) if self.key_of(item) == key), None)
            if existing is not None:
                current[existing] = original
                continue
            position = 0
            for predecessor in reversed(snapshot[:index]):
                found = next(
                    (pos for pos, item in enumerate(current) if self.key_of(item) == self.key_of(predecessor)),
                    None,
                )
                if found is not None:
                    position = found + 1
                    break
            current.insert(position, original)
        self._set_items(current)

    def _replace(self, item_id: str, item: T) -> None:
        if self._find(item_id) is None:
            return
        self._set_items([item if self.key_of(existing) == item_id else existing for existing in self._items])

    def _adjust_total(self, delta: int) -> None:
        if self._pagination.total is not None:
            self._pagination = replace(self._pagination, total=max(0, self._pagination.total + delta))

    async def remove(self, item_id: str) -> MutationResult[T]:
        return await self.bulk_remove([item_id], action="delete")

    async def bulk_remove(self, ids: Sequence[str], *, action: str = "bulk_delete") -> MutationResult[T]:
        ids = list(dict.fromkeys(ids))
        targets = [self._find(item_id) for item_id in ids]
        if not ids or any(target is None for target in targets):
            return self._reject(action, ids, "unknown_id")
        if any(item_id in self._busy for item_id in ids):
            return self._reject(action, ids, "mutation_in_flight")
        if not await self._confirmed(action, targets):
            return MutationResult(status=MutationStatus.CANCELLED, action=action, ids=tuple(ids))
        if any(item_id in self._busy for item_id in ids):
            return self._reject(action, ids, "mutation_in_flight")

        snapshot = self._items
        version = self._list_version
        removing = set(ids)
        self._busy.update(ids)
        self._set_items([item for item in snapshot if self.key_of(item) not in removing])
        try:
            outcomes = await asyncio.gather(*(self.service.remove(item_id) for item_id in ids), return_exceptions=True)
        except asyncio.CancelledError:
            if version == self._list_version:
                self._restore(snapshot, removing)
            raise
        finally:
            self._busy.difference_update(ids)

        failed = {item_id: outcome for item_id, outcome in zip(ids, outcomes) if isinstance(outcome, BaseException)}
        succeeded = [item_id for item_id in ids if item_id not in failed]
        self._adjust_total(-len(succeeded))
        for item_id in succeeded:
            log_action(self._action_logger, self.entity, action, item_id, None, "success")
        if not failed:
            if len(ids) > 1:
                self.notifications.success(f"Deleted {len(ids)} {self.entity}", scope=self.entity)
            return MutationResult(status=MutationStatus.SUCCESS, action=action, ids=tuple(ids))

        if version == self._list_version:
            self._restore(snapshot, set(failed))
        first_error = next(iter(failed.values()))
        if not isinstance(first_error, Exception):
            raise first_error
        presented = self._failure(action, list(failed), first_error)
        return MutationResult(
            status=MutationStatus.FAILED,
            action=action,
            ids=tuple(succeeded),
            failed_ids=tuple(failed),
            error=presented,
            cause=first_error,
        )

    async def update(
        self,
        item_id: str,
        changes: Mapping[str, Any] | BaseModel,
        *,
        optimistic: bool = True,
        action: str = "update",
    ) -> MutationResult[T]:
        original = self._find(item_id)
        if original is None:
            return self._reject(action, [item_id], "unknown_id")
        if item_id in self._busy:
            return self._reject(action, [item_id], "mutation_in_flight")

        version = self._list_version
        self._busy.add(item_id)
        if optimistic:
            self._replace(item_id, original.model_copy(update=_changes_of(changes)))
        try:
            saved = await self.service.update(item_id, changes)
        except asyncio.CancelledError:
            if optimistic and version == self._list_version:
                self._replace(item_id, original)
            raise
        except Exception as exc:
            if optimistic and version == self._list_version:
                self._replace(item_id, original)
            presented = self._failure(action, [item_id], exc)
            return MutationResult(
                status=MutationStatus.FAILED,
                action=action,
                ids=(item_id,),
                failed_ids=(item_id,),
                error=presented,
                cause=exc,
            )
        finally:
            self._busy.discard(item_id)

        self._replace(item_id, saved)
        log_action(self._action_logger, self.entity, action, item_id, None, "success")
        return MutationResult(status=MutationStatus.SUCCESS, action=action, ids=(item_id,), item=saved)

    async def bulk_update(
        self,
        ids: Sequence[str],
        changes: Mapping[str, Any] | BaseModel,
        *,
        action: str = "bulk_update",
    ) -> MutationResult[T]:
        ids = list(dict.fromkeys(ids))
        originals = {item_id: self._find(item_id) for item_id in ids}
        if not ids or any(item is None for item in originals.values()):
            return self._reject(action, ids, "unknown_id")
        if any(item_id in self._busy for item_id in ids):
            return self._reject(action, ids, "mutation_in_flight")

        version = self._list_version
        patch = _changes_of(changes)
        self._busy.update(ids)
        self._set_items(
            [
                item.model_copy(update=patch) if self.key_of(item) in originals else item
                for item in self._items
            ]
        )
        try:
            outcomes = await asyncio.gather(
                *(self.service.update(item_id, changes) for item_id in ids),
                return_exceptions=True,
            )
        except asyncio.CancelledError:
            if version == self._list_version:
                for item_id, original in originals.items():
                    self._replace(item_id, original)
            raise
        finally:
            self._busy.difference_update(ids)

        failed: dict[str, BaseException] = {}
        for item_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                failed[item_id] = outcome
                if version == self._list_version:
                    self._replace(item_id, originals[item_id])
            else:
                self._replace(item_id, outcome)
                log_action(self._action_logger, self.entity, action, item_id, None, "success")

        if not failed:
            self.notifications.success(f"Updated {len(ids)} {self.entity}", scope=self.entity)
            return MutationResult(status=MutationStatus.SUCCESS, action=action, ids=tuple(ids))
        first_error = next(iter(failed.values()))
        if not isinstance(first_error, Exception):
            raise first_error
        presented = self._failure(action, list(failed), first_error)
        return MutationResult(
            status=MutationStatus.FAILED,
            action=action,
            ids=tuple(item_id for item_id in ids if item_id not in failed),
            failed_ids=tuple(failed),
            error=presented,
            cause=first_error,
        )

    async def bulk_update_status(self, ids: Sequence[str], status: Any) -> MutationResult[T]:
        value = getattr(status, "value", status)
        return await self.bulk_update(ids, {"status": value}, action="bulk_status")

    async def create(self, payload: Mapping[str, Any] | BaseModel) -> MutationResult[T]:
        """Server assigns the id, so the row appears only after the call succeeds."""
        action = "create"
        try:
            created = await self.service.create(payload)
        except Exception as exc:
            presented = self._failure(action, [], exc)
            return MutationResult(status=MutationStatus.FAILED, action=action, error=presented, cause=exc)
        item_id = self.key_of(created)
        rows = [item for item in self._items if self.key_of(item) != item_id]
        self._set_items([created, *rows])
        self._adjust_total(1)
        log_action(self._action_logger, self.entity, action, item_id, None, "success")
        return MutationResult(status=MutationStatus.SUCCESS, action=action, ids=(item_id,), item=created)

    async def export(self, export_format: str = "csv") -> ExportResult:
        """Download the filtered export and write it to disk; rows are left alone."""
        filters = self.filters.active()
        try:
            downloaded = await self.service.export(filters, export_format)
            path = self.exporter.write(downloaded, self.entity, export_format)
        except Exception as exc:
            presented = self.presenter.present(exc, action=f"{self.entity}.export")
            self.notifications.error(presented.message, scope=f"{self.entity}.export", trace_id=presented.trace_id)
            trace_id = exc.trace_id if isinstance(exc, ApiError) else None
            log_action(self._action_logger, self.entity, "export", None, trace_id, "failed", filters=filters)
            return ExportResult(error=presented)
        self.notifications.success(f"Exported {self.entity} to {path}", scope=f"{self.entity}.export")
        log_action(self._action_logger, self.entity, "export", None, None, "success", filters=filters, path=str(path))
        return ExportResult(path=path, size=len(downloaded.content))
