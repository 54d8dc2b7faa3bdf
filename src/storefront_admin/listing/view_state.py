from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import PresentedError


class ListStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class DisplayStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class DisplayState:
    status: DisplayStatus
    message: str
    trace_id: str | None = None
    can_retry: bool = False

    def render(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "trace_id": self.trace_id,
            "can_retry": self.can_retry,
        }


def resolve_display_state(
    *,
    status: ListStatus,
    has_rows: bool,
    error: PresentedError | None,
    empty_message: str = "No records",
) -> DisplayState:
    if status in (ListStatus.IDLE, ListStatus.LOADING):
        return DisplayState(status=DisplayStatus.LOADING, message="Loading")
    if status is ListStatus.ERROR:
        # Rows from before the failure are not authoritative.
        return DisplayState(
            status=DisplayStatus.ERROR,
            message=error.message if error else "Could not load records",
            trace_id=error.trace_id if error else None,
            can_retry=True,
        )
    if not has_rows:
        return DisplayState(status=DisplayStatus.EMPTY, message=empty_message)
    return DisplayState(status=DisplayStatus.SUCCESS, message="Ready")
