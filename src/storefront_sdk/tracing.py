from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Mapping

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "x-trace-id", "X-Request-ID")


def new_trace_id() -> str:
    return uuid.uuid4().hex


@dataclass
class TraceContext:
    """Trace ids for one dashboard session.

    Every request gets its own id unless ``pinned_trace_id`` is set (useful when
    a support ticket asks to reproduce a call). The server may echo a different
    id back; ``last_trace_id`` always holds the id the server acknowledged last.
    """

    pinned_trace_id: str | None = None
    last_trace_id: str | None = None
    history: list[str] = field(default_factory=list)

    def begin(self) -> str:
        trace_id = self.pinned_trace_id or new_trace_id()
        self._remember(trace_id)
        return trace_id

    def acknowledge_headers(self, headers: Mapping[str, str]) -> None:
        for key in TRACE_HEADER_ALIASES:
            trace_id = headers.get(key)
            if trace_id:
                self._remember(trace_id)
                return

    def acknowledge_payload(self, payload: Mapping[str, object]) -> None:
        trace_id = payload.get("trace_id")
        if isinstance(trace_id, str) and trace_id:
            self._remember(trace_id)

    def _remember(self, trace_id: str) -> None:
        self.last_trace_id = trace_id
        if not self.history or self.history[-1] != trace_id:
            self.history.append(trace_id)
        del self.history[:-50]
