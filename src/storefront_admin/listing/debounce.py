from __future__ import annotations

import asyncio
from typing import Callable


class Debouncer:
    """Runs ``callback`` once ``delay`` seconds after the last ``call``.

    Uses the running event loop's timer; outside an event loop the callback
    fires immediately.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def call(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._callback()
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> bool:
        if self._handle is None:
            return False
        self.cancel()
        self._callback()
        return True
