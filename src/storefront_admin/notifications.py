from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

Listener = Callable[["Notification"], None]


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    scope: str | None = None
    trace_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def render(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "message": self.message,
            "scope": self.scope,
            "trace_id": self.trace_id,
            "details": dict(self.details),
        }


@dataclass
class NotificationCenter:
    items: list[Notification] = field(default_factory=list)
    listeners: list[Listener] = field(default_factory=list)

    def toast(
        self,
        *,
        level: str,
        message: str,
        scope: str | None = None,
        trace_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> Notification:
        notification = Notification(level=level, message=message, scope=scope, trace_id=trace_id, details=details or {})
        self.items.append(notification)
        for listener in list(self.listeners):
            listener(notification)
        return notification

    def success(self, message: str, **kwargs: Any) -> Notification:
        return self.toast(level="success", message=message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> Notification:
        return self.toast(level="error", message=message, **kwargs)

    def for_scope(self, scope: str) -> list[Notification]:
        return [item for item in self.items if item.scope == scope]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener) if listener in self.listeners else None

    def render(self) -> dict[str, Any]:
        return {"count": len(self.items), "messages": [item.render() for item in self.items]}

    def clear(self) -> None:
        self.items.clear()
