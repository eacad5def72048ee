"""
Named-event observer registry.

Handlers are kept per event name in registration order and are detached by
equality: plain functions and lambdas match by identity, bound methods match
when they wrap the same function on the same instance.

Usage:
    emitter = EventEmitter()
    emitter.on("granted", on_granted)
    emitter.emit("granted", {"target": controls})
    emitter.off("granted", on_granted)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

EventHandler = Callable[..., Any]


class EventEmitter:
    """Maps event names to ordered handler lists."""

    def __init__(self) -> None:
        self.event_handlers: Dict[str, List[EventHandler]] = {}

    def on(self, event_name: str, handler: EventHandler) -> None:
        self.event_handlers.setdefault(event_name, []).append(handler)

    def off(self, event_name: str, handler: EventHandler) -> None:
        """Remove the first registration of handler."""
        handlers = self.event_handlers.get(event_name)
        if not handlers:
            return
        for index, registered in enumerate(handlers):
            if registered == handler:
                del handlers[index]
                return

    def emit(self, event_name: str, *params: Any) -> None:
        # Copy so handlers may detach themselves while being called
        for handler in list(self.event_handlers.get(event_name, ())):
            handler(*params)

    def handler_count(self, event_name: str) -> int:
        return len(self.event_handlers.get(event_name, ()))
