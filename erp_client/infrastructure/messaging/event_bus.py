"""Event Bus - in-process publish/subscribe keyed by event name.

Every listener is isolated: an exception raised by one handler is logged
and never reaches the emitter or the remaining handlers. Coroutine
handlers are scheduled on the running loop and their failures are logged
when the task completes.

Usage:
    bus = EventBus()

    def on_close(event: CloseEvent) -> None:
        print(f"closed: {event.code}")

    bus.on("close", on_close)
    bus.emit("close", CloseEvent(code=1000, reason="bye", was_clean=True))
    bus.off("close", on_close)
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]


def _event_key(event: str | Enum) -> str:
    """Normalize enum event names to their string value."""
    if isinstance(event, Enum):
        return str(event.value)
    return str(event)


class EventBus:
    """Registry of handlers per event name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventHandler]] = {}
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: str | Enum, handler: EventHandler) -> "EventBus":
        """Register a handler; the same handler may be registered more than once."""
        self._listeners.setdefault(_event_key(event), []).append(handler)
        return self

    def off(self, event: str | Enum, handler: EventHandler | None = None) -> "EventBus":
        """Unregister a handler, or every handler for ``event`` when none is given."""
        event = _event_key(event)
        if event not in self._listeners:
            return self

        if handler is None:
            del self._listeners[event]
            return self

        remaining = [h for h in self._listeners[event] if h != handler]
        if remaining:
            self._listeners[event] = remaining
        else:
            del self._listeners[event]
        return self

    def listener_count(self, event: str | Enum) -> int:
        return len(self._listeners.get(_event_key(event), ()))

    def emit(self, event: str | Enum, payload: Any = None) -> int:
        """Deliver ``payload`` to every handler registered for ``event``.

        Returns:
            Number of handlers invoked
        """
        event = _event_key(event)
        # Snapshot so handlers may subscribe/unsubscribe while being notified
        handlers = list(self._listeners.get(event, ()))
        for handler in handlers:
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    self._schedule(event, result)
            except Exception as e:
                logger.error(
                    f"[EventBus] Error in '{event}' event listener: {e}",
                    exc_info=True,
                )
        return len(handlers)

    def _schedule(self, event: str, awaitable: Any) -> None:
        """Run a coroutine handler on the current loop."""
        try:
            task = asyncio.ensure_future(awaitable)
        except RuntimeError as e:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.error(f"[EventBus] No event loop available for '{event}' listener: {e}")
            return

        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_handler_done(event, t))

    def _on_handler_done(self, event: str, task: asyncio.Task) -> None:
        """Log async handler failures."""
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"[EventBus] Async '{event}' event listener failed: {error}",
                exc_info=error,
            )

    def clear(self) -> None:
        self._listeners.clear()
