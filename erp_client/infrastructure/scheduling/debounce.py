"""
Debouncer - coalesce bursts of calls into one delayed invocation.

Each ``call`` cancels the pending invocation and re-arms the delay, so the
arguments of the last call within the window win. Used for field-change
notifications that should reach the server once typing settles.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Debouncer:
    """Delay-coalescing scheduler backed by a cancellable asyncio task.

    Usage:
        debouncer = Debouncer(0.3, lambda value: client.send({"type": "field_changed", "value": value}))
        debouncer.call("A")
        debouncer.call("AC")  # only "AC" is sent, 300ms after this call
    """

    def __init__(self, delay: float, callback: Callable[..., Any]) -> None:
        """
        Args:
            delay: Quiet period in seconds
            callback: Plain function or coroutine function to invoke
        """
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def call(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback, replacing any pending invocation.

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        self.cancel()
        self._args = args
        self._kwargs = kwargs
        self._task = loop.create_task(self._run_later())

    def cancel(self) -> None:
        """Drop the pending invocation, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run the pending invocation now instead of waiting for the delay."""
        if not self.pending:
            return
        self.cancel()
        await self._invoke()

    async def _run_later(self) -> None:
        await asyncio.sleep(self._delay)
        # Detach before invoking so a call() from inside the callback re-arms cleanly
        self._task = None
        await self._invoke()

    async def _invoke(self) -> None:
        args, kwargs = self._args, self._kwargs
        self._args, self._kwargs = (), {}
        try:
            result = self._callback(*args, **kwargs)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"[Debouncer] Callback failed: {e}", exc_info=True)
