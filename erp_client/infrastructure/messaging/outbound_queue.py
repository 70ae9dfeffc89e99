"""Outbound queue for frames that cannot be written immediately.

Frames are kept in enqueue order and drained from the head. A failed
write puts the frame back at the head and stops the drain, so a transient
failure never drops or reorders anything.
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterator

logger = logging.getLogger(__name__)


class OutboundQueue:
    """Unbounded FIFO of encoded frames."""

    def __init__(self) -> None:
        self._items: deque[str] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)

    def enqueue(self, frame: str) -> None:
        self._items.append(frame)

    async def flush(
        self,
        send: Callable[[str], Awaitable[None]],
        is_ready: Callable[[], bool],
    ) -> int:
        """
        Send frames from the head while the connection stays ready.

        Frames enqueued while the flush is in progress are sent by the same
        flush, after everything queued before them.

        Args:
            send: Coroutine function writing one frame to the transport
            is_ready: Returns False once the connection is no longer usable

        Returns:
            Number of frames sent

        Raises:
            Exception: Whatever ``send`` raised; the failed frame is back at
                the head of the queue
        """
        sent = 0
        while self._items and is_ready():
            frame = self._items.popleft()
            try:
                await send(frame)
            except BaseException:
                # Cancellation included: the frame may not have been written
                self._items.appendleft(frame)
                logger.debug(
                    f"[OutboundQueue] Send failed after {sent} frames; "
                    f"{len(self._items)} frames remain queued"
                )
                raise
            sent += 1
        return sent

    def clear(self) -> None:
        self._items.clear()
