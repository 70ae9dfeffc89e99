"""Request correlator - pairs response frames with pending requests.

Each pending request owns an ``asyncio.Future`` and a timeout handle. An
entry is removed exactly once, by whichever comes first: the matching
response or the timeout. A late duplicate response therefore finds no
entry and is routed elsewhere by the caller.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from erp_client.domain.exceptions import DuplicateRequestError, RequestTimeoutError
from erp_client.domain.model.messaging.envelope import REQUEST_ID_FIELD

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """A request waiting for its response.

    Attributes:
        request_id: Correlation identifier
        future: Resolved with the response frame or failed with an error
        timeout_ms: Timeout armed for this request
        timeout_handle: Timer that expires the request
        created_at: Monotonic creation time
    """

    request_id: str
    future: asyncio.Future
    timeout_ms: int
    timeout_handle: asyncio.TimerHandle | None = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def age_ms(self) -> float:
        return (time.monotonic() - self.created_at) * 1000.0


class RequestCorrelator:
    """Registry of pending requests keyed by request id."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingRequest] = {}

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def pending_ids(self) -> list[str]:
        return list(self._pending)

    def register(
        self,
        request_id: str,
        timeout_ms: int,
        future: asyncio.Future | None = None,
    ) -> asyncio.Future:
        """
        Create a pending request and arm its timeout.

        Args:
            request_id: Correlation identifier
            timeout_ms: Milliseconds before the request is rejected
            future: Future to settle; a new one is created on the running loop if omitted

        Returns:
            The future settled by the response or the timeout

        Raises:
            DuplicateRequestError: If ``request_id`` is already pending
        """
        if request_id in self._pending:
            raise DuplicateRequestError(request_id)

        loop = asyncio.get_running_loop()
        if future is None:
            future = loop.create_future()

        pending = PendingRequest(request_id=request_id, future=future, timeout_ms=timeout_ms)
        pending.timeout_handle = loop.call_later(
            timeout_ms / 1000.0, self._expire, request_id, future
        )
        self._pending[request_id] = pending

        # A caller cancelling its await must not leave a stale entry behind
        future.add_done_callback(lambda f: self._on_future_done(request_id, f))
        return future

    def resolve_or_route(self, frame: dict[str, Any]) -> bool:
        """
        Resolve the pending request matching ``frame``'s request id.

        Returns:
            True if the frame was consumed by a pending request
        """
        request_id = frame.get(REQUEST_ID_FIELD)
        if not isinstance(request_id, str):
            return False

        pending = self._pending.pop(request_id, None)
        if pending is None:
            return False

        if pending.timeout_handle is not None:
            pending.timeout_handle.cancel()
        if not pending.future.done():
            pending.future.set_result(frame)
        logger.debug(
            f"[RequestCorrelator] Resolved {request_id} after {pending.age_ms:.0f}ms"
        )
        return True

    def reject(self, request_id: str, error: Exception) -> bool:
        """
        Fail a pending request locally, e.g. when its frame could not be sent.

        Returns:
            True if a pending request was rejected
        """
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return False

        if pending.timeout_handle is not None:
            pending.timeout_handle.cancel()
        if not pending.future.done():
            pending.future.set_exception(error)
        return True

    def _expire(self, request_id: str, future: asyncio.Future) -> None:
        """Timer callback: reject the request if it is still pending."""
        pending = self._pending.get(request_id)
        if pending is None or pending.future is not future:
            return

        del self._pending[request_id]
        logger.warning(
            f"[RequestCorrelator] Request {request_id} timed out after {pending.timeout_ms}ms"
        )
        if not future.done():
            future.set_exception(RequestTimeoutError(request_id, pending.timeout_ms))

    def _on_future_done(self, request_id: str, future: asyncio.Future) -> None:
        if not future.cancelled():
            return
        pending = self._pending.get(request_id)
        if pending is not None and pending.future is future:
            del self._pending[request_id]
            if pending.timeout_handle is not None:
                pending.timeout_handle.cancel()
            logger.debug(f"[RequestCorrelator] Request {request_id} cancelled by caller")
