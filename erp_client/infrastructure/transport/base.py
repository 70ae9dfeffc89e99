"""
Base transport implementation.

Provides common state tracking shared by duplex transport implementations.
"""

import logging

from erp_client.domain.exceptions import TransportClosedError, TransportError
from erp_client.domain.ports import DuplexTransportPort

logger = logging.getLogger(__name__)

# Close code used when the connection dropped without a closing handshake
ABNORMAL_CLOSE_CODE = 1006


class BaseTransport(DuplexTransportPort):
    """
    Abstract base class for duplex transports.

    Tracks the open/closed state and the close details reported when the
    connection ends, so ``receive`` can raise a consistent
    ``TransportClosedError``.
    """

    def __init__(self) -> None:
        self._url: str | None = None
        self._is_open = False
        self._opened_once = False
        self._close_code: int | None = None
        self._close_reason = ""
        self._was_clean = False

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def closed(self) -> bool:
        return not self._is_open

    @property
    def close_code(self) -> int | None:
        return self._close_code

    def _ensure_unused(self) -> None:
        """Transports are single-use; a new instance is built per connection."""
        if self._opened_once:
            raise TransportError("Transport instances cannot be reopened")
        self._opened_once = True

    def _mark_open(self, url: str) -> None:
        self._url = url
        self._is_open = True

    def _mark_closed(self, code: int | None, reason: str = "", was_clean: bool = False) -> None:
        if self._close_code is None:
            self._close_code = code if code is not None else ABNORMAL_CLOSE_CODE
            self._close_reason = reason or ""
            self._was_clean = was_clean
        self._is_open = False

    def _closed_error(self) -> TransportClosedError:
        return TransportClosedError(
            code=self._close_code if self._close_code is not None else ABNORMAL_CLOSE_CODE,
            reason=self._close_reason,
            was_clean=self._was_clean,
        )
