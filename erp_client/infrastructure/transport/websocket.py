"""
WebSocket transport.

Provides the duplex connection to the application server via aiohttp's
client websocket.
"""

import logging

import aiohttp

from erp_client.domain.exceptions import TransportClosedError, TransportError
from erp_client.infrastructure.transport.base import ABNORMAL_CLOSE_CODE, BaseTransport

logger = logging.getLogger(__name__)


class WebSocketTransport(BaseTransport):
    """
    Duplex transport over a WebSocket.

    Liveness is handled by the connection manager's application-level
    heartbeat, so aiohttp's own ping heartbeat is left disabled.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        connect_timeout: float = 30.0,
    ) -> None:
        super().__init__()
        self._headers = headers or {}
        self._connect_timeout = connect_timeout
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None

    async def open(self, url: str) -> None:
        """Establish the WebSocket connection."""
        self._ensure_unused()

        try:
            logger.info(f"[WebSocketTransport] Connecting to {url}")
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, connect=self._connect_timeout)
            )
            self._ws = await self._session.ws_connect(
                url,
                headers=self._headers,
                heartbeat=None,
            )
            self._mark_open(url)
            logger.info(f"[WebSocketTransport] Connected to {url}")

        except Exception as e:
            logger.error(f"[WebSocketTransport] Failed to connect to {url}: {e}")
            self._mark_closed(ABNORMAL_CLOSE_CODE, str(e), was_clean=False)
            await self._cleanup()
            raise TransportError(f"WebSocket connection failed: {e}", original_error=e) from e

    async def send(self, data: str) -> None:
        """Send one text frame."""
        if not self._ws or self._ws.closed or not self._is_open:
            raise self._closed_error()

        try:
            await self._ws.send_str(data)
        except Exception as e:
            raise TransportError(f"WebSocket send failed: {e}", original_error=e) from e

    async def receive(self) -> str:
        """Wait for the next text frame; raise TransportClosedError when the socket ends."""
        if not self._ws:
            raise self._closed_error()

        while True:
            msg = await self._ws.receive()

            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data

            if msg.type == aiohttp.WSMsgType.BINARY:
                try:
                    return msg.data.decode("utf-8")
                except UnicodeDecodeError:
                    # Let the frame decoder report it
                    return msg.data.decode("utf-8", errors="replace")

            if msg.type == aiohttp.WSMsgType.CLOSE:
                # Peer completed a closing handshake
                self._mark_closed(msg.data, msg.extra or "", was_clean=True)
                logger.info(
                    f"[WebSocketTransport] Closed by server: code={msg.data} reason={msg.extra}"
                )
                await self._cleanup()
                raise self._closed_error()

            if msg.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                self._mark_closed(self._ws.close_code, "", was_clean=False)
                await self._cleanup()
                raise self._closed_error()

            if msg.type == aiohttp.WSMsgType.ERROR:
                error = self._ws.exception()
                logger.error(f"[WebSocketTransport] WebSocket error: {error}")
                self._mark_closed(ABNORMAL_CLOSE_CODE, str(error or ""), was_clean=False)
                await self._cleanup()
                raise TransportClosedError(
                    code=ABNORMAL_CLOSE_CODE,
                    reason=str(error or ""),
                    was_clean=False,
                    original_error=error if isinstance(error, Exception) else None,
                )

            # PING/PONG are answered by aiohttp (autoping)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the connection; idempotent."""
        if self._ws is not None and not self._ws.closed:
            try:
                await self._ws.close(code=code, message=reason.encode("utf-8"))
            except Exception as e:
                raise TransportError(f"WebSocket close failed: {e}", original_error=e) from e
            finally:
                self._mark_closed(code, reason, was_clean=True)
                await self._cleanup()
            return

        self._mark_closed(code, reason, was_clean=True)
        await self._cleanup()

    async def _cleanup(self) -> None:
        """Release the websocket and its session."""
        if self._ws is not None and not self._ws.closed:
            try:
                await self._ws.close()
            except Exception as e:
                logger.debug(f"[WebSocketTransport] Error closing websocket: {e}")
        self._ws = None

        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
