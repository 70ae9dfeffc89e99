"""Connection manager for the application server's duplex channel.

Owns the transport and the four-state lifecycle. It handles:
- Opening and closing the transport
- Automatic reconnection with exponential backoff after abnormal closes
- Application-level heartbeats that force a reconnect on a silent peer
- Draining the outbound queue once the connection is ready
- Routing inbound frames to heartbeat, auth, correlator or generic handlers

All work runs on the event loop; timers are loop handles that are always
cancelled before being re-armed.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from erp_client.domain.events import (
    AuthErrorEvent,
    CloseEvent,
    ConnectedEvent,
    ErrorEvent,
    ErrorKind,
    MessagingEventName,
)
from erp_client.domain.exceptions import FrameDecodeError, TransportClosedError
from erp_client.domain.model.messaging import ConnectionState, MessagingClientConfig
from erp_client.domain.model.messaging.envelope import build_heartbeat, is_heartbeat_ack
from erp_client.domain.ports import DuplexTransportPort
from erp_client.infrastructure.messaging.auth_classifier import classify_auth_failure
from erp_client.infrastructure.messaging.event_bus import EventBus
from erp_client.infrastructure.messaging.frame_codec import decode_frame, encode_frame
from erp_client.infrastructure.messaging.outbound_queue import OutboundQueue
from erp_client.infrastructure.messaging.request_correlator import RequestCorrelator
from erp_client.infrastructure.transport import ABNORMAL_CLOSE_CODE, WebSocketTransport

logger = logging.getLogger(__name__)

NORMAL_CLOSE_CODE = 1000


class ConnectionManager:
    """Manages one logical connection, reopening it as needed.

    Usage:
        manager = ConnectionManager(config, bus, correlator, queue)
        manager.connect()
        await manager.wait_connected(timeout=5)
        manager.send({"type": "view", "name": "customers"})
        manager.disconnect()
    """

    def __init__(
        self,
        config: MessagingClientConfig,
        event_bus: EventBus,
        correlator: RequestCorrelator,
        queue: OutboundQueue,
        transport_factory: Callable[[], DuplexTransportPort] | None = None,
        token_provider: Callable[[], str | None] | None = None,
    ) -> None:
        """Initialize the connection manager.

        Args:
            config: Endpoint, backoff and heartbeat configuration.
            event_bus: Bus receiving lifecycle, error, auth and message events.
            correlator: Pending requests resolved by inbound frames.
            queue: Outbound frames awaiting a ready connection.
            transport_factory: Builds a fresh transport per connection attempt.
            token_provider: Returns the token carried by heartbeat probes.
        """
        self._config = config
        self._bus = event_bus
        self._correlator = correlator
        self._queue = queue
        self._transport_factory = transport_factory or WebSocketTransport
        self._token_provider = token_provider or (lambda: None)
        self._debug_logging = config.debug

        self._state = ConnectionState.DISCONNECTED
        self._transport: DuplexTransportPort | None = None
        self._connected_event = asyncio.Event()

        self._open_task: asyncio.Task | None = None
        self._reader_task: asyncio.Task | None = None
        self._flush_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._heartbeat_timeout_handle: asyncio.TimerHandle | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._close_tasks: set[asyncio.Task] = set()

        self._reconnect_attempts = 0
        self._last_backoff_ms: float | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def reconnect_attempts(self) -> int:
        """Reconnections scheduled since the last successful open."""
        return self._reconnect_attempts

    @property
    def last_backoff_ms(self) -> float | None:
        """Delay used by the most recently scheduled reconnection."""
        return self._last_backoff_ms

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    @property
    def heartbeat_pending(self) -> bool:
        """True while a probe is waiting for its acknowledgement."""
        return self._heartbeat_timeout_handle is not None

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            logger.debug(f"[ConnectionManager] State {self._state.value} -> {state.value}")
        self._state = state
        if state == ConnectionState.CONNECTED:
            self._connected_event.set()
        else:
            self._connected_event.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the transport unless already connected or connecting.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            return

        loop = asyncio.get_running_loop()
        self._cancel_reconnect_timer()
        self._set_state(ConnectionState.CONNECTING)
        logger.info(f"[ConnectionManager] Connecting to {self._config.url}")

        transport = self._transport_factory()
        self._transport = transport
        self._open_task = loop.create_task(self._open(transport))

    def disconnect(self, code: int = NORMAL_CLOSE_CODE, reason: str = "Client disconnected") -> None:
        """Close the connection deliberately; no reconnection follows."""
        if self._state in (ConnectionState.DISCONNECTED, ConnectionState.CLOSING):
            return

        was_connected = self._state == ConnectionState.CONNECTED
        self._set_state(ConnectionState.CLOSING)
        logger.info(f"[ConnectionManager] Disconnecting: {reason}")
        self._clear_timers()
        self._stop_reader()

        transport = self._transport
        self._transport = None
        if transport is not None and was_connected:
            self._schedule_transport_close(transport, code, reason)
        # A handshake still in flight closes itself once it sees it was superseded

        self._set_state(ConnectionState.DISCONNECTED)
        self._emit(MessagingEventName.CLOSE, CloseEvent(code=code, reason=reason, was_clean=True))

    def reconnect(self) -> None:
        """Reset the connection: disconnect, then connect."""
        self.disconnect(NORMAL_CLOSE_CODE, "Manual reconnection")
        self.connect()

    def cancel_reconnect(self) -> None:
        """Drop any scheduled reconnection."""
        self._cancel_reconnect_timer()

    async def wait_connected(self, timeout: float | None = None) -> None:
        """Wait until the connection is open.

        Raises:
            TimeoutError: If ``timeout`` seconds elapse first.
        """
        await asyncio.wait_for(self._connected_event.wait(), timeout=timeout)

    async def aclose(self) -> None:
        """Disconnect, stop reconnecting and wait for the transport to close."""
        self.disconnect()
        self._cancel_reconnect_timer()

        pending = [t for t in (self._open_task, self._flush_task) if t and not t.done()]
        pending.extend(self._close_tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _open(self, transport: DuplexTransportPort) -> None:
        """Open ``transport`` and wire it up, unless it was superseded meanwhile."""
        try:
            await transport.open(self._config.url)
        except Exception as e:
            if transport is not self._transport:
                return
            logger.warning(f"[ConnectionManager] Failed to open connection: {e}")
            self._emit_error(ErrorKind.HANDSHAKE, f"Failed to connect: {e}", e)
            self._handle_close(
                transport,
                TransportClosedError(code=ABNORMAL_CLOSE_CODE, reason=str(e), was_clean=False),
            )
            return

        if transport is not self._transport or self._state != ConnectionState.CONNECTING:
            # disconnect() ran while the handshake was in flight
            self._schedule_transport_close(transport, NORMAL_CLOSE_CODE, "Superseded connection")
            return

        self._handle_open(transport)

    def _handle_open(self, transport: DuplexTransportPort) -> None:
        self._set_state(ConnectionState.CONNECTED)
        self._reconnect_attempts = 0
        self._cancel_reconnect_timer()
        logger.info(f"[ConnectionManager] Connected: {self._config.url}")

        self._reader_task = asyncio.create_task(self._read_loop(transport))
        self._start_heartbeat(transport)
        self._schedule_flush()
        self._emit(MessagingEventName.CONNECTED, ConnectedEvent(url=self._config.url))

    def _handle_close(self, transport: DuplexTransportPort, error: TransportClosedError) -> None:
        """React to the transport ending without a deliberate disconnect()."""
        if transport is not self._transport:
            return

        self._clear_timers()
        self._transport = None
        self._set_state(ConnectionState.DISCONNECTED)
        logger.warning(
            f"[ConnectionManager] Connection closed: code={error.code}, "
            f"reason={error.reason!r}, clean={error.was_clean}"
        )
        self._emit(
            MessagingEventName.CLOSE,
            CloseEvent(code=error.code, reason=error.reason, was_clean=error.was_clean),
        )

        if not error.was_clean:
            self._schedule_reconnect()

    def _schedule_transport_close(
        self, transport: DuplexTransportPort, code: int, reason: str
    ) -> None:
        task = asyncio.get_running_loop().create_task(
            self._close_transport(transport, code, reason)
        )
        self._close_tasks.add(task)
        task.add_done_callback(self._close_tasks.discard)

    async def _close_transport(self, transport: DuplexTransportPort, code: int, reason: str) -> None:
        """Best-effort graceful close."""
        try:
            await transport.close(code, reason)
        except Exception as e:
            logger.warning(f"[ConnectionManager] Error closing connection: {e}")

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        """Arm the reconnect timer with exponential backoff."""
        self._cancel_reconnect_timer()

        delay_ms = self._config.backoff_delay(self._reconnect_attempts)
        self._reconnect_attempts += 1
        self._last_backoff_ms = delay_ms
        logger.info(
            f"[ConnectionManager] Reconnecting in {delay_ms:.0f}ms "
            f"(attempt {self._reconnect_attempts})"
        )
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            delay_ms / 1000.0, self._on_reconnect_timer
        )

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _cancel_reconnect_timer(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def _start_heartbeat(self, transport: DuplexTransportPort) -> None:
        self._stop_heartbeat()
        if not self._config.heartbeat_enabled:
            return
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(transport))

    async def _heartbeat_loop(self, transport: DuplexTransportPort) -> None:
        """Send a liveness probe every heartbeat interval while connected."""
        interval = self._config.heartbeat_interval_seconds
        while True:
            await asyncio.sleep(interval)
            if self._state != ConnectionState.CONNECTED or transport is not self._transport:
                return

            probe = encode_frame(build_heartbeat(self._token_provider()))
            # Armed before the await so a fast acknowledgement cannot be missed.
            # An unanswered earlier probe keeps its own deadline.
            armed = self._arm_heartbeat_timeout()
            try:
                if self._debug_logging:
                    logger.info("[ConnectionManager] Sending heartbeat probe")
                await transport.send(probe)
            except Exception as e:
                logger.warning(f"[ConnectionManager] Error sending heartbeat: {e}")
                if armed:
                    self._cancel_heartbeat_timeout()

    def _arm_heartbeat_timeout(self) -> bool:
        if self._heartbeat_timeout_handle is not None:
            return False
        self._heartbeat_timeout_handle = asyncio.get_running_loop().call_later(
            self._config.heartbeat_timeout_seconds, self._on_heartbeat_timeout
        )
        return True

    def _on_heartbeat_timeout(self) -> None:
        self._heartbeat_timeout_handle = None
        logger.warning("[ConnectionManager] Heartbeat timeout - connection is stale")
        self.reconnect()

    def _cancel_heartbeat_timeout(self) -> None:
        if self._heartbeat_timeout_handle is not None:
            self._heartbeat_timeout_handle.cancel()
            self._heartbeat_timeout_handle = None

    def _stop_heartbeat(self) -> None:
        if self._heartbeat_task is not None and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()
        self._heartbeat_task = None
        self._cancel_heartbeat_timeout()

    def _clear_timers(self) -> None:
        self._stop_heartbeat()
        self._cancel_reconnect_timer()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send(self, frame: dict[str, Any]) -> None:
        """Queue a frame and flush if the connection is ready.

        Raises:
            TypeError: If the frame cannot be encoded.
        """
        data = encode_frame(frame)
        if self._debug_logging:
            logger.info(f"[ConnectionManager] Sending: {data}")
        self._queue.enqueue(data)
        self._schedule_flush()

    def _schedule_flush(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            # The in-flight flush picks up frames appended after it started
            return
        if not self._queue or self._state != ConnectionState.CONNECTED:
            return
        self._flush_task = asyncio.get_running_loop().create_task(self._flush(self._transport))

    async def _flush(self, transport: DuplexTransportPort | None) -> None:
        if transport is None:
            return
        try:
            sent = await self._queue.flush(
                transport.send,
                lambda: self._state == ConnectionState.CONNECTED and self._transport is transport,
            )
            if sent:
                logger.debug(f"[ConnectionManager] Flushed {sent} queued frames")
        except Exception as e:
            logger.warning(
                f"[ConnectionManager] Error sending queued frame; "
                f"{len(self._queue)} frames remain queued: {e}"
            )
            self._emit_error(ErrorKind.QUEUE_SEND, f"Error sending queued message: {e}", e)
            return
        finally:
            if self._flush_task is asyncio.current_task():
                self._flush_task = None

        if transport is not self._transport:
            # Reconnected while this flush was draining into the old transport
            self._schedule_flush()

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _stop_reader(self) -> None:
        if self._reader_task is not None and not self._reader_task.done():
            self._reader_task.cancel()
        self._reader_task = None

    async def _read_loop(self, transport: DuplexTransportPort) -> None:
        """Receive frames until the transport ends."""
        try:
            while True:
                raw = await transport.receive()
                try:
                    self._handle_frame(raw)
                except Exception as e:
                    logger.error(
                        f"[ConnectionManager] Failed to handle message: {e}", exc_info=True
                    )
                    self._bus.emit(
                        MessagingEventName.ERROR,
                        ErrorEvent(
                            kind=ErrorKind.DECODE,
                            message=f"Failed to handle message: {e}",
                            error=e,
                            raw=raw,
                        ),
                    )
        except asyncio.CancelledError:
            logger.debug("[ConnectionManager] Reader cancelled")
            raise
        except TransportClosedError as e:
            self._handle_close(transport, e)
        except Exception as e:
            logger.error(f"[ConnectionManager] Error in receive loop: {e}", exc_info=True)
            if transport is self._transport:
                self._emit_error(ErrorKind.TRANSPORT, f"Connection error: {e}", e)
                self._schedule_transport_close(transport, NORMAL_CLOSE_CODE, "Receive failed")
            self._handle_close(
                transport,
                TransportClosedError(code=ABNORMAL_CLOSE_CODE, reason=str(e), was_clean=False),
            )

    def _handle_frame(self, raw: Any) -> None:
        """Decode and route one inbound frame."""
        try:
            frame = decode_frame(raw)
        except FrameDecodeError as e:
            logger.warning(f"[ConnectionManager] Failed to parse message: {raw!r}")
            self._bus.emit(
                MessagingEventName.ERROR,
                ErrorEvent(kind=ErrorKind.DECODE, message=str(e), error=e, raw=raw),
            )
            return

        if self._debug_logging:
            logger.info(f"[ConnectionManager] Received: {frame}")

        if is_heartbeat_ack(frame):
            self._cancel_heartbeat_timeout()
            return

        auth_kind = classify_auth_failure(frame)
        if auth_kind is not None:
            # Not correlated: a pending request for this frame runs to its timeout
            message = str(frame.get("message") or frame.get("error") or "Authentication failed")
            logger.warning(f"[ConnectionManager] Authentication error ({auth_kind.value}): {message}")
            self._emit(
                MessagingEventName.AUTH_ERROR,
                AuthErrorEvent(kind=auth_kind, message=message, frame=frame),
            )
            return

        if self._correlator.resolve_or_route(frame):
            return

        self._emit(MessagingEventName.MESSAGE, frame)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, event: MessagingEventName, payload: Any) -> None:
        self._bus.emit(event, payload)

    def _emit_error(self, kind: ErrorKind, message: str, error: Exception | None = None) -> None:
        self._bus.emit(MessagingEventName.ERROR, ErrorEvent(kind=kind, message=message, error=error))
