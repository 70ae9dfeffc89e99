"""
Messaging client - the facade UI collaborators depend on.

Composes the event bus, the outbound queue, the request correlator and the
connection manager into two operations:

- ``send(message)``: fire-and-forget
- ``request(message, timeout_ms)``: returns a future resolved by the
  correlated response frame

plus event subscription and bearer-token management.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from erp_client.domain.events import (
    AuthErrorEvent,
    AuthErrorKind,
    ErrorEvent,
    ErrorKind,
    MessagingEventName,
)
from erp_client.domain.exceptions import AuthenticationError, DuplicateRequestError
from erp_client.domain.model.messaging import (
    ConnectionState,
    MessagingClientConfig,
    is_login_call,
    is_valid_token,
    normalize_token,
)
from erp_client.domain.model.messaging.envelope import (
    REQUEST_ID_FIELD,
    TIMESTAMP_FIELD,
    TOKEN_FIELD,
    Frame,
    clone_message,
    generate_request_id,
    utc_timestamp,
)
from erp_client.domain.ports import CredentialStorePort, DuplexTransportPort
from erp_client.infrastructure.credentials import (
    FileCredentialStore,
    InMemoryCredentialStore,
    LayeredCredentialStore,
)
from erp_client.infrastructure.messaging.connection_manager import (
    NORMAL_CLOSE_CODE,
    ConnectionManager,
)
from erp_client.infrastructure.messaging.event_bus import EventBus, EventHandler
from erp_client.infrastructure.messaging.outbound_queue import OutboundQueue
from erp_client.infrastructure.messaging.request_correlator import RequestCorrelator

logger = logging.getLogger(__name__)


class MessagingClient:
    """Reliable request/response and notification client for the ERP server.

    Usage:
        client = MessagingClient(MessagingClientConfig(url="ws://localhost:8011"))
        client.on("auth_error", handle_auth_error)
        response = await client.request({"type": "view", "name": "customers"})
        client.send({"type": "field_changed", "field": "name", "value": "ACME"})
        await client.close()
    """

    def __init__(
        self,
        config: MessagingClientConfig | None = None,
        *,
        credential_store: CredentialStorePort | None = None,
        transport_factory: Callable[[], DuplexTransportPort] | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration; built from environment settings if omitted
            credential_store: Where the bearer token is loaded from and purged.
                When both this and ``config`` are omitted, the token file named
                by ``ERP_CREDENTIALS_FILE`` backs a session-scoped memory store.
            transport_factory: Builds one transport per connection attempt

        Raises:
            ConfigurationError: If no URL is configured and none can be derived
        """
        if config is None:
            from erp_client.configuration import get_settings

            settings = get_settings()
            config = MessagingClientConfig.from_settings(settings)
            if credential_store is None:
                credential_store = LayeredCredentialStore(
                    FileCredentialStore(settings.credentials_file),
                    InMemoryCredentialStore(),
                )

        self._config = config
        self._credential_store = credential_store or InMemoryCredentialStore()
        self._bus = EventBus()
        self._queue = OutboundQueue()
        self._correlator = RequestCorrelator()
        self._token: str | None = normalize_token(self._credential_store.get())
        self._connection = ConnectionManager(
            config,
            self._bus,
            self._correlator,
            self._queue,
            transport_factory=transport_factory,
            token_provider=lambda: self._token,
        )

        if config.auto_connect:
            self._connect_if_possible()

    @property
    def config(self) -> MessagingClientConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    def get_state(self) -> ConnectionState:
        """Get current connection state."""
        return self._connection.state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        self._connection.connect()

    def disconnect(self, code: int = NORMAL_CLOSE_CODE, reason: str = "Client disconnected") -> None:
        self._connection.disconnect(code, reason)

    def reconnect(self) -> None:
        self._connection.reconnect()

    async def wait_connected(self, timeout: float | None = None) -> None:
        await self._connection.wait_connected(timeout)

    async def close(self) -> None:
        """Disconnect and release the transport; pending requests are left to time out."""
        await self._connection.aclose()

    async def __aenter__(self) -> "MessagingClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _connect_if_possible(self) -> None:
        try:
            self._connection.connect()
        except RuntimeError:
            logger.warning("[MessagingClient] No event loop available; connection deferred")

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def send(self, message: Mapping[str, Any]) -> None:
        """
        Send a message without waiting for a reply.

        The message is copied; the caller's object is never modified. When
        not connected the message is queued and a connection is started.
        """
        frame = clone_message(message)
        login = is_login_call(frame)

        carried = frame.get(TOKEN_FIELD)
        if carried is not None and not is_valid_token(carried):
            del frame[TOKEN_FIELD]
            if not login:
                self._emit_auth_error(
                    AuthErrorKind.OTHER, "Invalid authentication token removed from message"
                )

        if not login and frame.get(TOKEN_FIELD) is None and self._token is not None:
            frame[TOKEN_FIELD] = self._token

        self._dispatch(frame)

    def request(
        self,
        message: Mapping[str, Any] | Any,
        timeout_ms: int | None = None,
    ) -> asyncio.Future:
        """
        Send a message and return a future for its correlated response.

        Non-login requests without a structurally valid token are rejected
        immediately with ``AuthenticationError``; nothing is sent and an
        ``auth_error`` event is emitted before this method returns.

        Args:
            message: Request payload; non-mapping values are wrapped as ``{"data": value}``
            timeout_ms: Response timeout, defaults to the configured request timeout

        Returns:
            Future resolved with the response frame, or failed with
            ``AuthenticationError``, ``RequestTimeoutError``,
            ``DuplicateRequestError`` or ``ValueError`` for a non-positive timeout

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        if timeout_ms is None:
            timeout_ms = self._config.request_timeout
        elif timeout_ms <= 0:
            future.set_exception(ValueError(f"timeout_ms must be positive, got {timeout_ms}"))
            return future

        frame = clone_message(message) if isinstance(message, Mapping) else {"data": message}
        request_id = frame.get(REQUEST_ID_FIELD) or generate_request_id()
        frame[REQUEST_ID_FIELD] = request_id

        if is_login_call(frame):
            frame.pop(TOKEN_FIELD, None)
        else:
            token = normalize_token(frame.get(TOKEN_FIELD)) or self._token
            if token is None:
                logger.warning(
                    f"[MessagingClient] Rejecting request {request_id}: not authenticated"
                )
                self._emit_auth_error(AuthErrorKind.OTHER, "No valid authentication token")
                future.set_exception(AuthenticationError("Authentication required"))
                return future
            frame[TOKEN_FIELD] = token

        try:
            self._correlator.register(request_id, timeout_ms, future)
        except DuplicateRequestError as e:
            future.set_exception(e)
            return future

        error = self._dispatch(frame)
        if error is not None:
            self._correlator.reject(request_id, error)
        return future

    def _dispatch(self, frame: Frame) -> Exception | None:
        """Stamp, queue and, if needed, start connecting. Returns an encode error if any."""
        frame.setdefault(TIMESTAMP_FIELD, utc_timestamp())
        try:
            self._connection.send(frame)
        except (TypeError, ValueError) as e:
            logger.error(f"[MessagingClient] Cannot encode message: {e}")
            self._bus.emit(
                MessagingEventName.ERROR,
                ErrorEvent(kind=ErrorKind.SEND, message=f"Cannot encode message: {e}", error=e),
            )
            return e

        if self._connection.state == ConnectionState.DISCONNECTED:
            self._connect_if_possible()
        return None

    def pending_request_ids(self) -> list[str]:
        return self._correlator.pending_ids()

    def queued_count(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str | MessagingEventName, handler: EventHandler) -> "MessagingClient":
        """Register an event handler; returns self for chaining."""
        self._bus.on(event, handler)
        return self

    def off(
        self,
        event: str | MessagingEventName,
        handler: EventHandler | None = None,
    ) -> "MessagingClient":
        """Remove a handler, or all handlers for ``event`` when none is given."""
        self._bus.off(event, handler)
        return self

    def _emit_auth_error(self, kind: AuthErrorKind, message: str) -> None:
        self._bus.emit(MessagingEventName.AUTH_ERROR, AuthErrorEvent(kind=kind, message=message))

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def set_auth_token(self, token: str | None, persist: bool = False, durable: bool = False) -> None:
        """
        Replace the current token.

        Args:
            token: New bearer token; a structurally invalid value clears the token
            persist: Also write the token to the credential store
            durable: With ``persist``, keep the token beyond the session
        """
        if not is_valid_token(token):
            self.clear_auth_token()
            return

        self._token = token
        if persist:
            self._credential_store.set(token, durable=durable)

    def clear_auth_token(self) -> None:
        """Forget the token and purge it from the credential store."""
        self._token = None
        self._credential_store.clear()

    def is_authenticated(self) -> bool:
        return is_valid_token(self._token)

    def get_auth_token(self) -> str | None:
        return self._token
