"""Auth Session Service - login state on top of the messaging client.

Tracks whether the user must log in again and who is logged in:
- login(): exchange credentials for a token and store it
- ensure_authenticated(): check the in-memory or stored token
- logout(): forget the token
- auth_error events: drop the token and flag that a login is required
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from erp_client.domain.events import AuthErrorEvent, MessagingEventName
from erp_client.domain.exceptions import MessagingError
from erp_client.domain.model.messaging import is_valid_token
from erp_client.domain.model.messaging.envelope import build_login_request
from erp_client.domain.ports import CredentialStorePort
from erp_client.infrastructure.messaging import MessagingClient

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Outcome of a login attempt."""

    success: bool
    token: str | None = None
    user: dict[str, Any] | None = None
    message: str | None = None
    response: dict[str, Any] = field(default_factory=dict)


class AuthSessionService:
    """Owns the login-required flag and the current user."""

    def __init__(
        self,
        client: MessagingClient,
        credential_store: CredentialStorePort | None = None,
        on_login_required: Callable[[], Any] | None = None,
        suppress_other: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize the service and subscribe to auth errors.

        Args:
            client: Messaging client carrying requests and the token
            credential_store: Store consulted by ensure_authenticated(); usually
                the same store the client was built with
            on_login_required: Called once each time a login becomes required
            suppress_other: Returns True to ignore non-expiry auth errors,
                e.g. while a form is open or a view is loading
        """
        self._client = client
        self._credential_store = credential_store
        self._on_login_required = on_login_required
        self._suppress_other = suppress_other or (lambda: False)

        self._login_required = False
        self._current_user: dict[str, Any] | None = None

        client.on(MessagingEventName.AUTH_ERROR, self._handle_auth_error)

    @property
    def login_required(self) -> bool:
        return self._login_required

    @property
    def current_user(self) -> dict[str, Any] | None:
        return self._current_user

    async def login(self, username: str, password: str, remember: bool = False) -> LoginResult:
        """Exchange credentials for a token.

        Args:
            username: Account name
            password: Account password
            remember: Keep the token in durable storage

        Returns:
            LoginResult; transport failures and timeouts are reported as
            unsuccessful results
        """
        if not username or not password:
            return LoginResult(success=False, message="Please enter both username and password.")

        logger.info(f"[AuthSession] Attempting login for user: {username}")
        try:
            response = await self._client.request(build_login_request(username, password))
        except MessagingError as e:
            logger.warning(f"[AuthSession] Login request failed: {e.message}")
            return LoginResult(success=False, message=e.message)

        data = response.get("data")
        data = data if isinstance(data, dict) else {}
        token = data.get("token")

        if not (response.get("success") and data.get("success")) or not is_valid_token(token):
            message = data.get("message") or response.get("message") or "Login failed"
            logger.warning(f"[AuthSession] Login rejected for {username}: {message}")
            return LoginResult(success=False, message=str(message), response=response)

        user = data.get("user") if isinstance(data.get("user"), dict) else None
        self._client.set_auth_token(token, persist=True, durable=remember)
        self._current_user = user
        self._login_required = False
        logger.info(f"[AuthSession] Login successful for user: {username}")
        return LoginResult(success=True, token=token, user=user, response=response)

    def ensure_authenticated(self) -> bool:
        """Return True when a usable token is available; flag a login otherwise."""
        if self._client.is_authenticated():
            return True

        stored = self._credential_store.get() if self._credential_store is not None else None
        if is_valid_token(stored):
            self._client.set_auth_token(stored)
            return True

        if stored is not None:
            logger.warning("[AuthSession] Discarding invalid stored token")
        self._client.clear_auth_token()
        self._require_login()
        return False

    def logout(self) -> None:
        logger.info("[AuthSession] Logging out")
        self._client.clear_auth_token()
        self._current_user = None
        self._require_login()

    def _handle_auth_error(self, event: AuthErrorEvent) -> None:
        if not event.expired and self._suppress_other():
            logger.debug(f"[AuthSession] Ignoring auth error while busy: {event.message}")
            return

        logger.warning(f"[AuthSession] Authentication error ({event.kind.value}): {event.message}")
        self._client.clear_auth_token()
        self._require_login()

    def _require_login(self) -> None:
        if self._login_required:
            return
        self._login_required = True
        if self._on_login_required is not None:
            try:
                self._on_login_required()
            except Exception as e:
                logger.error(f"[AuthSession] on_login_required callback failed: {e}", exc_info=True)
