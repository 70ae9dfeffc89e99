"""Resilient messaging client for the ERP application server."""

from erp_client.application.services import AuthSessionService, LoginResult
from erp_client.domain.events import (
    AuthErrorEvent,
    AuthErrorKind,
    CloseEvent,
    ConnectedEvent,
    ErrorEvent,
    ErrorKind,
    MessagingEventName,
)
from erp_client.domain.model.messaging import ConnectionState, MessagingClientConfig
from erp_client.infrastructure.messaging import MessagingClient

__version__ = "0.1.0"

__all__ = [
    "AuthErrorEvent",
    "AuthErrorKind",
    "AuthSessionService",
    "CloseEvent",
    "ConnectedEvent",
    "ConnectionState",
    "ErrorEvent",
    "ErrorKind",
    "LoginResult",
    "MessagingClient",
    "MessagingClientConfig",
    "MessagingEventName",
]
