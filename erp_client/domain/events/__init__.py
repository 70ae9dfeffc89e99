from erp_client.domain.events.messaging_events import (
    AuthErrorEvent,
    AuthErrorKind,
    CloseEvent,
    ConnectedEvent,
    ErrorEvent,
    ErrorKind,
    MessagingEventName,
)

__all__ = [
    "AuthErrorEvent",
    "AuthErrorKind",
    "CloseEvent",
    "ConnectedEvent",
    "ErrorEvent",
    "ErrorKind",
    "MessagingEventName",
]
