"""Typed events published by the messaging client.

Collaborators subscribe by event name; each name carries one payload type:

    connected  -> ConnectedEvent
    close      -> CloseEvent
    error      -> ErrorEvent
    auth_error -> AuthErrorEvent
    message    -> dict (the decoded, uncorrelated frame)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessagingEventName(str, Enum):
    """Names of events produced for collaborators."""

    CONNECTED = "connected"
    CLOSE = "close"
    ERROR = "error"
    AUTH_ERROR = "auth_error"
    MESSAGE = "message"


class ErrorKind(str, Enum):
    """Source of an ``error`` event."""

    TRANSPORT = "transport"
    HANDSHAKE = "handshake"
    DECODE = "decode"
    SEND = "send"
    QUEUE_SEND = "queue_send"


class AuthErrorKind(str, Enum):
    """Discriminator carried by ``auth_error`` events."""

    EXPIRED = "expired"
    OTHER = "other"


@dataclass(frozen=True)
class ConnectedEvent:
    url: str


@dataclass(frozen=True)
class CloseEvent:
    code: int
    reason: str
    was_clean: bool


@dataclass(frozen=True)
class ErrorEvent:
    """A recoverable error reported to collaborators.

    Attributes:
        kind: Where the error originated
        message: Human-readable description
        error: The underlying exception, if any
        raw: Raw frame data for decode errors
    """

    kind: ErrorKind
    message: str
    error: Exception | None = None
    raw: Any = None


@dataclass(frozen=True)
class AuthErrorEvent:
    """An authentication failure, raised locally or signalled by the server.

    Attributes:
        kind: "expired" for token expiry, "other" for anything else
        message: Human-readable description
        frame: The server frame that signalled the failure, if any
    """

    kind: AuthErrorKind
    message: str
    frame: dict[str, Any] | None = field(default=None, compare=False)

    @property
    def expired(self) -> bool:
        return self.kind == AuthErrorKind.EXPIRED
