"""Connection lifecycle states."""

from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle state of the duplex connection.

    disconnected -> connecting -> connected -> closing -> disconnected.
    An abnormal close returns straight to disconnected.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
