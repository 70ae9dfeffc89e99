"""
Messaging client configuration value object.

Durations are expressed in milliseconds, matching the options the browser
client accepted; ``*_seconds`` properties feed asyncio timers.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from erp_client.domain.exceptions import ConfigurationError

if TYPE_CHECKING:
    from erp_client.configuration.config import Settings


@dataclass(frozen=True)
class MessagingClientConfig:
    """
    Messaging client configuration.

    Contains the endpoint plus the reconnection, heartbeat and request
    timing used by the connection manager and the request correlator.
    """

    url: str

    # Reconnection backoff
    reconnect_interval: int = 1000  # milliseconds
    max_reconnect_interval: int = 30000  # milliseconds
    reconnect_decay: float = 1.5

    # Liveness probing (0 disables heartbeating)
    heartbeat_interval: int = 30000  # milliseconds
    heartbeat_timeout: int = 10000  # milliseconds

    request_timeout: int = 10000  # milliseconds
    auto_connect: bool = True
    debug: bool = False

    def __post_init__(self):
        """Validate timing and endpoint settings."""
        if not self.url:
            raise ConfigurationError("A websocket URL is required")
        if self.reconnect_interval <= 0:
            raise ConfigurationError("reconnect_interval must be positive")
        if self.max_reconnect_interval < self.reconnect_interval:
            raise ConfigurationError("max_reconnect_interval must be >= reconnect_interval")
        if self.reconnect_decay < 1:
            raise ConfigurationError("reconnect_decay must be >= 1")
        if self.heartbeat_interval < 0:
            raise ConfigurationError("heartbeat_interval must not be negative")
        if self.heartbeat_interval and self.heartbeat_timeout <= 0:
            raise ConfigurationError("heartbeat_timeout must be positive")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

    @property
    def reconnect_interval_seconds(self) -> float:
        return self.reconnect_interval / 1000.0

    @property
    def max_reconnect_interval_seconds(self) -> float:
        return self.max_reconnect_interval / 1000.0

    @property
    def heartbeat_interval_seconds(self) -> float:
        return self.heartbeat_interval / 1000.0

    @property
    def heartbeat_timeout_seconds(self) -> float:
        return self.heartbeat_timeout / 1000.0

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout / 1000.0

    @property
    def heartbeat_enabled(self) -> bool:
        return self.heartbeat_interval > 0

    def backoff_delay(self, attempts: int) -> float:
        """Reconnect delay in milliseconds after ``attempts`` scheduled reconnects."""
        attempts = max(0, attempts)
        try:
            delay = self.reconnect_interval * (self.reconnect_decay**attempts)
        except OverflowError:
            return float(self.max_reconnect_interval)
        return float(min(self.max_reconnect_interval, delay))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "reconnect_interval": self.reconnect_interval,
            "max_reconnect_interval": self.max_reconnect_interval,
            "reconnect_decay": self.reconnect_decay,
            "heartbeat_interval": self.heartbeat_interval,
            "heartbeat_timeout": self.heartbeat_timeout,
            "request_timeout": self.request_timeout,
            "auto_connect": self.auto_connect,
            "debug": self.debug,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessagingClientConfig":
        """Create from dictionary."""
        return cls(
            url=data.get("url") or "",
            reconnect_interval=data.get("reconnect_interval", 1000),
            max_reconnect_interval=data.get("max_reconnect_interval", 30000),
            reconnect_decay=data.get("reconnect_decay", 1.5),
            heartbeat_interval=data.get("heartbeat_interval", 30000),
            heartbeat_timeout=data.get("heartbeat_timeout", 10000),
            request_timeout=data.get("request_timeout", 10000),
            auto_connect=data.get("auto_connect", True),
            debug=data.get("debug", False),
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "MessagingClientConfig":
        """Create from environment settings, deriving the URL when unset."""
        url = settings.ws_url or settings.derived_ws_url
        if not url:
            raise ConfigurationError(
                "No websocket URL configured; set ERP_WS_URL or ERP_WS_HOST"
            )
        return cls(
            url=url,
            reconnect_interval=settings.reconnect_interval_ms,
            max_reconnect_interval=settings.max_reconnect_interval_ms,
            reconnect_decay=settings.reconnect_decay,
            heartbeat_interval=settings.heartbeat_interval_ms,
            heartbeat_timeout=settings.heartbeat_timeout_ms,
            request_timeout=settings.request_timeout_ms,
            auto_connect=settings.auto_connect,
            debug=settings.debug,
        )
