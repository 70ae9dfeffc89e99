"""Configuration management for the ERP messaging client."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Endpoint Settings
    ws_url: str | None = Field(default=None, alias="ERP_WS_URL")
    ws_host: str | None = Field(default=None, alias="ERP_WS_HOST")
    ws_path: str = Field(default="/ws", alias="ERP_WS_PATH")
    ws_secure: bool = Field(default=False, alias="ERP_WS_SECURE")

    # Reconnection Settings
    reconnect_interval_ms: int = Field(default=1000, alias="ERP_RECONNECT_INTERVAL_MS")
    max_reconnect_interval_ms: int = Field(default=30000, alias="ERP_MAX_RECONNECT_INTERVAL_MS")
    reconnect_decay: float = Field(default=1.5, alias="ERP_RECONNECT_DECAY")

    # Heartbeat Settings (interval 0 disables heartbeating)
    heartbeat_interval_ms: int = Field(default=30000, alias="ERP_HEARTBEAT_INTERVAL_MS")
    heartbeat_timeout_ms: int = Field(default=10000, alias="ERP_HEARTBEAT_TIMEOUT_MS")

    # Request Settings
    request_timeout_ms: int = Field(default=10000, alias="ERP_REQUEST_TIMEOUT_MS")

    auto_connect: bool = Field(default=True, alias="ERP_AUTO_CONNECT")
    debug: bool = Field(default=False, alias="ERP_DEBUG")

    # Durable credential storage
    credentials_file: Path = Field(
        default=Path.home() / ".erp_client" / "credentials.json",
        alias="ERP_CREDENTIALS_FILE",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("ws_path", mode="before")
    @classmethod
    def normalize_ws_path(cls, value: str | None) -> str:
        """Ensure the path starts with a slash."""
        if not value:
            return "/ws"
        value = str(value).strip()
        return value if value.startswith("/") else f"/{value}"

    @property
    def derived_ws_url(self) -> str | None:
        """Build the websocket URL from host, path and scheme."""
        if not self.ws_host:
            return None
        scheme = "wss" if self.ws_secure else "ws"
        return f"{scheme}://{self.ws_host}{self.ws_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
