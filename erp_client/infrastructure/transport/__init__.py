"""Duplex transports for the messaging client."""

from erp_client.infrastructure.transport.base import ABNORMAL_CLOSE_CODE, BaseTransport
from erp_client.infrastructure.transport.websocket import WebSocketTransport

__all__ = [
    "ABNORMAL_CLOSE_CODE",
    "BaseTransport",
    "WebSocketTransport",
]
