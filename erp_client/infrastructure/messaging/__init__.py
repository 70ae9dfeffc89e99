"""Messaging infrastructure: event bus, queue, correlator, connection and client facade."""

from erp_client.infrastructure.messaging.auth_classifier import classify_auth_failure
from erp_client.infrastructure.messaging.connection_manager import ConnectionManager
from erp_client.infrastructure.messaging.event_bus import EventBus, EventHandler
from erp_client.infrastructure.messaging.frame_codec import decode_frame, encode_frame
from erp_client.infrastructure.messaging.messaging_client import MessagingClient
from erp_client.infrastructure.messaging.outbound_queue import OutboundQueue
from erp_client.infrastructure.messaging.request_correlator import (
    PendingRequest,
    RequestCorrelator,
)

__all__ = [
    "ConnectionManager",
    "EventBus",
    "EventHandler",
    "MessagingClient",
    "OutboundQueue",
    "PendingRequest",
    "RequestCorrelator",
    "classify_auth_failure",
    "decode_frame",
    "encode_frame",
]
