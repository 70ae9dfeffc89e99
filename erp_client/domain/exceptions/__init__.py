"""
Domain exceptions for the ERP messaging client.

This module provides a hierarchy of messaging-specific exceptions that
are raised or surfaced by the transport, the correlator and the client.
"""

from erp_client.domain.exceptions.messaging_exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateRequestError,
    FrameDecodeError,
    MessagingError,
    RequestTimeoutError,
    TransportClosedError,
    TransportError,
)

__all__ = [
    "MessagingError",
    "ConfigurationError",
    "TransportError",
    "TransportClosedError",
    "FrameDecodeError",
    "AuthenticationError",
    "RequestTimeoutError",
    "DuplicateRequestError",
]
