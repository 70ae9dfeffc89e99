"""
Messaging-related domain exceptions.

These exceptions describe every failure the messaging client can surface,
either as a rejected request future or as the payload of an ``error`` /
``auth_error`` event. None of them is fatal to the process; only
``ConfigurationError`` escapes client construction.

Exception Hierarchy:
    MessagingError (base)
    ├── ConfigurationError     - Invalid or missing client configuration
    ├── TransportError         - Low-level open/send/close failure
    │   └── TransportClosedError - Connection ended by peer or network
    ├── FrameDecodeError       - Inbound frame could not be decoded
    ├── AuthenticationError    - Missing, invalid or expired bearer token
    ├── RequestTimeoutError    - No correlated response within the timeout
    └── DuplicateRequestError  - A live request already uses the request id

Usage:
    from erp_client.domain.exceptions import RequestTimeoutError

    try:
        response = await client.request({"type": "view", "name": "customers"})
    except RequestTimeoutError as e:
        logger.warning(f"View load timed out after {e.timeout_ms}ms")
"""

from typing import Any, Optional


class MessagingError(Exception):
    """
    Base exception for all messaging-client errors.

    Attributes:
        message: Human-readable error description
        original_error: The underlying exception (if any)
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class ConfigurationError(MessagingError):
    """Raised when the client cannot be built from the given configuration."""


class TransportError(MessagingError):
    """Raised when the duplex transport fails to open, send or close."""


class TransportClosedError(TransportError):
    """
    Raised when the connection has been closed.

    Attributes:
        code: Close code reported by the transport
        reason: Close reason reported by the transport
        was_clean: Whether the closing handshake completed
    """

    def __init__(
        self,
        message: str = "Connection closed",
        code: int = 1006,
        reason: str = "",
        was_clean: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.code = code
        self.reason = reason
        self.was_clean = was_clean
        super().__init__(
            message,
            original_error=original_error,
            details={"code": code, "reason": reason, "was_clean": was_clean},
        )


class FrameDecodeError(MessagingError):
    """
    Raised when an inbound frame is not a JSON object.

    Attributes:
        raw: The raw frame data that failed to decode
    """

    def __init__(
        self,
        raw: Any,
        message: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.raw = raw
        super().__init__(
            message or "Failed to decode inbound frame",
            original_error=original_error,
        )


class AuthenticationError(MessagingError):
    """
    Raised when a request cannot be authenticated.

    Attributes:
        kind: "expired" or "other"
    """

    def __init__(self, message: str = "Authentication required", kind: str = "other") -> None:
        self.kind = kind
        super().__init__(message, details={"kind": kind})


class RequestTimeoutError(MessagingError):
    """
    Raised when no response arrives for a request in time.

    Attributes:
        request_id: The request identifier that expired
        timeout_ms: The timeout that elapsed, in milliseconds
    """

    def __init__(self, request_id: str, timeout_ms: int) -> None:
        self.request_id = request_id
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Request {request_id} timed out after {timeout_ms}ms",
            details={"request_id": request_id, "timeout_ms": timeout_ms},
        )


class DuplicateRequestError(MessagingError):
    """Raised when a request id is reused while its first request is still pending."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(
            f"Request {request_id} is already pending",
            details={"request_id": request_id},
        )
