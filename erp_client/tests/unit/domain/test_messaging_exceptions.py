"""Unit tests for messaging exceptions."""

import pytest

from erp_client.domain.exceptions import (
    AuthenticationError,
    DuplicateRequestError,
    FrameDecodeError,
    MessagingError,
    RequestTimeoutError,
    TransportClosedError,
    TransportError,
)


@pytest.mark.unit
class TestMessagingExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(TransportClosedError, TransportError)
        for exc_type in (
            TransportError,
            FrameDecodeError,
            AuthenticationError,
            RequestTimeoutError,
            DuplicateRequestError,
        ):
            assert issubclass(exc_type, MessagingError)

    def test_str_includes_cause(self):
        error = TransportError("send failed", original_error=OSError("broken pipe"))

        assert str(error) == "send failed (caused by: broken pipe)"

    def test_request_timeout_message(self):
        error = RequestTimeoutError("req_1_abcdefg", 50)

        assert str(error) == "Request req_1_abcdefg timed out after 50ms"
        assert error.details == {"request_id": "req_1_abcdefg", "timeout_ms": 50}

    def test_transport_closed_details(self):
        error = TransportClosedError(code=1001, reason="going away", was_clean=True)

        assert error.code == 1001
        assert error.was_clean is True
        assert error.details["reason"] == "going away"

    def test_frame_decode_error_keeps_raw(self):
        error = FrameDecodeError("not json")

        assert error.raw == "not json"
        assert error.message == "Failed to decode inbound frame"

    def test_authentication_error_defaults(self):
        error = AuthenticationError()

        assert str(error) == "Authentication required"
        assert error.kind == "other"
