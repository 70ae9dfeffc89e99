"""Unit tests for wire envelope helpers and token validation."""

import re

import pytest

from erp_client.domain.model.messaging import is_login_call, is_valid_token, normalize_token
from erp_client.domain.model.messaging.envelope import (
    build_heartbeat,
    build_login_request,
    clone_message,
    generate_request_id,
    is_heartbeat_ack,
)


@pytest.mark.unit
class TestTokenValidation:
    """Tests for the structural bearer-token check."""

    @pytest.mark.parametrize("token", ["a.b.c", "header.payload.signature"])
    def test_valid_tokens(self, token):
        assert is_valid_token(token) is True

    @pytest.mark.parametrize(
        "token",
        [None, "", "abc", "a.b", "a.b.c.d", "a..c", ".b.c", "a.b.", 123, ["a", "b", "c"]],
    )
    def test_invalid_tokens(self, token):
        assert is_valid_token(token) is False

    def test_normalize_token(self):
        assert normalize_token("a.b.c") == "a.b.c"
        assert normalize_token("abc") is None


@pytest.mark.unit
class TestEnvelope:
    """Tests for envelope helpers."""

    def test_request_id_format(self):
        """Test ids look like req_<epoch-ms>_<7 chars>."""
        request_id = generate_request_id()

        assert re.fullmatch(r"req_\d{13,}_[a-z0-9]{7}", request_id)

    def test_request_ids_are_unique(self):
        ids = {generate_request_id() for _ in range(200)}

        assert len(ids) == 200

    def test_clone_message_is_deep(self):
        """Test the caller's nested data is not shared with the clone."""
        original = {"type": "view", "params": {"filters": ["a"]}}

        clone = clone_message(original)
        clone["params"]["filters"].append("b")
        clone["token"] = "x.y.z"

        assert original == {"type": "view", "params": {"filters": ["a"]}}

    def test_is_login_call(self):
        assert is_login_call(build_login_request("admin", "secret")) is True
        assert is_login_call({"type": "controller", "name": "Auth", "action": "logout"}) is False
        assert is_login_call({"type": "controller", "name": "Orders", "action": "login"}) is False

    def test_login_request_shape(self):
        assert build_login_request("admin", "secret") == {
            "type": "controller",
            "name": "Auth",
            "action": "login",
            "parameters": {"username": "admin", "password": "secret"},
        }

    def test_heartbeat_probe(self):
        probe = build_heartbeat("a.b.c")

        assert probe["type"] == "heartbeat"
        assert probe["token"] == "a.b.c"
        assert isinstance(probe["timestamp"], int)

    @pytest.mark.parametrize("frame_type", ["pong", "heartbeat_response"])
    def test_heartbeat_acks(self, frame_type):
        assert is_heartbeat_ack({"type": frame_type}) is True

    def test_heartbeat_probe_is_not_an_ack(self):
        assert is_heartbeat_ack({"type": "heartbeat"}) is False
