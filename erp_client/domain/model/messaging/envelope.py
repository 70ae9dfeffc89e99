"""
Wire envelope helpers.

Every frame exchanged with the application server is a JSON object with a
``type`` discriminator, an optional ``requestId`` and an optional ``token``.
Responses additionally carry ``success``/``message``/``result``/``error``.
"""

import copy
import secrets
import string
import time
from datetime import UTC, datetime
from typing import Any

# Envelope field names
TYPE_FIELD = "type"
REQUEST_ID_FIELD = "requestId"
TOKEN_FIELD = "token"
TIMESTAMP_FIELD = "timestamp"

# Heartbeat channel
HEARTBEAT_TYPE = "heartbeat"
HEARTBEAT_ACK_TYPES = frozenset({"heartbeat_response", "pong"})

# Login call shape: {"type": "controller", "name": "Auth", "action": "login"}
LOGIN_TYPE = "controller"
LOGIN_CONTROLLER = "Auth"
LOGIN_ACTION = "login"

_REQUEST_ID_ALPHABET = string.ascii_lowercase + string.digits

Frame = dict[str, Any]


def clone_message(message: dict[str, Any]) -> Frame:
    """Deep-copy an outbound message so the caller's object is never mutated."""
    return copy.deepcopy(dict(message))


def generate_request_id() -> str:
    """Generate a request id of the form ``req_<epoch-ms>_<7 chars>``."""
    suffix = "".join(secrets.choice(_REQUEST_ID_ALPHABET) for _ in range(7))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


def is_login_call(message: dict[str, Any]) -> bool:
    """Check whether ``message`` is the authentication login operation."""
    return (
        message.get(TYPE_FIELD) == LOGIN_TYPE
        and message.get("name") == LOGIN_CONTROLLER
        and message.get("action") == LOGIN_ACTION
    )


def is_heartbeat_ack(frame: dict[str, Any]) -> bool:
    return frame.get(TYPE_FIELD) in HEARTBEAT_ACK_TYPES


def build_heartbeat(token: str | None) -> Frame:
    """Build a liveness probe frame."""
    return {
        TYPE_FIELD: HEARTBEAT_TYPE,
        TIMESTAMP_FIELD: int(time.time() * 1000),
        TOKEN_FIELD: token,
    }


def build_login_request(username: str, password: str) -> Frame:
    """Build the controller call that exchanges credentials for a token."""
    return {
        TYPE_FIELD: LOGIN_TYPE,
        "name": LOGIN_CONTROLLER,
        "action": LOGIN_ACTION,
        "parameters": {"username": username, "password": password},
    }
