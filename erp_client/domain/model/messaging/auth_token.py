"""Bearer token shape validation.

Tokens are opaque to the client; the only check performed is structural:
three non-empty dot-separated segments (header.payload.signature).
"""

from typing import Any

TOKEN_SEGMENT_COUNT = 3


def is_valid_token(token: Any) -> bool:
    """Return True if ``token`` has the structural shape of a bearer token."""
    if not isinstance(token, str):
        return False
    segments = token.split(".")
    if len(segments) != TOKEN_SEGMENT_COUNT:
        return False
    return all(segments)


def normalize_token(token: Any) -> str | None:
    """Return ``token`` if it is structurally valid, otherwise None."""
    return token if is_valid_token(token) else None
