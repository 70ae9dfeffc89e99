"""Classification of server frames that signal an authentication failure.

Structured error codes are checked first. Servers that only report a
human-readable ``message`` or ``error`` string are handled by substring
matching, which keeps compatibility with the existing application server.
"""

from typing import Any

from erp_client.domain.events import AuthErrorKind

EXPIRED_CODES = frozenset({"token_expired", "jwt_expired"})
OTHER_CODES = frozenset({"unauthorized", "auth_required", "invalid_token"})

# Substring shim; order matters, expiry is checked before generic failures
EXPIRED_MARKERS = ("jwt expired", "Invalid or expired token")
OTHER_MARKERS = ("Unauthorized", "authentication", "token")


def _structured_kind(frame: dict[str, Any]) -> AuthErrorKind | None:
    if frame.get("type") == "token_expired":
        return AuthErrorKind.EXPIRED

    code = frame.get("code", frame.get("errorCode"))
    if not isinstance(code, str):
        return None
    code = code.lower()
    if code in EXPIRED_CODES:
        return AuthErrorKind.EXPIRED
    if code in OTHER_CODES:
        return AuthErrorKind.OTHER
    return None


def _marker_kind(text: Any) -> AuthErrorKind | None:
    if not isinstance(text, str):
        return None
    if any(marker in text for marker in EXPIRED_MARKERS):
        return AuthErrorKind.EXPIRED
    if any(marker in text for marker in OTHER_MARKERS):
        return AuthErrorKind.OTHER
    return None


def _message_kind(frame: dict[str, Any]) -> AuthErrorKind | None:
    # A server ``error`` string is checked whatever ``success`` says
    kind = _marker_kind(frame.get("error"))
    if kind is not None:
        return kind
    if frame.get("success") is not False:
        return None
    return _marker_kind(frame.get("message"))


def classify_auth_failure(frame: dict[str, Any]) -> AuthErrorKind | None:
    """
    Decide whether ``frame`` reports an authentication failure.

    Returns:
        The failure kind, or None if the frame is not an auth failure
    """
    return _structured_kind(frame) or _message_kind(frame)
