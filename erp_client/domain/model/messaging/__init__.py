"""Messaging domain models."""

from erp_client.domain.model.messaging.auth_token import is_valid_token, normalize_token
from erp_client.domain.model.messaging.client_config import MessagingClientConfig
from erp_client.domain.model.messaging.connection_state import ConnectionState
from erp_client.domain.model.messaging.envelope import Frame, is_login_call

__all__ = [
    "ConnectionState",
    "Frame",
    "MessagingClientConfig",
    "is_login_call",
    "is_valid_token",
    "normalize_token",
]
