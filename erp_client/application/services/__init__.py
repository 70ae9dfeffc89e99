"""Application services."""

from erp_client.application.services.auth_session_service import (
    AuthSessionService,
    LoginResult,
)

__all__ = ["AuthSessionService", "LoginResult"]
