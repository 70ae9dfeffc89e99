"""Session-scoped credential store kept in process memory."""

from erp_client.domain.ports import CredentialStorePort


class InMemoryCredentialStore(CredentialStorePort):
    """Holds a token for the lifetime of the process."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str, durable: bool = False) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
