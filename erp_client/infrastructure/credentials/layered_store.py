"""Credential store combining a durable and a session-scoped backend."""

from erp_client.domain.ports import CredentialStorePort


class LayeredCredentialStore(CredentialStorePort):
    """
    Reads the durable store first, then the session store.

    ``set(durable=True)`` corresponds to "remember me"; otherwise the token
    only lives for the session. ``clear`` purges both.
    """

    def __init__(self, durable: CredentialStorePort, session: CredentialStorePort) -> None:
        self._durable = durable
        self._session = session

    def get(self) -> str | None:
        return self._durable.get() or self._session.get()

    def set(self, token: str, durable: bool = False) -> None:
        if durable:
            self._durable.set(token, durable=True)
        else:
            self._session.set(token)

    def clear(self) -> None:
        self._durable.clear()
        self._session.clear()
