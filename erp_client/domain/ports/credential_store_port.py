from abc import ABC, abstractmethod


class CredentialStorePort(ABC):
    """Port for bearer-token storage.

    Backends decide where a token lives (memory, a file, a keyring); the
    messaging client only reads, writes and purges through this contract.
    """

    @abstractmethod
    def get(self) -> str | None:
        """
        Return the stored token.

        Returns:
            The raw stored value, or None when nothing is stored
        """

    @abstractmethod
    def set(self, token: str, durable: bool = False) -> None:
        """
        Store a token.

        Args:
            token: Bearer token to store
            durable: Persist beyond the current session when the backend
                distinguishes session and durable storage
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove any stored token from every backing store."""
