from abc import ABC, abstractmethod
from types import TracebackType


class DuplexTransportPort(ABC):
    """Port for a single-use, full-duplex text frame connection."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the connection has been closed or was never opened."""

    @abstractmethod
    async def open(self, url: str) -> None:
        """
        Open the connection.

        Args:
            url: Endpoint to connect to

        Raises:
            TransportError: If the connection cannot be established
        """

    @abstractmethod
    async def send(self, data: str) -> None:
        """
        Send one text frame.

        Raises:
            TransportClosedError: If the connection is not open
            TransportError: If the frame cannot be written
        """

    @abstractmethod
    async def receive(self) -> str:
        """
        Wait for the next inbound text frame.

        Raises:
            TransportClosedError: When the connection ends, carrying the
                close code, reason and whether the close was clean
        """

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection.

        Should be idempotent.
        """

    async def __aenter__(self) -> "DuplexTransportPort":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
