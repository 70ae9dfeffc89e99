"""Pytest configuration and shared fixtures for testing."""

import asyncio
import json
from typing import Any

import pytest

from erp_client.domain.exceptions import TransportClosedError, TransportError
from erp_client.domain.model.messaging import MessagingClientConfig
from erp_client.domain.ports import DuplexTransportPort
from erp_client.infrastructure.credentials import InMemoryCredentialStore

TEST_URL = "ws://erp.test/ws"
VALID_TOKEN = "header.payload.signature"
OTHER_VALID_TOKEN = "h2.p2.s2"


class FakeTransport(DuplexTransportPort):
    """In-memory stand-in for the network.

    Frames written by the client are recorded in ``sent``; frames pushed with
    ``feed`` are returned by ``receive``. ``drop`` ends the connection the way
    a server or network failure would.
    """

    def __init__(self) -> None:
        self.url: str | None = None
        self.sent: list[str] = []
        self.close_calls: list[tuple[int, str]] = []
        self.open_calls = 0
        self.fail_open: Exception | None = None
        self.fail_send: Exception | None = None
        self.open_gate: asyncio.Event | None = None
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self, url: str) -> None:
        self.open_calls += 1
        if self.open_gate is not None:
            await self.open_gate.wait()
        if self.fail_open is not None:
            raise self.fail_open
        self.url = url
        self._closed = False

    async def send(self, data: str) -> None:
        if self.fail_send is not None:
            raise self.fail_send
        if self._closed:
            raise TransportClosedError()
        self.sent.append(data)

    async def receive(self) -> str:
        item = await self._inbox.get()
        if isinstance(item, BaseException):
            self._closed = True
            raise item
        return item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls.append((code, reason))
        self._closed = True

    # Test helpers

    def feed(self, frame: dict[str, Any] | str) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self, code: int = 1006, reason: str = "", was_clean: bool = False) -> None:
        self._inbox.put_nowait(TransportClosedError(code=code, reason=reason, was_clean=was_clean))

    def fail(self, error: Exception) -> None:
        self._inbox.put_nowait(error)

    def sent_frames(self) -> list[dict[str, Any]]:
        return [json.loads(data) for data in self.sent]


class FakeTransportFactory:
    """Builds FakeTransports and remembers every one it built."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []
        self.failing_opens = 0
        self.hold_open = False

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        if self.failing_opens > 0:
            self.failing_opens -= 1
            transport.fail_open = TransportError("Connection refused")
        if self.hold_open:
            transport.open_gate = asyncio.Event()
        self.created.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.created[-1]


async def _settle(rounds: int = 10) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# --- Messaging Fixtures ---


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    """Transport factory producing in-memory transports."""
    return FakeTransportFactory()


@pytest.fixture
def settle():
    """Coroutine function that yields to the event loop a few times."""
    return _settle


@pytest.fixture
def client_config() -> MessagingClientConfig:
    """Fast timings, no auto-connect and no heartbeat."""
    return MessagingClientConfig(
        url=TEST_URL,
        reconnect_interval=20,
        max_reconnect_interval=1000,
        reconnect_decay=2.0,
        heartbeat_interval=0,
        request_timeout=1000,
        auto_connect=False,
    )


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def valid_token() -> str:
    return VALID_TOKEN


@pytest.fixture
def other_valid_token() -> str:
    return OTHER_VALID_TOKEN
