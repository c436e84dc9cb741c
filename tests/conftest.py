"""Pytest configuration and shared fixtures for udptracker tests."""

from __future__ import annotations

import logging
import os
import socket
from collections import deque
from typing import Any, Callable

import pytest

from udptracker.client import UDPTrackerClient
from udptracker.models import NetworkConfig
from udptracker.protocol.wire import (
    REQUEST_HEADER_SIZE,
    Action,
    AnnounceResponseHeader,
    ConnectResponse,
    PeerEntry,
    RequestHeader,
    ResponseHeader,
)

TRACKER_URL = "udp://tracker.example.com:6969/announce"
ISSUED_CONNECTION_ID = 0x1122334455667788


def pytest_configure(config):
    """Register project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("tracker", "marks tests as tracker tests"),
        ("config", "marks tests as configuration tests"),
        ("cli", "marks tests as CLI tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep host configuration files and UDPTRACKER_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("UDPTRACKER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    yield
    from udptracker.config.config import reset_config

    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)


def reply(action: int, transaction_id: int, body: bytes = b"") -> bytes:
    """Build an inbound datagram."""
    return ResponseHeader(action, transaction_id).encode() + body


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDatagramSocket:
    """In-memory stand-in for a connected UDP socket.

    ``responder`` is called with every sent datagram and returns the items the
    following ``recv`` calls produce. An item may be bytes, an exception to
    raise, or a zero-argument callable returning bytes. An empty inbox behaves
    like an expired read deadline.
    """

    def __init__(self, responder: Callable[[bytes], list[Any]] | None = None):
        self.responder = responder
        self.inbox: deque[Any] = deque()
        self.sent: list[bytes] = []
        self.timeouts: list[float | None] = []
        self.send_result: int | None = None
        self.send_error: OSError | None = None
        self.closed = False

    def send(self, data: bytes) -> int:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(bytes(data))
        if self.responder is not None:
            self.inbox.extend(self.responder(bytes(data)))
        return len(data) if self.send_result is None else self.send_result

    def recv(self, bufsize: int) -> bytes:
        if not self.inbox:
            raise socket.timeout("timed out")
        item = self.inbox.popleft()
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            item = item()
        return item[:bufsize]

    def settimeout(self, value: float | None) -> None:
        self.timeouts.append(value)

    def close(self) -> None:
        self.closed = True


class SimulatedTracker:
    """Responder that answers connect and announce requests like a tracker."""

    def __init__(
        self,
        connection_id: int = ISSUED_CONNECTION_ID,
        interval: int = 1800,
        leechers: int = 2,
        seeders: int = 5,
        peers: list[PeerEntry] | None = None,
    ):
        self.connection_id = connection_id
        self.interval = interval
        self.leechers = leechers
        self.seeders = seeders
        self.peers = peers or []
        self.error: str | None = None
        self.silent = False
        self.peer_bytes_override: bytes | None = None
        self.noise: Callable[[RequestHeader], list[Any]] | None = None
        self.requests: list[tuple[RequestHeader, bytes]] = []

    def __call__(self, datagram: bytes) -> list[Any]:
        header = RequestHeader.decode(datagram)
        self.requests.append((header, datagram[REQUEST_HEADER_SIZE:]))
        replies: list[Any] = self.noise(header) if self.noise else []
        if self.silent:
            return replies
        tid = header.transaction_id
        if self.error is not None:
            replies.append(reply(Action.ERROR, tid, self.error.encode("utf-8")))
        elif header.action == Action.CONNECT:
            replies.append(reply(Action.CONNECT, tid, ConnectResponse(self.connection_id).encode()))
        elif header.action == Action.ANNOUNCE:
            body = AnnounceResponseHeader(self.interval, self.leechers, self.seeders).encode()
            if self.peer_bytes_override is not None:
                body += self.peer_bytes_override
            else:
                body += b"".join(peer.encode() for peer in self.peers)
            replies.append(reply(Action.ANNOUNCE, tid, body))
        return replies

    def actions(self) -> list[Action]:
        return [header.action for header, _ in self.requests]


@pytest.fixture
def clock():
    """Fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def network_config():
    """Default network configuration."""
    return NetworkConfig()


@pytest.fixture
def tracker():
    """Simulated tracker responder."""
    return SimulatedTracker()


@pytest.fixture
def fake_socket(tracker):
    """Fake socket wired to the simulated tracker."""
    return FakeDatagramSocket(tracker)


@pytest.fixture
def make_client(network_config, clock, fake_socket):
    """Factory for clients bound to the fake socket and clock."""

    def _make(url: str = TRACKER_URL, config: NetworkConfig | None = None, sock=None):
        target = sock if sock is not None else fake_socket
        return UDPTrackerClient(
            url,
            config=config or network_config,
            socket_factory=lambda address, bind_address: target,
            clock=clock,
        )

    return _make


@pytest.fixture
def client(make_client):
    """Client bound to the simulated tracker."""
    return make_client()
