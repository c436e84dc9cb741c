"""UDP Tracker Client (BEP 15) for BitTorrent.

Blocking client that obtains and refreshes a connection token from a UDP
tracker and correlates request/response datagrams by transaction id over a
transport that may drop, duplicate, delay or reorder packets.

A client instance owns its socket, connection token and contiguous-timeout
counter. It is not safe for concurrent use; give each concurrent caller its
own client or serialise access externally.
"""

from __future__ import annotations

import logging
import random
import socket
import time
from typing import Callable, Protocol
from urllib.parse import urlparse

from udptracker.config.config import get_network_config
from udptracker.models import NetworkConfig
from udptracker.protocol.connection import ConnectionToken
from udptracker.protocol.wire import (
    PROTOCOL_ID,
    Action,
    AnnounceRequestBody,
    ConnectResponse,
    RequestHeader,
    decode_announce_response,
    decode_error_message,
    decode_response,
    encode_request,
    encode_url_data,
)
from udptracker.tracker.base import AnnounceRequest, AnnounceResponse, Peer
from udptracker.utils.backoff import ExponentialBackoff
from udptracker.utils.exceptions import (
    ConfigurationError,
    DecodeError,
    NotConnectedError,
    TrackerError,
    TrackerTimeoutError,
    TransportError,
)
from udptracker.utils.logging_config import LoggingContext


class DatagramSocket(Protocol):
    """Subset of :class:`socket.socket` the client relies on."""

    def send(self, data: bytes) -> int: ...

    def recv(self, bufsize: int) -> bytes: ...

    def settimeout(self, value: float | None) -> None: ...

    def close(self) -> None: ...


SocketFactory = Callable[[tuple[str, int], str | None], DatagramSocket]


def open_udp_socket(address: tuple[str, int], bind_address: str | None = None) -> socket.socket:
    """Open a UDP socket connected to ``address``."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        if bind_address:
            sock.bind((bind_address, 0))
        sock.connect(address)
    except OSError:
        sock.close()
        raise
    return sock


def new_transaction_id() -> int:
    """Return a random 32-bit transaction id."""
    return random.getrandbits(32)


def _parse_udp_url(url: str) -> tuple[str, int, str]:
    """Split a ``udp://`` tracker URL into host, port and request path."""
    parsed = urlparse(url)
    if parsed.scheme.lower() != "udp":
        msg = f"Not a UDP tracker URL: {url}"
        raise ConfigurationError(msg)
    try:
        port = parsed.port
    except ValueError as e:
        msg = f"Invalid port in tracker URL: {url}"
        raise ConfigurationError(msg) from e
    if not parsed.hostname or port is None:
        msg = f"Tracker URL needs a host and port: {url}"
        raise ConfigurationError(msg)
    path = parsed.path
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return parsed.hostname, port, path


class UDPTrackerClient:
    """Blocking UDP tracker client."""

    def __init__(
        self,
        url: str,
        config: NetworkConfig | None = None,
        socket_factory: SocketFactory | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize UDP tracker client.

        Args:
            url: Tracker URL, ``udp://host:port[/path]``
            config: Network configuration; defaults to the global config
            socket_factory: Opens the datagram socket on first use
            clock: Monotonic time source in seconds

        """
        self.url = url
        self.host, self.port, self.url_data = _parse_udp_url(url)
        self.config = config if config is not None else get_network_config()

        self.backoff = ExponentialBackoff(
            base_delay=self.config.tracker_base_timeout,
            max_exponent=self.config.tracker_max_backoff_exponent,
        )
        self.token = ConnectionToken(ttl=self.config.connection_id_ttl)
        self.contiguous_timeouts = 0

        self._socket: DatagramSocket | None = None
        self._socket_factory: SocketFactory = socket_factory or open_udp_socket
        self._clock = clock or time.monotonic

        self.logger = logging.getLogger(__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.url!r})"

    def __enter__(self) -> UDPTrackerClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        """Whether the cached connection token is currently valid."""
        return self.token.is_valid(self._clock())

    def current_timeout(self) -> float:
        """Read deadline in seconds for the next request."""
        return self.backoff.next_delay(self.contiguous_timeouts)

    def close(self) -> None:
        """Close the socket and forget the connection token."""
        if self._socket is not None:
            try:
                self._socket.close()
            finally:
                self._socket = None
        self.token.reset()

    def _ensure_socket(self) -> DatagramSocket:
        if self._socket is None:
            try:
                self._socket = self._socket_factory(
                    (self.host, self.port),
                    self.config.bind_address,
                )
            except OSError as e:
                msg = f"Failed to open socket to {self.host}:{self.port}"
                raise TransportError(msg, {"error": str(e)}) from e
            self.logger.debug("Opened socket to %s:%s", self.host, self.port)
        return self._socket

    def _write(self, sock: DatagramSocket, datagram: bytes) -> None:
        try:
            sent = sock.send(datagram)
        except OSError as e:
            msg = f"Failed to send to {self.host}:{self.port}"
            raise TransportError(msg, {"error": str(e)}) from e
        if sent != len(datagram):
            msg = "Short write on datagram socket"
            raise TransportError(msg, {"sent": sent, "expected": len(datagram)})

    def request(
        self,
        action: Action,
        body: bytes = b"",
        trailer: bytes = b"",
        connection_id: int | None = None,
    ) -> bytes:
        """Send one request datagram and return the correlated response body.

        Datagrams too short for a header, or whose transaction id or action do
        not match, are discarded without extending the read deadline.

        Raises:
            TrackerTimeoutError: No correlated response before the deadline
            TransportError: Socket failure unrelated to the deadline
            TrackerError: The tracker answered with an Error action

        """
        transaction_id = new_transaction_id()
        header = RequestHeader(
            self.token.connection_id if connection_id is None else connection_id,
            action,
            transaction_id,
        )
        datagram = encode_request(header, body, trailer)
        sock = self._ensure_socket()
        self._write(sock, datagram)

        timeout = self.current_timeout()
        deadline = self._clock() + timeout
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise self._timed_out(action, timeout)
            try:
                sock.settimeout(remaining)
                data = sock.recv(self.config.max_datagram_size)
            except socket.timeout as e:
                raise self._timed_out(action, timeout) from e
            except OSError as e:
                msg = f"Failed to receive from {self.host}:{self.port}"
                raise TransportError(msg, {"error": str(e)}) from e

            try:
                response, response_body = decode_response(data)
            except DecodeError:
                self.logger.debug("Discarding %d-byte datagram", len(data))
                continue

            if response.transaction_id != transaction_id:
                self.logger.debug(
                    "Discarding datagram for transaction %08x (waiting for %08x)",
                    response.transaction_id,
                    transaction_id,
                )
                continue
            if response.action not in (action, Action.ERROR):
                self.logger.debug(
                    "Discarding action %s datagram (waiting for %s)",
                    response.action,
                    action.name,
                )
                continue

            self.contiguous_timeouts = 0
            if response.action == Action.ERROR:
                message = decode_error_message(response_body)
                self.logger.warning("Tracker %s returned error: %s", self.url, message)
                raise TrackerError(message, {"url": self.url, "action": action.name})
            return response_body

    def _timed_out(self, action: Action, timeout: float) -> TrackerTimeoutError:
        self.contiguous_timeouts += 1
        self.logger.debug(
            "%s to %s timed out after %.0fs (contiguous timeouts: %d)",
            action.name,
            self.url,
            timeout,
            self.contiguous_timeouts,
        )
        msg = f"Timed out waiting for {action.name.lower()} response"
        return TrackerTimeoutError(
            msg,
            {
                "url": self.url,
                "timeout": timeout,
                "contiguous_timeouts": self.contiguous_timeouts,
            },
        )

    def connect(self, force: bool = False) -> int:
        """Ensure a valid connection token, performing the handshake if needed.

        Returns:
            The connection id to use for subsequent requests

        """
        if not force and self.token.is_valid(self._clock()):
            return self.token.connection_id

        with LoggingContext("connect", logger=self.logger, url=self.url):
            body = self.request(Action.CONNECT, connection_id=PROTOCOL_ID)
            response = ConnectResponse.decode(body)
            self.token.update(response.connection_id, self._clock())
        self.logger.debug(
            "Connected to %s (connection id %016x)",
            self.url,
            response.connection_id,
        )
        return response.connection_id

    def announce(self, request: AnnounceRequest) -> AnnounceResponse:
        """Announce to the tracker and return the swarm state.

        With ``tracker_auto_connect`` disabled, raises
        :class:`NotConnectedError` until :meth:`connect` has succeeded once.
        """
        if not self.config.tracker_auto_connect and not self.token.ever_connected:
            msg = f"Not connected to {self.url}"
            raise NotConnectedError(msg)
        self.connect()

        body = AnnounceRequestBody(
            info_hash=request.info_hash,
            peer_id=request.peer_id,
            downloaded=request.downloaded,
            left=request.left,
            uploaded=request.uploaded,
            event=request.event,
            ip_address=request.ip_address,
            key=request.key,
            num_want=request.num_want,
            port=request.port,
        ).encode()
        trailer = b""
        if self.config.tracker_send_url_data:
            trailer = encode_url_data(self.url_data)

        response_body = self.request(Action.ANNOUNCE, body, trailer)
        header, entries = decode_announce_response(response_body)
        response = AnnounceResponse(
            interval=header.interval,
            leechers=header.leechers,
            seeders=header.seeders,
            peers=[Peer(ip=str(entry.ip), port=entry.port) for entry in entries],
        )
        self.logger.info(
            "Announced to %s: %d peers (interval %ss, %d seeders, %d leechers)",
            self.url,
            len(response.peers),
            response.interval,
            response.seeders,
            response.leechers,
        )
        return response
