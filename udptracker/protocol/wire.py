"""Binary wire codec for the UDP tracker protocol (BEP 15, BEP 41).

All integers are big-endian and fixed width with no padding::

    request header   connection_id (8) | action (4) | transaction_id (4)
    response header  action (4) | transaction_id (4)
    connect body     connection_id (8)
    announce body    interval (4) | leechers (4) | seeders (4) | peers (6 * N)
    peer entry       ipv4 (4) | port (2)
    error body       UTF-8 message, to the end of the datagram

Requests may carry a trailing URL-data option: type (1) | length (1) | bytes.
"""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

from udptracker.utils.exceptions import DecodeError, ProtocolError

# Magic connection id sent with the first connect request
PROTOCOL_ID = 0x41727101980

# IP limits datagram size to 64KiB
MAX_DATAGRAM_SIZE = 0x10000

URL_DATA_OPTION = 0x2
MAX_URL_DATA_LENGTH = 255

_REQUEST_HEADER = struct.Struct("!QII")
_RESPONSE_HEADER = struct.Struct("!II")
_CONNECT_RESPONSE = struct.Struct("!Q")
_ANNOUNCE_REQUEST = struct.Struct("!20s20sQQQIIIiH")
_ANNOUNCE_RESPONSE_HEADER = struct.Struct("!III")
_PEER_ENTRY = struct.Struct("!4sH")

REQUEST_HEADER_SIZE = _REQUEST_HEADER.size
RESPONSE_HEADER_SIZE = _RESPONSE_HEADER.size
ANNOUNCE_REQUEST_SIZE = _ANNOUNCE_REQUEST.size
ANNOUNCE_RESPONSE_HEADER_SIZE = _ANNOUNCE_RESPONSE_HEADER.size
PEER_ENTRY_SIZE = _PEER_ENTRY.size


class Action(IntEnum):
    """UDP tracker actions."""

    CONNECT = 0
    ANNOUNCE = 1
    SCRAPE = 2
    ERROR = 3


class AnnounceEvent(IntEnum):
    """Announce events as encoded on the wire."""

    NONE = 0
    COMPLETED = 1
    STARTED = 2
    STOPPED = 3


@dataclass(frozen=True)
class RequestHeader:
    """Header prefixed to every outgoing datagram."""

    connection_id: int
    action: Action
    transaction_id: int

    def encode(self) -> bytes:
        """Encode the 16-byte request header."""
        try:
            return _REQUEST_HEADER.pack(
                self.connection_id,
                int(self.action),
                self.transaction_id,
            )
        except struct.error as e:
            msg = f"Cannot encode request header: {e}"
            raise ProtocolError(msg) from e

    @classmethod
    def decode(cls, data: bytes) -> RequestHeader:
        """Decode a request header; used by tests and tracker simulators."""
        try:
            connection_id, action, transaction_id = _REQUEST_HEADER.unpack_from(data)
        except struct.error as e:
            msg = "Request header truncated"
            raise DecodeError(msg, {"length": len(data)}) from e
        return cls(connection_id, Action(action), transaction_id)


@dataclass(frozen=True)
class ResponseHeader:
    """Header prefixed to every inbound datagram.

    ``action`` is kept as the raw integer: unrelated traffic may carry values
    outside :class:`Action`.
    """

    action: int
    transaction_id: int

    def encode(self) -> bytes:
        """Encode the 8-byte response header."""
        return _RESPONSE_HEADER.pack(self.action, self.transaction_id)


def decode_response(data: bytes) -> tuple[ResponseHeader, bytes]:
    """Split a datagram into its response header and remaining body.

    Raises:
        DecodeError: If the datagram is shorter than a response header

    """
    try:
        action, transaction_id = _RESPONSE_HEADER.unpack_from(data)
    except struct.error as e:
        msg = "Response header truncated"
        raise DecodeError(msg, {"length": len(data)}) from e
    return ResponseHeader(action, transaction_id), bytes(data[RESPONSE_HEADER_SIZE:])


def encode_request(header: RequestHeader, body: bytes = b"", trailer: bytes = b"") -> bytes:
    """Serialise a full request datagram."""
    datagram = header.encode() + body + trailer
    if len(datagram) > MAX_DATAGRAM_SIZE:
        msg = f"Request of {len(datagram)} bytes exceeds the datagram size limit"
        raise ProtocolError(msg)
    return datagram


@dataclass(frozen=True)
class ConnectResponse:
    """Body of a connect response."""

    connection_id: int

    @classmethod
    def decode(cls, body: bytes) -> ConnectResponse:
        """Decode the 8-byte connection id."""
        try:
            (connection_id,) = _CONNECT_RESPONSE.unpack_from(body)
        except struct.error as e:
            msg = "Connect response truncated"
            raise DecodeError(msg, {"response": "connect", "length": len(body)}) from e
        return cls(connection_id)

    def encode(self) -> bytes:
        """Encode the connection id."""
        return _CONNECT_RESPONSE.pack(self.connection_id)


@dataclass(frozen=True)
class AnnounceRequestBody:
    """Announce request body following the request header."""

    info_hash: bytes
    peer_id: bytes
    downloaded: int = 0
    left: int = 0
    uploaded: int = 0
    event: AnnounceEvent = AnnounceEvent.NONE
    ip_address: int = 0
    key: int = 0
    num_want: int = -1
    port: int = 0

    def encode(self) -> bytes:
        """Encode the fixed 82-byte announce body."""
        if len(self.info_hash) != 20:
            msg = f"Invalid info_hash length: {len(self.info_hash)}"
            raise ProtocolError(msg)
        if len(self.peer_id) != 20:
            msg = f"Invalid peer_id length: {len(self.peer_id)}"
            raise ProtocolError(msg)
        try:
            return _ANNOUNCE_REQUEST.pack(
                self.info_hash,
                self.peer_id,
                self.downloaded,
                self.left,
                self.uploaded,
                int(self.event),
                self.ip_address,
                self.key,
                self.num_want,
                self.port,
            )
        except struct.error as e:
            msg = f"Cannot encode announce body: {e}"
            raise ProtocolError(msg) from e

    @classmethod
    def decode(cls, body: bytes) -> AnnounceRequestBody:
        """Decode an announce body; used by tests and tracker simulators."""
        try:
            fields = _ANNOUNCE_REQUEST.unpack_from(body)
        except struct.error as e:
            msg = "Announce request truncated"
            raise DecodeError(msg, {"length": len(body)}) from e
        info_hash, peer_id, downloaded, left, uploaded, event, ip, key, num_want, port = fields
        return cls(
            info_hash,
            peer_id,
            downloaded,
            left,
            uploaded,
            AnnounceEvent(event),
            ip,
            key,
            num_want,
            port,
        )


@dataclass(frozen=True)
class AnnounceResponseHeader:
    """Fixed fields leading an announce response body."""

    interval: int
    leechers: int
    seeders: int

    def encode(self) -> bytes:
        """Encode the 12-byte announce response header."""
        return _ANNOUNCE_RESPONSE_HEADER.pack(self.interval, self.leechers, self.seeders)


@dataclass(frozen=True)
class PeerEntry:
    """Compact IPv4 peer entry."""

    ip: ipaddress.IPv4Address
    port: int

    def encode(self) -> bytes:
        """Encode the 6-byte peer entry."""
        return _PEER_ENTRY.pack(self.ip.packed, self.port)


def iter_peer_entries(data: bytes) -> Iterator[PeerEntry]:
    """Yield peer entries packed back-to-back in ``data``.

    Raises:
        DecodeError: When the data ends part-way through an entry

    """
    for offset in range(0, len(data), PEER_ENTRY_SIZE):
        try:
            raw_ip, port = _PEER_ENTRY.unpack_from(data, offset)
        except struct.error as e:
            msg = "Announce response truncated inside peer list"
            raise DecodeError(
                msg,
                {
                    "response": "announce",
                    "offset": offset,
                    "trailing_bytes": len(data) - offset,
                },
            ) from e
        yield PeerEntry(ipaddress.IPv4Address(raw_ip), port)


def decode_announce_response(body: bytes) -> tuple[AnnounceResponseHeader, list[PeerEntry]]:
    """Decode an announce response body into its header and peer list."""
    try:
        interval, leechers, seeders = _ANNOUNCE_RESPONSE_HEADER.unpack_from(body)
    except struct.error as e:
        msg = "Announce response header truncated"
        raise DecodeError(msg, {"response": "announce", "length": len(body)}) from e
    header = AnnounceResponseHeader(interval, leechers, seeders)
    peers = list(iter_peer_entries(body[ANNOUNCE_RESPONSE_HEADER_SIZE:]))
    return header, peers


def decode_error_message(body: bytes) -> str:
    """Decode the UTF-8 text of an error response.

    Invalid UTF-8 bytes are kept as ``\\xNN`` escapes rather than dropped.
    """
    return bytes(body).decode("utf-8", errors="backslashreplace")


def encode_url_data(path: str | bytes) -> bytes:
    """Encode the URL-data option carrying the request path.

    Paths longer than 255 bytes are truncated. An empty path yields no option.
    """
    raw = path.encode("utf-8") if isinstance(path, str) else bytes(path)
    raw = raw[:MAX_URL_DATA_LENGTH]
    if not raw:
        return b""
    return struct.pack("!BB", URL_DATA_OPTION, len(raw)) + raw
