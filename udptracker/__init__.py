"""udptracker - BitTorrent UDP tracker client (BEP 15)."""

from __future__ import annotations

__version__ = "0.1.0"

from udptracker.client import UDPTrackerClient
from udptracker.tracker import (
    AnnounceEvent,
    AnnounceRequest,
    AnnounceResponse,
    ClientRegistry,
    Peer,
    register_default_clients,
)
from udptracker.utils.exceptions import (
    DecodeError,
    NotConnectedError,
    TrackerError,
    TrackerTimeoutError,
    TransportError,
    UDPTrackerError,
)

__all__ = [
    "AnnounceEvent",
    "AnnounceRequest",
    "AnnounceResponse",
    "ClientRegistry",
    "DecodeError",
    "NotConnectedError",
    "Peer",
    "TrackerError",
    "TrackerTimeoutError",
    "TransportError",
    "UDPTrackerClient",
    "UDPTrackerError",
    "__version__",
]
