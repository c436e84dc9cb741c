"""Tracker abstractions and client registry."""

from __future__ import annotations

from udptracker.tracker.base import (
    AnnounceEvent,
    AnnounceRequest,
    AnnounceResponse,
    Peer,
    TrackerClient,
)
from udptracker.tracker.registry import ClientRegistry, register_default_clients

__all__ = [
    "AnnounceEvent",
    "AnnounceRequest",
    "AnnounceResponse",
    "ClientRegistry",
    "Peer",
    "TrackerClient",
    "register_default_clients",
]
