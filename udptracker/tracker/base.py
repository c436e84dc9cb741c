"""Generic tracker request/response shapes shared by all tracker clients."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from udptracker.protocol.wire import AnnounceEvent

__all__ = [
    "AnnounceEvent",
    "AnnounceRequest",
    "AnnounceResponse",
    "Peer",
    "TrackerClient",
]


class AnnounceRequest(BaseModel):
    """Caller-supplied announce parameters."""

    model_config = ConfigDict(frozen=True)

    info_hash: bytes = Field(..., description="20-byte SHA-1 info hash")
    peer_id: bytes = Field(..., description="20-byte peer id")
    downloaded: int = Field(default=0, ge=0, description="Bytes downloaded")
    left: int = Field(default=0, ge=0, description="Bytes left to download")
    uploaded: int = Field(default=0, ge=0, description="Bytes uploaded")
    event: AnnounceEvent = Field(default=AnnounceEvent.NONE, description="Announce event")
    ip_address: int = Field(
        default=0,
        ge=0,
        le=0xFFFFFFFF,
        description="IPv4 address as integer (0 = sender address)",
    )
    key: int = Field(default=0, ge=0, le=0xFFFFFFFF, description="Client key")
    num_want: int = Field(default=-1, ge=-1, description="Peers wanted (-1 = default)")
    port: int = Field(default=0, ge=0, le=65535, description="Listening port")

    @field_validator("info_hash", "peer_id")
    @classmethod
    def _twenty_bytes(cls, v: bytes) -> bytes:
        if len(v) != 20:
            msg = f"must be 20 bytes, got {len(v)}"
            raise ValueError(msg)
        return v


class Peer(BaseModel):
    """Swarm peer returned by a tracker."""

    model_config = ConfigDict(frozen=True)

    ip: str = Field(..., description="Peer IP address")
    port: int = Field(..., ge=0, le=65535, description="Peer port number")


class AnnounceResponse(BaseModel):
    """Result of a successful announce."""

    interval: int = Field(..., ge=0, description="Seconds until the next announce")
    leechers: int = Field(..., ge=0, description="Number of leechers")
    seeders: int = Field(..., ge=0, description="Number of seeders")
    peers: list[Peer] = Field(default_factory=list, description="List of peers")


class TrackerClient(Protocol):
    """Interface every scheme-specific tracker client implements."""

    def announce(self, request: AnnounceRequest) -> AnnounceResponse:
        """Announce to the tracker and return the swarm state."""
        ...

    def close(self) -> None:
        """Release any resources held by the client."""
        ...
