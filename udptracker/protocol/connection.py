"""Connection token state for a UDP tracker session."""

from __future__ import annotations

from dataclasses import dataclass

from udptracker.protocol.wire import PROTOCOL_ID

CONNECTION_ID_TTL = 60.0


@dataclass
class ConnectionToken:
    """Connection id issued by a tracker and the local time it arrived.

    ``received_at`` is ``None`` until the first handshake completes.
    """

    connection_id: int = PROTOCOL_ID
    received_at: float | None = None
    ttl: float = CONNECTION_ID_TTL

    @property
    def ever_connected(self) -> bool:
        """Whether a handshake has ever succeeded."""
        return self.received_at is not None

    def is_valid(self, now: float) -> bool:
        """Token is usable for ``received_at <= now < received_at + ttl``."""
        if self.received_at is None:
            return False
        return self.received_at <= now < self.received_at + self.ttl

    def expires_at(self) -> float | None:
        """Local time at which the token stops being valid."""
        if self.received_at is None:
            return None
        return self.received_at + self.ttl

    def update(self, connection_id: int, now: float) -> None:
        """Record a freshly issued connection id."""
        self.connection_id = connection_id
        self.received_at = now

    def reset(self) -> None:
        """Forget the token; the next request must handshake again."""
        self.connection_id = PROTOCOL_ID
        self.received_at = None
