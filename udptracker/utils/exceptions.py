"""Exception hierarchy for the UDP tracker client.

Every error raised by this package derives from :class:`UDPTrackerError`, so
host applications can catch the whole family with one clause and still branch
on the concrete kind when they need to decide whether to retry.
"""

from __future__ import annotations

from typing import Any


class UDPTrackerError(Exception):
    """Base exception for all UDP tracker client errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize UDP tracker error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class NetworkError(UDPTrackerError):
    """Network-related errors."""


class TransportError(NetworkError):
    """Socket dial or I/O failure unrelated to a read deadline."""


class TrackerTimeoutError(NetworkError):
    """No correlated response arrived before the read deadline."""


class TrackerError(NetworkError):
    """The tracker answered with an Error action.

    ``message`` holds the tracker's UTF-8 text verbatim.
    """


class NotConnectedError(NetworkError):
    """Announce attempted before any successful connect handshake."""


class ProtocolError(UDPTrackerError):
    """Wire protocol errors."""


class DecodeError(ProtocolError):
    """A correlated datagram could not be parsed into the expected shape."""


class ValidationError(UDPTrackerError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""
