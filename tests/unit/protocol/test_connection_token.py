"""Unit tests for connection token lifetime."""

from __future__ import annotations

import pytest

from udptracker.protocol.connection import CONNECTION_ID_TTL, ConnectionToken
from udptracker.protocol.wire import PROTOCOL_ID

pytestmark = [pytest.mark.unit, pytest.mark.tracker]


def test_absent_token_is_never_valid():
    """Before any handshake the token carries the protocol id and is invalid."""
    token = ConnectionToken()

    assert token.connection_id == PROTOCOL_ID
    assert not token.ever_connected
    assert not token.is_valid(0.0)
    assert token.expires_at() is None


@pytest.mark.parametrize(
    ("offset", "valid"),
    [
        (0.0, True),
        (30.0, True),
        (59.999, True),
        (60.0, False),
        (61.0, False),
        (-0.001, False),
    ],
)
def test_validity_window(offset, valid):
    """A token received at T is valid for T <= t < T + 60s."""
    token = ConnectionToken()
    token.update(0x1122334455667788, 500.0)

    assert token.is_valid(500.0 + offset) is valid


def test_default_ttl_is_one_minute():
    """Trackers honour connection ids for one minute."""
    assert CONNECTION_ID_TTL == 60.0
    token = ConnectionToken()
    token.update(1, 10.0)
    assert token.expires_at() == 70.0


def test_reset_forgets_token():
    """Reset returns the token to its never-connected state."""
    token = ConnectionToken()
    token.update(42, 1.0)

    token.reset()

    assert token.connection_id == PROTOCOL_ID
    assert not token.ever_connected
