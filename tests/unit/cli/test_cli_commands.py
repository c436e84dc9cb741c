"""Tests for the udptracker command line."""

from __future__ import annotations

import ipaddress
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from udptracker.cli.main import cli
from udptracker.protocol.wire import PeerEntry

pytestmark = [pytest.mark.unit, pytest.mark.cli]

INFO_HASH = "00" * 20


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def patched_socket(fake_socket):
    """Route every client the CLI builds to the fake socket."""
    with patch("udptracker.client.open_udp_socket", lambda address, bind_address=None: fake_socket):
        yield fake_socket


def test_connect_prints_connection_id(runner, patched_socket):
    """connect performs the handshake."""
    result = runner.invoke(cli, ["connect", "udp://tracker.example.com:6969"], obj={})

    assert result.exit_code == 0, result.output
    assert "1122334455667788" in result.output
    assert patched_socket.closed


def test_announce_lists_peers(runner, tracker, patched_socket):
    """announce prints the swarm summary and peers."""
    tracker.peers = [PeerEntry(ipaddress.IPv4Address("10.0.0.7"), 6881)]

    result = runner.invoke(
        cli,
        ["announce", "udp://tracker.example.com:6969/announce", "--info-hash", INFO_HASH],
        obj={},
    )

    assert result.exit_code == 0, result.output
    assert "1800" in result.output
    assert "10.0.0.7" in result.output


def test_connect_tracker_error(runner, tracker, patched_socket):
    """Tracker errors exit non-zero with the tracker's message."""
    tracker.error = "torrent not registered"

    result = runner.invoke(cli, ["connect", "udp://tracker.example.com:6969"], obj={})

    assert result.exit_code == 1
    assert "torrent not registered" in result.output


def test_announce_rejects_bad_info_hash(runner):
    """Info hashes must be 40 hex characters."""
    result = runner.invoke(
        cli,
        ["announce", "udp://tracker.example.com:6969", "--info-hash", "abcd"],
        obj={},
    )

    assert result.exit_code == 2
    assert "40 hex characters" in result.output


def test_announce_rejects_non_hex_info_hash(runner):
    """Info hashes must be hex encoded."""
    result = runner.invoke(
        cli,
        ["announce", "udp://tracker.example.com:6969", "--info-hash", "zz" * 20],
        obj={},
    )

    assert result.exit_code == 2
    assert "must be hex encoded" in result.output


def test_unknown_scheme(runner):
    """URLs without a registered client fail cleanly."""
    result = runner.invoke(cli, ["connect", "http://tracker.example.com/announce"], obj={})

    assert result.exit_code == 1
    assert "No tracker client registered" in result.output


def test_config_command_prints_toml(runner):
    """config prints the effective configuration."""
    result = runner.invoke(cli, ["config"], obj={})

    assert result.exit_code == 0
    assert "[network]" in result.output
    assert "tracker_base_timeout = 15.0" in result.output
