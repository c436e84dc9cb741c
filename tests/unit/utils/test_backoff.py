"""Unit tests for the read-deadline backoff schedule."""

from __future__ import annotations

import pytest

from udptracker.utils.backoff import ExponentialBackoff, timeout

pytestmark = [pytest.mark.unit]


@pytest.mark.parametrize(
    ("count", "expected"),
    [(0, 15.0), (1, 30.0), (2, 60.0), (3, 120.0), (7, 1920.0), (8, 3840.0), (9, 3840.0), (20, 3840.0)],
)
def test_timeout_schedule(count, expected):
    """Deadline doubles per contiguous timeout and caps at 3840s."""
    assert timeout(count) == expected


def test_negative_count_treated_as_zero():
    """Counts below zero use the base delay."""
    assert timeout(-3) == 15.0


def test_custom_backoff():
    """Base delay and cap come from configuration."""
    backoff = ExponentialBackoff(base_delay=1.0, multiplier=3.0, max_exponent=2)

    assert [backoff.next_delay(n) for n in range(5)] == [1.0, 3.0, 9.0, 9.0, 9.0]
