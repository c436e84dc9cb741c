"""Backoff schedule for tracker read deadlines."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExponentialBackoff:
    """Exponential backoff with a capped exponent.

    ``next_delay(n) = base_delay * multiplier ** min(n, max_exponent)``.
    """

    base_delay: float = 15.0
    multiplier: float = 2.0
    max_exponent: int = 8

    def next_delay(self, retries: int) -> float:
        """Calculate the delay for the given contiguous failure count (0-based)."""
        exponent = min(max(0, retries), self.max_exponent)
        return self.base_delay * (self.multiplier**exponent)


DEFAULT_BACKOFF = ExponentialBackoff()


def timeout(contiguous_timeouts: int) -> float:
    """Return the read deadline in seconds after ``contiguous_timeouts`` timeouts.

    15s, 30s, 60s, ... capped at 3840s once the count reaches 8. This is the
    protocol default schedule; clients build their own :class:`ExponentialBackoff`
    from ``NetworkConfig`` and match it when the config is left at defaults.
    """
    return DEFAULT_BACKOFF.next_delay(contiguous_timeouts)
