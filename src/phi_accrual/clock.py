"""Time sources for failure detectors.

A clock is any zero-argument callable returning a monotonic timestamp in
milliseconds.  Detectors only ever subtract two readings of the same clock, so
the epoch is irrelevant.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeAlias


__all__ = ["Clock", "ManualClock", "monotonic_ms"]


Clock: TypeAlias = Callable[[], float]


def monotonic_ms() -> float:
    """Return ``time.monotonic()`` in milliseconds."""
    return time.monotonic() * 1000.0


class ManualClock:
    """A clock that only moves when told to.

    Useful in tests and simulations where heartbeat timing has to be exact.

    Parameters
    ----------
    start_ms : float
        Initial reading.

    Examples
    --------
    >>> clock = ManualClock()
    >>> clock.advance(1000.0)
    1000.0
    >>> clock()
    1000.0
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)

    def __call__(self) -> float:
        return self._now_ms

    @property
    def now_ms(self) -> float:
        return self._now_ms

    def advance(self, delta_ms: float) -> float:
        """Move the clock forward by *delta_ms* and return the new reading."""
        if delta_ms < 0:
            msg = f"Cannot advance a clock by a negative amount: {delta_ms}"
            raise ValueError(msg)
        self._now_ms += delta_ms
        return self._now_ms

    def set(self, now_ms: float, *, allow_backwards: bool = False) -> None:
        """Jump to *now_ms*.

        Moving backwards is refused unless *allow_backwards* is set, which is
        how tests simulate a clock regression.
        """
        if now_ms < self._now_ms and not allow_backwards:
            msg = f"Clock would move backwards: {self._now_ms} -> {now_ms}"
            raise ValueError(msg)
        self._now_ms = float(now_ms)

    def __repr__(self) -> str:
        return f"ManualClock(now_ms={self._now_ms})"
