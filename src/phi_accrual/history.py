"""Bounded heartbeat interval history with O(1) running statistics."""

from __future__ import annotations

import math
from array import array
from collections.abc import Iterator

from phi_accrual.errors import ConfigurationError, EmptyHistoryError, InvalidIntervalError


__all__ = ["HeartbeatHistory"]


class HeartbeatHistory:
    """Sliding window of the most recent heartbeat inter-arrival intervals.

    Intervals live in a preallocated ring buffer; once it is full every push
    evicts the oldest interval.  A running sum and sum of squares are kept in
    step with the window, so ``mean`` and ``variance`` never rescan it.

    Both sums are taken relative to a shift value close to the data, which
    keeps ``sum_sq / n - mean ** 2`` accurate for large, tightly clustered
    intervals.  Each time the ring wraps around the sums are rebuilt from the
    buffer and the shift is moved to the current mean, so rounding error from
    repeated add/subtract cannot accumulate.

    Parameters
    ----------
    max_sample_size : int
        Capacity of the window.
    min_std_deviation_ms : float
        Floor applied to the reported standard deviation.

    Examples
    --------
    >>> history = HeartbeatHistory(3, min_std_deviation_ms=1.0)
    >>> for interval in (1000.0, 1100.0, 900.0, 1300.0):
    ...     history.push(interval)
    >>> history.intervals()
    [1100.0, 900.0, 1300.0]
    >>> history.mean()
    1100.0
    """

    def __init__(self, max_sample_size: int, min_std_deviation_ms: float) -> None:
        if max_sample_size <= 0:
            raise ConfigurationError("max_sample_size", max_sample_size, "must be > 0")
        if not math.isfinite(min_std_deviation_ms) or min_std_deviation_ms <= 0:
            raise ConfigurationError(
                "min_std_deviation_ms", min_std_deviation_ms, "must be finite and > 0"
            )

        self._capacity = max_sample_size
        self._min_variance = min_std_deviation_ms * min_std_deviation_ms
        self._min_std_deviation_ms = min_std_deviation_ms
        self._values = array("d", [0.0]) * max_sample_size
        self._cursor = 0
        self._count = 0
        self._shift = 0.0
        self._sum = 0.0
        self._sum_sq = 0.0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def min_std_deviation_ms(self) -> float:
        return self._min_std_deviation_ms

    def push(self, interval: float) -> None:
        """Append *interval* (ms), evicting the oldest one if the window is full.

        Raises
        ------
        InvalidIntervalError
            If *interval* is negative or not finite.  The window is left
            unchanged.
        """
        if not math.isfinite(interval) or interval < 0:
            raise InvalidIntervalError(interval)

        interval = float(interval)
        if self._count == 0:
            self._shift = interval

        if self._count == self._capacity:
            evicted = self._values[self._cursor] - self._shift
            self._sum -= evicted
            self._sum_sq -= evicted * evicted
        else:
            self._count += 1

        self._values[self._cursor] = interval
        delta = interval - self._shift
        self._sum += delta
        self._sum_sq += delta * delta

        self._cursor = (self._cursor + 1) % self._capacity
        if self._cursor == 0:
            self._resync()

    def _resync(self) -> None:
        values = self._values[: self._count]
        self._shift = math.fsum(values) / self._count
        self._sum = math.fsum(v - self._shift for v in values)
        self._sum_sq = math.fsum((v - self._shift) ** 2 for v in values)

    def mean(self) -> float:
        """Mean interval (ms) over the window."""
        if self._count == 0:
            raise EmptyHistoryError("mean of an empty heartbeat history")
        return self._shift + self._sum / self._count

    def variance(self) -> float:
        """Interval variance (ms^2), never below ``min_std_deviation_ms ** 2``."""
        if self._count == 0:
            raise EmptyHistoryError("variance of an empty heartbeat history")
        shifted_mean = self._sum / self._count
        raw = self._sum_sq / self._count - shifted_mean * shifted_mean
        return max(self._min_variance, raw)

    def std_deviation(self) -> float:
        return math.sqrt(self.variance())

    def intervals(self) -> list[float]:
        """Copy of the window, oldest interval first."""
        if self._count < self._capacity:
            return self._values[: self._count].tolist()
        return (
            self._values[self._cursor :].tolist()
            + self._values[: self._cursor].tolist()
        )

    def __iter__(self) -> Iterator[float]:
        return iter(self.intervals())

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"HeartbeatHistory(capacity={self._capacity}, "
            f"samples={self._count})"
        )
