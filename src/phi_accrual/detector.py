"""Phi accrual failure detection for a single monitored peer.

Implements the phi accrual failure detector described by Hayashibara et al.,
which outputs a continuous suspicion level rather than a binary alive/dead
decision.  A configurable threshold turns that level into an availability
verdict.

Two shapes are provided:

* ``PhiAccrualFailureDetector`` has no internal locking; its owner serializes
  calls.
* ``SharedPhiAccrualFailureDetector`` guards the same state with a single lock
  so heartbeats and queries may come from several threads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto

from phi_accrual import suspicion
from phi_accrual.clock import Clock, monotonic_ms
from phi_accrual.config import FailureDetectorConfig
from phi_accrual.history import HeartbeatHistory


__all__ = [
    "MIN_ELAPSED_MS",
    "DetectorSnapshot",
    "DetectorState",
    "PhiAccrualFailureDetector",
    "SharedPhiAccrualFailureDetector",
]

logger = logging.getLogger("phi_accrual.detector")

# Floor for the silence fed into phi once the acceptable pause is subtracted.
MIN_ELAPSED_MS = 1e-3


def _resolve_config(
    config: FailureDetectorConfig | None, **settings: float | None
) -> FailureDetectorConfig:
    given = {key: value for key, value in settings.items() if value is not None}
    if config is None:
        return FailureDetectorConfig(**given)
    if given:
        msg = (
            "Pass either config or individual settings, not both "
            f"(got {', '.join(sorted(given))})"
        )
        raise TypeError(msg)
    return config


class DetectorState(Enum):
    """Lifecycle of a detector.

    ``never_heartbeat -> monitoring`` on the first heartbeat; there is no way
    back and no terminal state.

    Examples
    --------
    >>> DetectorState.monitoring.name
    'monitoring'
    """

    never_heartbeat = auto()
    monitoring = auto()


@dataclass(frozen=True)
class DetectorSnapshot:
    """Consistent view of a detector at one instant.

    Parameters
    ----------
    state : DetectorState
        Lifecycle state.
    last_heartbeat_ms : float | None
        Timestamp of the latest heartbeat.
    sample_count : int
        Number of intervals in the history window.
    mean_ms : float | None
        Mean interval, ``None`` before the first heartbeat.
    std_deviation_ms : float | None
        Floored standard deviation, ``None`` before the first heartbeat.
    phi : float
        Suspicion level at ``now_ms``.
    available : bool
        ``phi < threshold``.
    now_ms : float
        Timestamp the snapshot was evaluated at.
    """

    state: DetectorState
    last_heartbeat_ms: float | None
    sample_count: int
    mean_ms: float | None
    std_deviation_ms: float | None
    phi: float
    available: bool
    now_ms: float


class PhiAccrualFailureDetector:
    """Phi accrual failure detector (Hayashibara et al.) for one peer.

    Outputs a continuous suspicion level (phi) instead of a binary alive/dead
    signal.  ``phi = -log10(1 - CDF(elapsed))`` where CDF is the normal
    distribution fitted to the observed heartbeat interval history.

    Not thread-safe; see ``SharedPhiAccrualFailureDetector``.

    Parameters
    ----------
    threshold : float
        Phi value at or above which the peer is considered unavailable.
    max_sample_size : int
        Maximum number of heartbeat intervals to keep.
    min_std_deviation_ms : float
        Floor for the standard deviation estimate.
    acceptable_heartbeat_pause_ms : float
        Silence tolerated before it starts counting towards suspicion.
    first_heartbeat_estimate_ms : float
        Interval assumed before a real one has been observed.  Until then
        the standard deviation is at least a quarter of this estimate.
    config : FailureDetectorConfig | None
        All of the above in one record.  Mutually exclusive with the
        individual settings.
    clock : Clock | None
        Source of ``now`` when a call omits it.  Defaults to
        ``monotonic_ms``.
    name : str | None
        Peer name used in log messages.

    Raises
    ------
    ConfigurationError
        If any setting is out of range.
    TypeError
        If both *config* and individual settings are given.

    Examples
    --------
    >>> fd = PhiAccrualFailureDetector(threshold=8.0)
    >>> fd.phi(now=0.0)
    0.0
    >>> fd.heartbeat(now=0.0)
    >>> fd.heartbeat(now=1000.0)
    >>> fd.is_available(now=1500.0)
    True
    >>> fd.is_available(now=6000.0)
    False
    """

    def __init__(
        self,
        *,
        threshold: float | None = None,
        max_sample_size: int | None = None,
        min_std_deviation_ms: float | None = None,
        acceptable_heartbeat_pause_ms: float | None = None,
        first_heartbeat_estimate_ms: float | None = None,
        config: FailureDetectorConfig | None = None,
        clock: Clock | None = None,
        name: str | None = None,
    ) -> None:
        self._config = _resolve_config(
            config,
            threshold=threshold,
            max_sample_size=max_sample_size,
            min_std_deviation_ms=min_std_deviation_ms,
            acceptable_heartbeat_pause_ms=acceptable_heartbeat_pause_ms,
            first_heartbeat_estimate_ms=first_heartbeat_estimate_ms,
        )
        self._clock: Clock = clock or monotonic_ms
        self._name = name or "peer"
        self._history = HeartbeatHistory(
            self._config.max_sample_size, self._config.min_std_deviation_ms
        )
        self._last_heartbeat_ms: float | None = None
        self._seed_only = False

    @classmethod
    def from_config(
        cls,
        config: FailureDetectorConfig,
        *,
        clock: Clock | None = None,
        name: str | None = None,
    ) -> PhiAccrualFailureDetector:
        """Build a detector from a loaded ``FailureDetectorConfig``."""
        return cls(config=config, clock=clock, name=name)

    @property
    def config(self) -> FailureDetectorConfig:
        return self._config

    @property
    def threshold(self) -> float:
        return self._config.threshold

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> DetectorState:
        if self._last_heartbeat_ms is None:
            return DetectorState.never_heartbeat
        return DetectorState.monitoring

    @property
    def last_heartbeat_ms(self) -> float | None:
        return self._last_heartbeat_ms

    @property
    def history(self) -> HeartbeatHistory:
        """The interval window.  Treat as read-only."""
        return self._history

    def heartbeat(self, now: float | None = None) -> None:
        """Record arrival of a heartbeat from the peer.

        The first heartbeat seeds the history with
        ``first_heartbeat_estimate_ms`` so the statistics are defined from
        then on.  A heartbeat timestamped before the previous one is
        treated as clock noise: it contributes no interval, but it still
        becomes the last heartbeat so silence is measured on the new clock.

        Parameters
        ----------
        now : float | None
            Arrival time in ms; read from the clock when omitted.
        """
        if now is None:
            now = self._clock()

        last = self._last_heartbeat_ms
        if last is None:
            self._history.push(self._config.first_heartbeat_estimate_ms)
            self._seed_only = True
            self._last_heartbeat_ms = now
            logger.debug("First heartbeat from %s at %.3f ms", self._name, now)
            return

        interval = now - last
        if interval < 0:
            logger.warning(
                "Clock moved backwards for %s: heartbeat at %.3f ms is %.3f ms "
                "before the previous one, interval ignored",
                self._name,
                now,
                -interval,
            )
        else:
            self._history.push(interval)
            self._seed_only = False
        self._last_heartbeat_ms = now

    def _std_deviation(self) -> float:
        std_deviation = self._history.std_deviation()
        if self._seed_only:
            # Environment unknown yet: assume a wide spread around the estimate.
            return max(std_deviation, self._config.first_heartbeat_estimate_ms / 4.0)
        return std_deviation

    def phi(self, now: float | None = None) -> float:
        """Calculate the suspicion level of the peer.

        Parameters
        ----------
        now : float | None
            Evaluation time in ms; read from the clock when omitted.

        Returns
        -------
        float
            ``0.0`` if no heartbeat has been received yet.  Otherwise a
            finite, non-negative value that grows with the silence.
        """
        last = self._last_heartbeat_ms
        if last is None:
            return 0.0
        if now is None:
            now = self._clock()

        elapsed = max(
            now - last - self._config.acceptable_heartbeat_pause_ms, MIN_ELAPSED_MS
        )
        return suspicion.phi(
            elapsed, self._history.mean(), self._std_deviation()
        )

    def is_available(self, now: float | None = None) -> bool:
        """Check if the peer is considered available (phi below threshold)."""
        return self.phi(now) < self._config.threshold

    def snapshot(self, now: float | None = None) -> DetectorSnapshot:
        """Capture state, statistics and verdict evaluated at *now*."""
        if now is None:
            now = self._clock()

        if self._last_heartbeat_ms is None:
            mean: float | None = None
            std_deviation: float | None = None
        else:
            mean = self._history.mean()
            std_deviation = self._std_deviation()

        phi = self.phi(now)
        return DetectorSnapshot(
            state=self.state,
            last_heartbeat_ms=self._last_heartbeat_ms,
            sample_count=len(self._history),
            mean_ms=mean,
            std_deviation_ms=std_deviation,
            phi=phi,
            available=phi < self._config.threshold,
            now_ms=now,
        )

    def __repr__(self) -> str:
        return (
            f"PhiAccrualFailureDetector(name={self._name!r}, "
            f"state={self.state.name}, samples={len(self._history)})"
        )


class SharedPhiAccrualFailureDetector:
    """Thread-safe ``PhiAccrualFailureDetector``.

    Every operation holds one ``threading.Lock`` for its whole duration, so
    concurrent heartbeats never interleave their updates and a query always
    sees mean, variance and last heartbeat from the same moment.  When
    ``now`` is omitted the clock is read under the lock as well.

    Accepts the same arguments as ``PhiAccrualFailureDetector``.

    Examples
    --------
    >>> fd = SharedPhiAccrualFailureDetector(threshold=8.0)
    >>> fd.heartbeat(now=0.0)
    >>> fd.is_available(now=500.0)
    True
    """

    def __init__(
        self,
        *,
        threshold: float | None = None,
        max_sample_size: int | None = None,
        min_std_deviation_ms: float | None = None,
        acceptable_heartbeat_pause_ms: float | None = None,
        first_heartbeat_estimate_ms: float | None = None,
        config: FailureDetectorConfig | None = None,
        clock: Clock | None = None,
        name: str | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._detector = PhiAccrualFailureDetector(
            threshold=threshold,
            max_sample_size=max_sample_size,
            min_std_deviation_ms=min_std_deviation_ms,
            acceptable_heartbeat_pause_ms=acceptable_heartbeat_pause_ms,
            first_heartbeat_estimate_ms=first_heartbeat_estimate_ms,
            config=config,
            clock=clock,
            name=name,
        )

    @classmethod
    def from_config(
        cls,
        config: FailureDetectorConfig,
        *,
        clock: Clock | None = None,
        name: str | None = None,
    ) -> SharedPhiAccrualFailureDetector:
        return cls(config=config, clock=clock, name=name)

    @property
    def config(self) -> FailureDetectorConfig:
        return self._detector.config

    @property
    def threshold(self) -> float:
        return self._detector.threshold

    @property
    def name(self) -> str:
        return self._detector.name

    @property
    def state(self) -> DetectorState:
        with self._lock:
            return self._detector.state

    @property
    def last_heartbeat_ms(self) -> float | None:
        with self._lock:
            return self._detector.last_heartbeat_ms

    def heartbeat(self, now: float | None = None) -> None:
        with self._lock:
            self._detector.heartbeat(now)

    def phi(self, now: float | None = None) -> float:
        with self._lock:
            return self._detector.phi(now)

    def is_available(self, now: float | None = None) -> bool:
        with self._lock:
            return self._detector.is_available(now)

    def snapshot(self, now: float | None = None) -> DetectorSnapshot:
        with self._lock:
            return self._detector.snapshot(now)

    def __repr__(self) -> str:
        with self._lock:
            return f"Shared{self._detector!r}"
