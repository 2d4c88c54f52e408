"""Suspicion level (phi) computation.

Implementation of the phi function of 'The Phi Accrual Failure Detector' by
Hayashibara et al.::

    phi = -log10(1 - F(elapsed))

where ``F`` is the CDF of a normal distribution with the mean and standard
deviation of the observed heartbeat intervals.  ``F`` is approximated with
the logistic curve used by Akka and Cassandra, ``1 / (1 + e^-z)`` with
``z = y * (1.5976 + 0.070566 * y^2)`` and ``y`` the standardised elapsed
time.  The approximation error is below 1e-4 over the range that matters for
failure detection.

Under that approximation ``phi = log10(1 + e^z)``, which is evaluated as a
numerically stable softplus so it stays finite for any input.
"""

from __future__ import annotations

import math


__all__ = ["MAX_STANDARDISED_ELAPSED", "phi", "tail_probability"]

# |y| is clamped here; far beyond this the peer is as dead (or alive) as it gets
# and phi remains finite.
MAX_STANDARDISED_ELAPSED = 1e5

_LN_10 = math.log(10.0)


def _exponent(elapsed: float, mean: float, std_deviation: float) -> float:
    if math.isnan(elapsed) or math.isnan(mean):
        msg = f"elapsed and mean must be numbers (got {elapsed!r}, {mean!r})"
        raise ValueError(msg)
    if not std_deviation > 0 or math.isinf(std_deviation):
        msg = f"std_deviation must be finite and > 0 (got {std_deviation!r})"
        raise ValueError(msg)

    y = (elapsed - mean) / std_deviation
    y = max(-MAX_STANDARDISED_ELAPSED, min(MAX_STANDARDISED_ELAPSED, y))
    return y * (1.5976 + 0.070566 * y * y)


def tail_probability(elapsed: float, mean: float, std_deviation: float) -> float:
    """Probability that a fresh interval is longer than *elapsed*.

    Parameters
    ----------
    elapsed : float
        Time since the last heartbeat (ms).
    mean : float
        Mean heartbeat interval (ms).
    std_deviation : float
        Standard deviation of the heartbeat interval (ms), ``> 0``.

    Returns
    -------
    float
        Monotonically decreasing in *elapsed*.  ``0.5`` when
        ``elapsed == mean``; may underflow to ``0.0`` for extreme silences.

    Examples
    --------
    >>> tail_probability(1000.0, 1000.0, 100.0)
    0.5
    """
    z = _exponent(elapsed, mean, std_deviation)
    if z > 0:
        e = math.exp(-z)
        return e / (1.0 + e)
    return 1.0 / (1.0 + math.exp(z))


def phi(elapsed: float, mean: float, std_deviation: float) -> float:
    """Suspicion level after *elapsed* ms of silence.

    Equal to ``-log10(tail_probability(elapsed, mean, std_deviation))`` but
    computed without forming the probability, so it neither underflows nor
    overflows.

    Parameters
    ----------
    elapsed : float
        Time since the last heartbeat (ms).
    mean : float
        Mean heartbeat interval (ms).
    std_deviation : float
        Standard deviation of the heartbeat interval (ms), ``> 0``.

    Returns
    -------
    float
        Finite, non-negative and non-decreasing in *elapsed*.

    Raises
    ------
    ValueError
        If *std_deviation* is not a finite positive number, or *elapsed* or
        *mean* is NaN.

    Examples
    --------
    >>> round(phi(1000.0, 1000.0, 100.0), 4)
    0.301
    >>> phi(5000.0, 1000.0, 100.0) > 8.0
    True
    """
    z = _exponent(elapsed, mean, std_deviation)
    if z > 0:
        softplus = z + math.log1p(math.exp(-z))
    else:
        softplus = math.log1p(math.exp(z))
    return softplus / _LN_10
