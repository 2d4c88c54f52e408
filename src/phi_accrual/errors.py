"""Exception hierarchy for the phi accrual failure detector.

Only configuration problems are raised to callers of a detector.  Clock
regressions and queries before the first heartbeat are absorbed by the
detector itself.
"""

from __future__ import annotations

from typing import Any


__all__ = [
    "ConfigurationError",
    "EmptyHistoryError",
    "FailureDetectorError",
    "InvalidIntervalError",
]


class FailureDetectorError(Exception):
    """Base class for every error raised by ``phi_accrual``."""


class ConfigurationError(FailureDetectorError, ValueError):
    """A detector or history was built with an invalid setting.

    Parameters
    ----------
    field : str
        Name of the offending configuration field.
    value : Any
        The rejected value.
    reason : str
        Human readable constraint, e.g. ``"must be > 0"``.

    Examples
    --------
    >>> raise ConfigurationError("threshold", -1.0, "must be > 0")
    Traceback (most recent call last):
    ...
    phi_accrual.errors.ConfigurationError: threshold must be > 0 (got -1.0)
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field} {reason} (got {value!r})")


class InvalidIntervalError(FailureDetectorError, ValueError):
    """A negative or non-finite interval was pushed into a history."""

    def __init__(self, interval: float) -> None:
        self.interval = interval
        super().__init__(
            f"heartbeat interval must be a finite value >= 0 (got {interval!r})"
        )


class EmptyHistoryError(FailureDetectorError, LookupError):
    """Statistics were requested from a history holding no samples."""
