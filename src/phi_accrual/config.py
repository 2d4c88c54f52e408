"""TOML-based configuration for phi accrual failure detectors.

Provides the frozen ``FailureDetectorConfig`` dataclass together with
``load_config`` / ``discover_config`` for reading the ``[failure_detector]``
table of a ``phi_accrual.toml`` file.
"""

from __future__ import annotations

import logging
import math
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from phi_accrual.errors import ConfigurationError


__all__ = [
    "CONFIG_FILE_NAME",
    "FailureDetectorConfig",
    "discover_config",
    "load_config",
]

CONFIG_FILE_NAME = "phi_accrual.toml"

logger = logging.getLogger("phi_accrual.config")


@dataclass(frozen=True)
class FailureDetectorConfig:
    """Phi accrual failure detector tuning (Hayashibara et al.).

    All values are validated on construction; an invalid value raises
    ``ConfigurationError`` naming the offending field.

    Parameters
    ----------
    threshold : float
        Phi value at or above which the peer is considered unavailable.  A
        low threshold detects real crashes quickly but produces more false
        suspicions; a high one is the other way around.
    max_sample_size : int
        Number of most recent heartbeat intervals kept to estimate the
        interval distribution.
    min_std_deviation_ms : float
        Floor for the standard deviation estimate (ms).  Keeps very regular
        heartbeats from making the detector overly sensitive to small delays.
    acceptable_heartbeat_pause_ms : float
        Grace period (ms) of silence tolerated before it starts counting
        towards suspicion, e.g. to survive GC pauses or network hiccups.
    first_heartbeat_estimate_ms : float
        Interval (ms) assumed between heartbeats before any real interval has
        been observed.

    Examples
    --------
    >>> FailureDetectorConfig(threshold=12.0, max_sample_size=500)
    FailureDetectorConfig(threshold=12.0, max_sample_size=500, ...)
    >>> FailureDetectorConfig(threshold=0.0)
    Traceback (most recent call last):
    ...
    phi_accrual.errors.ConfigurationError: threshold must be > 0 (got 0.0)
    """

    threshold: float = 8.0
    max_sample_size: int = 200
    min_std_deviation_ms: float = 100.0
    acceptable_heartbeat_pause_ms: float = 0.0
    first_heartbeat_estimate_ms: float = 1000.0

    def __post_init__(self) -> None:
        if isinstance(self.max_sample_size, bool) or not isinstance(
            self.max_sample_size, int
        ):
            raise ConfigurationError(
                "max_sample_size", self.max_sample_size, "must be an int"
            )
        if self.max_sample_size <= 0:
            raise ConfigurationError(
                "max_sample_size", self.max_sample_size, "must be > 0"
            )

        _require_positive("threshold", self.threshold)
        _require_positive("min_std_deviation_ms", self.min_std_deviation_ms)
        _require_positive(
            "first_heartbeat_estimate_ms", self.first_heartbeat_estimate_ms
        )

        pause = self.acceptable_heartbeat_pause_ms
        if not _is_real(pause) or not math.isfinite(pause) or pause < 0:
            raise ConfigurationError(
                "acceptable_heartbeat_pause_ms", pause, "must be a finite value >= 0"
            )


def _is_real(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _require_positive(name: str, value: Any) -> None:
    if not _is_real(value) or not math.isfinite(value):
        raise ConfigurationError(name, value, "must be a finite number")
    if value <= 0:
        raise ConfigurationError(name, value, "must be > 0")


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``phi_accrual.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.

    Examples
    --------
    >>> discover_config(Path("/my/project"))
    PosixPath('/my/project/phi_accrual.toml')
    """
    current = start or Path.cwd()
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> FailureDetectorConfig:
    """Load a ``FailureDetectorConfig`` from a TOML file.

    Values are read from the ``[failure_detector]`` table; missing keys keep
    their defaults.  If *path* is ``None``, ``phi_accrual.toml`` is
    auto-discovered by walking up from the current working directory and the
    default config is returned when no file is found.

    Parameters
    ----------
    path : Path | None
        Explicit path to a TOML config file.

    Returns
    -------
    FailureDetectorConfig

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ConfigurationError
        If the table holds an unknown key or an invalid value.

    Examples
    --------
    >>> config = load_config(Path("phi_accrual.toml"))
    >>> config.threshold
    8.0
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return FailureDetectorConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    detector_raw: Any = raw.get("failure_detector", {})
    if not isinstance(detector_raw, dict):
        raise ConfigurationError("failure_detector", detector_raw, "must be a table")

    known = {f.name for f in fields(FailureDetectorConfig)}
    for key, value in detector_raw.items():
        if key not in known:
            raise ConfigurationError(key, value, "is not a failure detector setting")

    config = FailureDetectorConfig(**detector_raw)
    logger.debug("Loaded failure detector config from %s: %s", path, config)
    return config
