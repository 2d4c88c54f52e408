"""Phi accrual failure detector.

A per-peer suspicion level (phi) computed from the history of heartbeat
inter-arrival times, after Hayashibara et al.
"""

from phi_accrual.clock import Clock, ManualClock, monotonic_ms
from phi_accrual.config import FailureDetectorConfig, discover_config, load_config
from phi_accrual.detector import (
    DetectorSnapshot,
    DetectorState,
    PhiAccrualFailureDetector,
    SharedPhiAccrualFailureDetector,
)
from phi_accrual.errors import (
    ConfigurationError,
    EmptyHistoryError,
    FailureDetectorError,
    InvalidIntervalError,
)
from phi_accrual.history import HeartbeatHistory
from phi_accrual.suspicion import phi, tail_probability

__all__ = [
    # Detectors
    "PhiAccrualFailureDetector",
    "SharedPhiAccrualFailureDetector",
    "DetectorState",
    "DetectorSnapshot",
    # Statistics
    "HeartbeatHistory",
    "phi",
    "tail_probability",
    # Config
    "FailureDetectorConfig",
    "discover_config",
    "load_config",
    # Clock
    "Clock",
    "ManualClock",
    "monotonic_ms",
    # Errors
    "FailureDetectorError",
    "ConfigurationError",
    "InvalidIntervalError",
    "EmptyHistoryError",
]
