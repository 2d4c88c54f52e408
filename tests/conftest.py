"""Shared fixtures for phi_accrual tests."""

from __future__ import annotations

import pytest

from phi_accrual import ManualClock, PhiAccrualFailureDetector


@pytest.fixture
def clock() -> ManualClock:
    """A clock starting at 0 ms that only moves when advanced."""
    return ManualClock()


@pytest.fixture
def reference_detector(clock: ManualClock) -> PhiAccrualFailureDetector:
    """Detector tuned like the reference scenarios: tight std floor, no pause."""
    return PhiAccrualFailureDetector(
        threshold=8.0,
        max_sample_size=1000,
        min_std_deviation_ms=10.0,
        acceptable_heartbeat_pause_ms=0.0,
        first_heartbeat_estimate_ms=1000.0,
        clock=clock,
    )
