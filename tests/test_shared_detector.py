from __future__ import annotations

import math
import threading

import pytest

from phi_accrual import (
    ConfigurationError,
    DetectorState,
    FailureDetectorConfig,
    ManualClock,
    SharedPhiAccrualFailureDetector,
)


def test_same_contract_as_exclusive_detector() -> None:
    detector = SharedPhiAccrualFailureDetector(threshold=8.0)
    assert detector.state is DetectorState.never_heartbeat
    assert detector.phi(now=0.0) == 0.0
    assert detector.is_available(now=0.0)

    detector.heartbeat(now=0.0)
    detector.heartbeat(now=1000.0)
    detector.heartbeat(now=2000.0)

    assert detector.state is DetectorState.monitoring
    assert detector.last_heartbeat_ms == 2000.0
    assert detector.is_available(now=3000.0)
    assert not detector.is_available(now=7000.0)


def test_uses_clock_when_now_omitted(clock: ManualClock) -> None:
    detector = SharedPhiAccrualFailureDetector(clock=clock)
    detector.heartbeat()
    clock.advance(1000.0)
    detector.heartbeat()
    clock.advance(500.0)
    assert detector.is_available()
    clock.advance(10_000.0)
    assert not detector.is_available()


def test_invalid_configuration_rejected() -> None:
    with pytest.raises(ConfigurationError):
        SharedPhiAccrualFailureDetector(threshold=0.0)


def test_from_config() -> None:
    config = FailureDetectorConfig(threshold=5.0)
    detector = SharedPhiAccrualFailureDetector.from_config(config, name="peer-a")
    assert detector.config == config
    assert detector.threshold == 5.0
    assert detector.name == "peer-a"


def test_config_record_accepted() -> None:
    config = FailureDetectorConfig(threshold=5.0)
    detector = SharedPhiAccrualFailureDetector(config=config)
    assert detector.config is config
    assert detector.threshold == 5.0


def test_config_record_and_settings_are_exclusive() -> None:
    with pytest.raises(TypeError):
        SharedPhiAccrualFailureDetector(
            config=FailureDetectorConfig(), max_sample_size=10
        )


def test_concurrent_heartbeats_are_all_recorded() -> None:
    detector = SharedPhiAccrualFailureDetector(max_sample_size=5000)
    threads_count = 4
    beats_per_thread = 500
    barrier = threading.Barrier(threads_count)

    def beat() -> None:
        barrier.wait()
        for _ in range(beats_per_thread):
            detector.heartbeat()

    threads = [threading.Thread(target=beat) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snap = detector.snapshot()
    # The first heartbeat contributes the seed interval, every other one a real interval.
    assert snap.sample_count == threads_count * beats_per_thread
    assert snap.mean_ms is not None
    assert snap.mean_ms >= 0.0


def test_concurrent_queries_see_consistent_snapshots() -> None:
    detector = SharedPhiAccrualFailureDetector(threshold=8.0, max_sample_size=50)
    stop = threading.Event()
    errors: list[BaseException] = []

    def writer() -> None:
        now = 0.0
        while not stop.is_set():
            now += 1000.0
            detector.heartbeat(now=now)

    def reader() -> None:
        try:
            for _ in range(2000):
                snap = detector.snapshot(now=1e12)
                assert math.isfinite(snap.phi)
                assert snap.phi >= 0.0
                assert snap.available == (snap.phi < 8.0)
                if snap.state is DetectorState.monitoring:
                    assert snap.sample_count >= 1
                    assert snap.std_deviation_ms is not None
                    assert snap.std_deviation_ms >= 100.0
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    writer_thread = threading.Thread(target=writer)
    readers = [threading.Thread(target=reader) for _ in range(3)]
    writer_thread.start()
    for thread in readers:
        thread.start()
    for thread in readers:
        thread.join()
    stop.set()
    writer_thread.join()

    assert errors == []
