"""Three heartbeats a second apart, then silence.

    $ python examples/basic.py
"""

import logging
import time

from phi_accrual import PhiAccrualFailureDetector


def main():
    logging.basicConfig(level=logging.DEBUG)
    detector = PhiAccrualFailureDetector(name="node-1")

    for _ in range(3):
        print("heartbeat")
        detector.heartbeat()
        time.sleep(1.0)

    # Regular heartbeats: the peer is available.
    print(f"phi={detector.phi():.3f} available={detector.is_available()}")
    assert detector.is_available()

    time.sleep(4.0)

    # A few missed heartbeats: the peer is suspected.
    print(f"phi={detector.phi():.3f} available={detector.is_available()}")
    assert not detector.is_available()


if __name__ == "__main__":
    main()
