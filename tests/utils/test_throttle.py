from __future__ import annotations

import pytest

from utils.throttle import Throttle


class FakeClock:
    def __init__(self) -> None:
        self.now: float = 0.0

    def __call__(self) -> float:
        return self.now


def test_accepts_one_call_per_window() -> None:
    clock = FakeClock()
    throttle = Throttle(1000, clock)

    accepted: list[bool] = []
    for now in (0.0, 0.5, 0.999, 1.0, 1.2, 2.1):
        clock.now = now
        accepted.append(throttle.try_acquire())

    assert accepted == [True, False, False, True, False, True]


def test_rejected_calls_do_not_extend_window() -> None:
    clock = FakeClock()
    throttle = Throttle(300, clock)

    assert throttle.try_acquire() is True
    clock.now = 0.2
    assert throttle.try_acquire() is False
    clock.now = 0.3
    assert throttle.try_acquire() is True


def test_reset_allows_next_call() -> None:
    clock = FakeClock()
    throttle = Throttle(1000, clock)
    throttle.try_acquire()

    throttle.reset()

    assert throttle.try_acquire() is True


def test_zero_window_never_throttles() -> None:
    throttle = Throttle(0, FakeClock())

    assert all(throttle.try_acquire() for _ in range(3))


def test_negative_window_is_rejected() -> None:
    with pytest.raises(ValueError, match="must not be negative"):
        Throttle(-1)
