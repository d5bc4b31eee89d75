from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

__all__: list[str] = ["Throttle"]


class Throttle:
    """Accept at most one call per window.

    The window is measured from the last accepted call, so rejected calls never extend it.

    Args:
        window_ms (float): Minimum time between two accepted calls in milliseconds.
        clock (Callable[[], float]): Monotonic clock returning seconds.
    """

    def __init__(self, window_ms: float, clock: Callable[[], float] = time.monotonic) -> None:
        if window_ms < 0:
            msg: str = f"Throttle window must not be negative: {window_ms}"
            raise ValueError(msg)
        self.window_ms: float = window_ms
        self._clock: Callable[[], float] = clock
        self._last_invocation: float | None = None

    def try_acquire(self) -> bool:
        now: float = self._clock()
        if self._last_invocation is not None and (now - self._last_invocation) * 1000.0 < self.window_ms:
            return False
        self._last_invocation = now
        return True

    def reset(self) -> None:
        self._last_invocation = None
