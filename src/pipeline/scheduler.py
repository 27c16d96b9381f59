"""
Tick scheduling for the detection loop.

The loop calls wait_next() after each completed tick, so ticks never overlap;
the scheduler only decides how long to yield before the next one.
"""

from __future__ import annotations

import time
from typing import Callable


class RefreshScheduler:
    """
    Paces ticks to a display refresh rate.

    Deadlines advance by one refresh period from the previous deadline. When a
    tick overruns, missed refreshes are skipped and the schedule resyncs to
    now instead of firing a burst of catch-up ticks.
    """

    def __init__(
        self,
        refresh_hz: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if refresh_hz <= 0:
            raise ValueError("refresh_hz must be positive")
        self.period = 1.0 / refresh_hz
        self._clock = clock
        self._sleep = sleep
        self._deadline = clock()
        self.missed = 0

    def reset(self) -> None:
        self._deadline = self._clock()
        self.missed = 0

    def wait_next(self) -> None:
        self._deadline += self.period
        now = self._clock()
        if self._deadline > now:
            self._sleep(self._deadline - now)
        else:
            self.missed += 1
            self._deadline = now


class ImmediateScheduler:
    """No pacing; the next tick starts as soon as the previous one ends."""

    def reset(self) -> None:
        pass

    def wait_next(self) -> None:
        pass
