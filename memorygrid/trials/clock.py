"""Millisecond clocks for the trial runners.

Runners never read the wall clock directly; they ask an injected clock so
tests can drive time by hand.
"""
import time


class MonotonicClock:
    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> int:
        if ms < 0:
            raise ValueError("Cannot move a clock backwards.")
        self._now += ms
        return self._now
