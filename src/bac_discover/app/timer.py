"""Millisecond interval timer driven by explicit expiry checks."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class MillisecondTimer:
    """An interval timer over a monotonic clock.

    Nothing runs in the background: callers poll :meth:`expired`. The
    clock is injectable so the session state machines can be driven
    deterministically in tests.

    :param clock: Returns monotonic time in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._start = 0
        self._interval = 0

    def _now(self) -> int:
        return int(self._clock() * 1000)

    @property
    def interval(self) -> int:
        """The configured interval in milliseconds."""
        return self._interval

    def set(self, interval_ms: int) -> None:
        """Start timing a new *interval_ms* period from now."""
        self._interval = interval_ms
        self._start = self._now()

    def elapsed(self) -> int:
        """Milliseconds since the period started."""
        return self._now() - self._start

    def expired(self) -> bool:
        return self.elapsed() >= self._interval

    def remaining(self) -> int:
        """Milliseconds left in the current period, never negative."""
        return max(0, self._interval - self.elapsed())

    def reset(self) -> None:
        """Advance the start by one interval, keeping the cadence drift-free."""
        self._start += self._interval

    def restart(self) -> None:
        """Start the current interval over from now."""
        self._start = self._now()
