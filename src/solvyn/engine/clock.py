# src/solvyn/engine/clock.py
"""Clock abstraction for testable timing.

Production code uses SystemClock (the default). Tests inject MockClock to
control execution times and history timestamps.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock used by the resolution engine.

    Implementations:
    - SystemClock: time.monotonic() / time.time() (production)
    - MockClock: controllable values (testing)
    """

    def monotonic(self) -> float:
        """Monotonic time in seconds, for elapsed-time measurement."""
        ...

    def epoch_ms(self) -> int:
        """Wall-clock milliseconds since the Unix epoch, for timestamps."""
        ...


class SystemClock:
    """Production clock."""

    def monotonic(self) -> float:
        return time.monotonic()

    def epoch_ms(self) -> int:
        return time.time_ns() // 1_000_000


class MockClock:
    """Controllable clock for deterministic testing.

    Example:
        clock = MockClock(start=0.0, epoch_ms=1_700_000_000_000)
        engine = SolvynEngine(settings, clock=clock)
        clock.advance(0.25)  # 250ms of execution time, 250ms later timestamps
    """

    def __init__(self, start: float = 0.0, epoch_ms: int = 1_700_000_000_000) -> None:
        self._current = start
        self._epoch_ms = epoch_ms

    def monotonic(self) -> float:
        return self._current

    def epoch_ms(self) -> int:
        return self._epoch_ms

    def advance(self, seconds: float) -> None:
        """Advance both clocks.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds
        self._epoch_ms += int(seconds * 1000)


DEFAULT_CLOCK: Clock = SystemClock()
