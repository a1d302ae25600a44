"""Shot stopwatch driven by an injectable monotonic clock."""

from __future__ import annotations

import time
from collections.abc import Callable

from curling_sweeper.core.types import ShotPhase


class Stopwatch:
    """Times one shot from hog line to hog line.

    Transitions:
        IDLE → TIMING: start()
        TIMING → STOPPED: stop(), elapsed time is frozen
        any → IDLE: reset()

    The displayed ``elapsed`` only advances on ``update()``, which the
    session calls from its periodic tick.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started_at: float | None = None
        self._elapsed = 0.0
        self._phase = ShotPhase.IDLE

    @property
    def phase(self) -> ShotPhase:
        """Current stopwatch phase."""
        return self._phase

    @property
    def is_running(self) -> bool:
        """Check if a shot is being timed."""
        return self._phase is ShotPhase.TIMING

    @property
    def elapsed(self) -> float:
        """Last measured time in seconds."""
        return self._elapsed

    def start(self, now: float | None = None) -> None:
        """Start timing a new shot from zero."""
        self._started_at = self._clock() if now is None else now
        self._elapsed = 0.0
        self._phase = ShotPhase.TIMING

    def update(self, now: float | None = None) -> float:
        """Refresh the elapsed time while running.

        Returns:
            Elapsed time in seconds
        """
        if self._phase is ShotPhase.TIMING and self._started_at is not None:
            current = self._clock() if now is None else now
            self._elapsed = max(0.0, current - self._started_at)
        return self._elapsed

    def stop(self, now: float | None = None) -> float:
        """Stop timing and keep the final time.

        Returns:
            Final elapsed time in seconds
        """
        if self._phase is ShotPhase.TIMING:
            self.update(now)
            self._phase = ShotPhase.STOPPED
            self._started_at = None
        return self._elapsed

    def reset(self) -> None:
        """Clear the stopwatch."""
        self._started_at = None
        self._elapsed = 0.0
        self._phase = ShotPhase.IDLE
