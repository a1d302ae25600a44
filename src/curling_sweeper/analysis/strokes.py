"""Brush stroke detection from a single accelerometer axis.

This module is pure logic with NO I/O. Two interchangeable detectors
implement the same ``ingest`` interface; which one a session uses is a
configuration choice (``StrokeDetectionSettings.algorithm``).
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from curling_sweeper.core.config import StrokeDetectionSettings
from curling_sweeper.core.logging import get_logger
from curling_sweeper.core.types import Sample, StrokeCounters, StrokeEvent

logger = get_logger(__name__)


class StrokeDetector(ABC):
    """Base class for stroke detectors.

    Handles the active flag, the clock and the stroke counters.
    Subclasses only decide whether the current reading completes a
    stroke.
    """

    def __init__(
        self,
        settings: StrokeDetectionSettings | None = None,
        counters: StrokeCounters | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize detector.

        Args:
            settings: Detection parameters (uses defaults if None)
            counters: Counters to update on each stroke (new if None)
            clock: Monotonic time source used when samples carry no timestamp
        """
        self.settings = settings or StrokeDetectionSettings()
        self.counters = counters or StrokeCounters()
        self._clock = clock
        self._active = False

    @property
    def is_active(self) -> bool:
        """Check if samples are currently being processed."""
        return self._active

    @property
    def count_in_end(self) -> int:
        """Strokes counted in the current end."""
        return self.counters.count_in_end

    @property
    def count_total(self) -> int:
        """Strokes counted in the session."""
        return self.counters.count_total

    def activate(self) -> None:
        """Start processing samples."""
        self._active = True

    def deactivate(self) -> None:
        """Stop processing samples; later samples are ignored."""
        self._active = False

    def ingest(self, sample: Sample, timestamp: float | None = None) -> StrokeEvent | None:
        """Process one accelerometer sample.

        Args:
            sample: Raw accelerometer reading
            timestamp: Sample time in seconds (clock is read if None)

        Returns:
            StrokeEvent if this sample completed a stroke, None otherwise
        """
        if not self._active:
            return None

        value = sample.axis(self.settings.axis)
        now = self._clock() if timestamp is None else timestamp

        amplitude = self._detect(value, now)
        if amplitude is None:
            return None

        self.counters.increment()
        logger.debug(
            "Stroke %d (end %d) amplitude %.3f",
            self.counters.count_total,
            self.counters.count_in_end,
            amplitude,
        )
        return StrokeEvent(
            timestamp=now,
            amplitude=amplitude,
            count_in_end=self.counters.count_in_end,
            count_total=self.counters.count_total,
        )

    def reset_end(self) -> None:
        """Start a new end: clear the per-end count and detection state."""
        self.counters.reset_end()
        self.reset()

    def reset_counters(self) -> None:
        """Clear all counters and detection state."""
        self.counters.reset()
        self.reset()

    @abstractmethod
    def reset(self) -> None:
        """Clear detection state without touching counters."""

    @abstractmethod
    def _detect(self, value: float, now: float) -> float | None:
        """Return the qualifying amplitude if a stroke completed, else None."""


@dataclass
class DetectorState:
    """Internal state for zero-crossing detection."""

    last_sign: int = 0
    peak_amplitude: float = 0.0
    last_event_time: float | None = None


class ZeroCrossingDetector(StrokeDetector):
    """Counts a stroke on each qualifying sign change of the sweep axis.

    A reading inside the deadzone has sign 0 and never replaces the last
    sign, so a crossing is only seen between two readings outside the
    deadzone. The phase that just ended must have peaked at or above
    the sweep threshold, and strokes closer than the minimum interval
    collapse into one.
    """

    def __init__(
        self,
        settings: StrokeDetectionSettings | None = None,
        counters: StrokeCounters | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, counters, clock)
        self._state = DetectorState()

    @property
    def last_sign(self) -> int:
        """Sign of the last reading outside the deadzone."""
        return self._state.last_sign

    @property
    def peak_amplitude(self) -> float:
        """Largest |value| since the last sign change."""
        return self._state.peak_amplitude

    def reset(self) -> None:
        self._state = DetectorState()

    def _sign(self, value: float) -> int:
        if value > self.settings.deadzone:
            return 1
        if value < -self.settings.deadzone:
            return -1
        return 0

    def _detect(self, value: float, now: float) -> float | None:
        state = self._state
        sign = self._sign(value)
        magnitude = abs(value)
        stroke_amplitude: float | None = None

        if magnitude > state.peak_amplitude:
            state.peak_amplitude = magnitude

        if sign != 0 and state.last_sign != 0 and sign != state.last_sign:
            if state.peak_amplitude >= self.settings.sweep_threshold and (
                state.last_event_time is None
                or now - state.last_event_time >= self.settings.min_stroke_interval_s
            ):
                stroke_amplitude = state.peak_amplitude
                state.last_event_time = now
            # New phase starts at the crossing sample
            state.peak_amplitude = magnitude

        if sign != 0:
            state.last_sign = sign

        return stroke_amplitude


class LookbackDetector(StrokeDetector):
    """Counts a stroke when a strong reading follows a strong opposite one.

    Keeps a bounded history of the sweep axis. When the current reading
    exceeds the threshold, the previous ``lookback_window`` readings are
    scanned from newest to oldest and the nearest one that exceeds the
    threshold with the opposite sign completes a stroke. Debounce counts
    samples rather than time.
    """

    def __init__(
        self,
        settings: StrokeDetectionSettings | None = None,
        counters: StrokeCounters | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, counters, clock)
        self._history: deque[float] = deque(maxlen=2 * self.settings.lookback_window)
        self._sample_index = 0
        self._last_event_index: int | None = None

    @property
    def history(self) -> list[float]:
        """Recent readings, oldest first."""
        return list(self._history)

    def reset(self) -> None:
        self._history.clear()
        self._sample_index = 0
        self._last_event_index = None

    def _detect(self, value: float, now: float) -> float | None:
        threshold = self.settings.lookback_threshold
        index = self._sample_index
        self._sample_index += 1

        previous = list(self._history)
        self._history.append(value)

        if abs(value) <= threshold:
            return None

        if (
            self._last_event_index is not None
            and index - self._last_event_index < self.settings.min_samples_between_strokes
        ):
            return None

        window = self.settings.lookback_window
        for prior in reversed(previous[-window:]):
            if abs(prior) > threshold and (prior > 0) != (value > 0):
                self._last_event_index = index
                return abs(value)

        return None


def create_detector(
    settings: StrokeDetectionSettings | None = None,
    counters: StrokeCounters | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> StrokeDetector:
    """Build the detector selected by ``settings.algorithm``.

    Args:
        settings: Detection settings (uses defaults if None)
        counters: Counters shared with the caller
        clock: Monotonic time source

    Returns:
        Inactive stroke detector
    """
    settings = settings or StrokeDetectionSettings()
    if settings.algorithm == "lookback":
        return LookbackDetector(settings, counters, clock)
    return ZeroCrossingDetector(settings, counters, clock)


def detect_strokes_batch(
    samples: Iterable[tuple[float, Sample]],
    settings: StrokeDetectionSettings | None = None,
) -> list[StrokeEvent]:
    """Run a fresh detector over recorded samples.

    Pure function for batch processing recorded data.

    Args:
        samples: (timestamp, sample) pairs in time order
        settings: Detection settings

    Returns:
        List of detected stroke events
    """
    detector = create_detector(settings)
    detector.activate()
    events: list[StrokeEvent] = []

    for timestamp, sample in samples:
        event = detector.ingest(sample, timestamp)
        if event is not None:
            events.append(event)

    return events
