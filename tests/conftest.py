"""Pytest fixtures for Curling Sweeper tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from curling_sweeper.core.config import (
    SessionSettings,
    Settings,
    SplitSettings,
    StrokeDetectionSettings,
)
from curling_sweeper.core.types import Sample, WorkoutStatus


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeHealthService:
    """Records calls made by the session."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name == self.fail_on:
            raise RuntimeError(f"{name} failed")

    def start(self, at: datetime) -> None:
        self._call("start")

    def pause(self) -> None:
        self._call("pause")

    def resume(self) -> None:
        self._call("resume")

    def end(self, at: datetime) -> None:
        self._call("end")

    def discard(self) -> None:
        self._call("discard")


class FakeStatusSink:
    """Captures status syncs and debug uploads."""

    def __init__(self) -> None:
        self.statuses: list[WorkoutStatus] = []
        self.uploads: list[tuple[str, str]] = []

    def sync_workout_status(self, status: WorkoutStatus) -> None:
        self.statuses.append(status)

    def send_debug_data(self, csv_data: str, file_name: str) -> None:
        self.uploads.append((csv_data, file_name))


def square_wave(
    amplitude: float,
    half_period_samples: int,
    half_periods: int,
    rate_hz: float = 60.0,
    axis: str = "y",
    start: float = 0.0,
) -> list[tuple[float, Sample]]:
    """Build (timestamp, sample) pairs alternating between +A and -A on one axis.

    The sequence starts positive and contains ``half_periods - 1`` sign changes.
    """
    pairs = []
    total = half_period_samples * half_periods
    for i in range(total):
        value = amplitude if (i // half_period_samples) % 2 == 0 else -amplitude
        values = {"x": 0.0, "y": 0.0, "z": 0.0}
        values[axis] = value
        pairs.append((start + i / rate_hz, Sample(**values)))
    return pairs


@pytest.fixture
def clock() -> FakeClock:
    """Create a manual clock starting at zero."""
    return FakeClock()


@pytest.fixture
def wall_clock() -> datetime:
    """Fixed wall clock time for file names."""
    return datetime(2025, 12, 21, 14, 5, 30)


@pytest.fixture
def health() -> FakeHealthService:
    """Create a health service that always succeeds."""
    return FakeHealthService()


@pytest.fixture
def status_sink() -> FakeStatusSink:
    """Create a status sink that records everything."""
    return FakeStatusSink()


@pytest.fixture
def stroke_settings() -> StrokeDetectionSettings:
    """Zero-crossing settings for testing."""
    return StrokeDetectionSettings(
        algorithm="zero_crossing",
        axis="y",
        deadzone=0.05,
        sweep_threshold=1.0,
        min_stroke_interval_s=0.08,
    )


@pytest.fixture
def lookback_settings() -> StrokeDetectionSettings:
    """Lookback settings for testing."""
    return StrokeDetectionSettings(
        algorithm="lookback",
        axis="y",
        lookback_threshold=0.5,
        lookback_window=15,
        min_samples_between_strokes=5,
    )


@pytest.fixture
def split_settings() -> SplitSettings:
    """Default split settings."""
    return SplitSettings()


@pytest.fixture
def settings(stroke_settings: StrokeDetectionSettings, split_settings: SplitSettings) -> Settings:
    """Application settings with debug recording enabled."""
    return Settings(
        stroke=stroke_settings,
        split=split_settings,
        session=SessionSettings(debug_mode=True, status_sync_interval_s=1.0),
    )


@pytest.fixture(name="square_wave")
def square_wave_fixture():
    """Provide the square wave builder."""
    return square_wave


@pytest.fixture
def failing_health():
    """Build a health service that raises on the named call."""
    return lambda name: FakeHealthService(fail_on=name)
