"""Core data types and structures."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, IntEnum, auto


@dataclass(frozen=True, slots=True)
class Sample:
    """A single accelerometer reading in g.

    The same unit must be used for the whole stream.
    """

    x: float
    y: float
    z: float

    def axis(self, name: str) -> float:
        """Get the reading for one axis, with NaN mapped to zero."""
        value = float(getattr(self, name))
        return 0.0 if math.isnan(value) else value


@dataclass(frozen=True, slots=True)
class StrokeEvent:
    """A counted brush stroke.

    Attributes:
        timestamp: Time of the sample that completed the stroke (seconds)
        amplitude: Peak or current |acceleration| that qualified the stroke
        count_in_end: Stroke count for the current end after this stroke
        count_total: Session stroke count after this stroke
    """

    timestamp: float
    amplitude: float
    count_in_end: int
    count_total: int


@dataclass(slots=True)
class StrokeCounters:
    """Running stroke counters for a workout."""

    count_in_end: int = 0
    count_total: int = 0

    def increment(self) -> None:
        """Count one stroke in both the current end and the session."""
        self.count_in_end += 1
        self.count_total += 1

    def reset_end(self) -> None:
        """Start counting a new end."""
        self.count_in_end = 0

    def reset(self) -> None:
        """Clear both counters."""
        self.count_in_end = 0
        self.count_total = 0


class RockPosition(IntEnum):
    """Where a delivered rock came to rest, from shortest to longest travel."""

    HOG = 0
    WEIGHT_1 = 1
    WEIGHT_2 = 2
    WEIGHT_3 = 3
    WEIGHT_4 = 4
    WEIGHT_5 = 5
    WEIGHT_6 = 6
    WEIGHT_7 = 7
    WEIGHT_8 = 8
    WEIGHT_9 = 9
    WEIGHT_10 = 10
    HACK = 11
    BOARD = 12
    HIT = 13

    @property
    def label(self) -> str:
        """Short label for buttons and the live estimate."""
        if RockPosition.WEIGHT_1 <= self <= RockPosition.WEIGHT_10:
            return str(self.value)
        return self.name

    @property
    def description(self) -> str:
        """Human readable description of the outcome."""
        if self is RockPosition.HOG:
            return "Hogged (didn't reach)"
        if self is RockPosition.HACK:
            return "Through to hack"
        if self is RockPosition.BOARD:
            return "Hit the board"
        if self is RockPosition.HIT:
            return "Takeout"
        return f"Weight {self.value}"


POSITION_COUNT = len(RockPosition)


class WorkoutState(Enum):
    """States reported by the health tracking service."""

    NOT_STARTED = auto()
    RUNNING = auto()
    PAUSED = auto()
    ENDED = auto()


class ShotPhase(Enum):
    """Stopwatch phases of a single shot."""

    IDLE = auto()
    TIMING = auto()
    STOPPED = auto()


@dataclass(frozen=True, slots=True)
class WorkoutStatus:
    """Snapshot of the workout synced to the phone."""

    is_active: bool
    elapsed_time: float
    calories: float
    heart_rate: float
    stroke_count: int
    current_end: int

    @classmethod
    def inactive(cls) -> WorkoutStatus:
        """Status sent once a workout has finished."""
        return cls(
            is_active=False,
            elapsed_time=0.0,
            calories=0.0,
            heart_rate=0.0,
            stroke_count=0,
            current_end=0,
        )


@dataclass(frozen=True, slots=True)
class DebugSample:
    """One recorded accelerometer sample for offline analysis.

    Attributes:
        shot: Shot index within the workout
        timestamp: Seconds since stroke detection started for the shot
        x: X acceleration
        y: Y acceleration
        z: Z acceleration
        strokes: Strokes counted in the current end at this sample
    """

    shot: int
    timestamp: float
    x: float
    y: float
    z: float
    strokes: int
