"""Workout session: lifecycle, shot timing, and debug recording."""

from curling_sweeper.session.interfaces import HealthService, NullHealthService, StatusSink
from curling_sweeper.session.recorder import DebugRecorder, parse_debug_csv
from curling_sweeper.session.stopwatch import Stopwatch
from curling_sweeper.session.workout import WorkoutSession

__all__ = [
    "WorkoutSession",
    "Stopwatch",
    "DebugRecorder",
    "parse_debug_csv",
    "HealthService",
    "NullHealthService",
    "StatusSink",
]
