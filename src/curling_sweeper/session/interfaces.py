"""Collaborators the workout session drives.

Platform health tracking and the paired-device link are injected into
``WorkoutSession`` through these interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from curling_sweeper.core.types import WorkoutStatus


class HealthService(Protocol):
    """Platform workout recording (heart rate, calories, saved workout).

    Implementations report readings back by calling the session's
    ``handle_state_change``, ``handle_heart_rate`` and ``handle_calories``.
    """

    def start(self, at: datetime) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def end(self, at: datetime) -> None: ...

    def discard(self) -> None: ...


class StatusSink(Protocol):
    """Receiver for status snapshots and debug exports."""

    def sync_workout_status(self, status: WorkoutStatus) -> None: ...

    def send_debug_data(self, csv_data: str, file_name: str) -> None: ...


class NullHealthService:
    """Health service for running without platform workout tracking."""

    def start(self, at: datetime) -> None:
        pass

    def pause(self) -> None:
        pass

    def resume(self) -> None:
        pass

    def end(self, at: datetime) -> None:
        pass

    def discard(self) -> None:
        pass
