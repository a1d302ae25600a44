"""Messages exchanged between the watch and the phone."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from curling_sweeper.core.types import WorkoutStatus

STATUS_MESSAGE_TYPE = "workoutStatus"


class WorkoutStatusMessage(BaseModel):
    """Periodic workout status, also used as the latest-state context."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["workoutStatus"] = STATUS_MESSAGE_TYPE
    is_workout_active: bool = Field(default=False, alias="isWorkoutActive")
    elapsed_time: float = Field(default=0.0, alias="elapsedTime")
    calories: float = 0.0
    heart_rate: float = Field(default=0.0, alias="heartRate")
    stroke_count: int = Field(default=0, alias="strokeCount")
    current_end: int = Field(default=0, alias="currentEnd")

    @classmethod
    def from_status(cls, status: WorkoutStatus) -> WorkoutStatusMessage:
        """Build a message from a session status snapshot."""
        return cls(
            is_workout_active=status.is_active,
            elapsed_time=status.elapsed_time,
            calories=status.calories,
            heart_rate=status.heart_rate,
            stroke_count=status.stroke_count,
            current_end=status.current_end,
        )

    def to_status(self) -> WorkoutStatus:
        """Convert back to a status snapshot."""
        return WorkoutStatus(
            is_active=self.is_workout_active,
            elapsed_time=self.elapsed_time,
            calories=self.calories,
            heart_rate=self.heart_rate,
            stroke_count=self.stroke_count,
            current_end=self.current_end,
        )


class DebugDataMessage(BaseModel):
    """Accelerometer debug CSV uploaded at the end of an end or workout."""

    model_config = ConfigDict(populate_by_name=True)

    debug_csv: str = Field(alias="debugCSV")
    file_name: str | None = Field(default=None, alias="fileName")
