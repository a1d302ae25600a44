"""Core infrastructure: config, types, exceptions, and logging."""

from curling_sweeper.core.config import Settings, get_settings
from curling_sweeper.core.exceptions import (
    CalibrationError,
    CurlingSweeperError,
    DebugLogError,
    HealthServiceError,
    SessionStateError,
    TransportError,
)
from curling_sweeper.core.logging import get_logger, setup_logging
from curling_sweeper.core.types import (
    DebugSample,
    RockPosition,
    Sample,
    ShotPhase,
    StrokeCounters,
    StrokeEvent,
    WorkoutState,
    WorkoutStatus,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "Sample",
    "StrokeEvent",
    "StrokeCounters",
    "RockPosition",
    "WorkoutState",
    "ShotPhase",
    "WorkoutStatus",
    "DebugSample",
    # Exceptions
    "CurlingSweeperError",
    "SessionStateError",
    "HealthServiceError",
    "TransportError",
    "CalibrationError",
    "DebugLogError",
    # Logging
    "setup_logging",
    "get_logger",
]
