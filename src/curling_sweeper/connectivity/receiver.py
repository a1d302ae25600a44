"""Phone side of the paired-device link."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from curling_sweeper.connectivity.messages import (
    STATUS_MESSAGE_TYPE,
    DebugDataMessage,
    WorkoutStatusMessage,
)
from curling_sweeper.core.logging import get_logger
from curling_sweeper.session.formatting import format_elapsed_short

logger = get_logger(__name__)

# Data lines kept for the preview
PREVIEW_LINES = 10


class PhoneReceiver:
    """Keeps the latest workout status and debug upload from the watch."""

    def __init__(self, wall_clock: Callable[[], datetime] = datetime.now) -> None:
        self._wall_clock = wall_clock

        self.is_watch_paired = False
        self.is_watch_app_installed = False
        self.is_watch_reachable = False

        self.last_received_data: str | None = None
        self.last_received_date: datetime | None = None
        self.received_file_name: str | None = None
        self.debug_sample_count = 0
        self.debug_last_lines: list[str] = []

        self.is_workout_active = False
        self.elapsed_time = 0.0
        self.calories = 0.0
        self.heart_rate = 0.0
        self.stroke_count = 0
        self.current_end = 0
        self.last_status_update: datetime | None = None

    @property
    def connection_status(self) -> str:
        """Human readable pairing state."""
        if not self.is_watch_paired:
            return "No Watch Paired"
        if not self.is_watch_app_installed:
            return "Watch App Not Installed"
        if self.is_watch_reachable:
            return "Watch Connected"
        return "Watch App Installed"

    @property
    def is_connected(self) -> bool:
        """Check if the watch is paired and has the app."""
        return self.is_watch_paired and self.is_watch_app_installed

    def update_session_state(self, paired: bool, installed: bool, reachable: bool) -> None:
        """Apply the pairing state reported by the platform."""
        self.is_watch_paired = paired
        self.is_watch_app_installed = installed
        self.is_watch_reachable = reachable
        logger.info(
            "Link state: paired=%s, installed=%s, reachable=%s", paired, installed, reachable
        )

    def formatted_elapsed_time(self) -> str:
        """Workout time as ``MM:SS``."""
        return format_elapsed_short(self.elapsed_time)

    def handle_message(self, message: dict[str, Any]) -> None:
        """Dispatch a message from the watch.

        Malformed messages are logged and ignored.
        """
        try:
            if message.get("type") == STATUS_MESSAGE_TYPE:
                self._update_workout_status(message)
            elif "debugCSV" in message:
                debug = DebugDataMessage.model_validate(message)
                self._receive_debug_data(debug.debug_csv, debug.file_name)
                logger.info(
                    "Received debug CSV: %d characters, %d samples",
                    len(debug.debug_csv),
                    self.debug_sample_count,
                )
            else:
                logger.debug("Ignoring message with keys %s", sorted(message))
        except ValidationError as e:
            logger.warning("Invalid message from watch: %s", e)

    def handle_context(self, context: dict[str, Any]) -> None:
        """Apply the latest application context (a status snapshot)."""
        if not context:
            return
        try:
            self._update_workout_status(context)
        except ValidationError as e:
            logger.warning("Invalid context from watch: %s", e)

    def handle_file(self, path: Path) -> None:
        """Accept a debug CSV transferred as a file."""
        self._receive_debug_data(path.read_text(encoding="utf-8"), path.name)
        logger.info("Received debug file: %s", path.name)

    def save_received_data(self, directory: Path) -> Path | None:
        """Write the last received CSV into ``directory``.

        Returns:
            Path of the written file, or None if nothing was received
        """
        if self.last_received_data is None:
            return None

        file_name = self.received_file_name or f"debug_accelerometer_{int(time.time())}.csv"
        path = directory / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.last_received_data, encoding="utf-8")
        logger.info("Saved debug CSV to %s", path)
        return path

    def clear_received_data(self) -> None:
        """Forget the last debug upload."""
        self.last_received_data = None
        self.last_received_date = None
        self.received_file_name = None
        self.debug_sample_count = 0
        self.debug_last_lines = []

    def _update_workout_status(self, data: dict[str, Any]) -> None:
        status = WorkoutStatusMessage.model_validate(data)
        # Only fields present in the payload overwrite the cached status
        for name in status.model_fields_set - {"type"}:
            if name == "is_workout_active":
                self.is_workout_active = status.is_workout_active
            else:
                setattr(self, name, getattr(status, name))
        self.last_status_update = self._wall_clock()

    def _receive_debug_data(self, csv_data: str, file_name: str | None) -> None:
        self.last_received_data = csv_data
        self.last_received_date = self._wall_clock()
        self.received_file_name = file_name

        lines = csv_data.split("\n")
        # Header and trailing newline are not samples
        self.debug_sample_count = max(0, len(lines) - 2)
        data_lines = [line for line in lines[1:] if line]
        self.debug_last_lines = data_lines[-PREVIEW_LINES:]
