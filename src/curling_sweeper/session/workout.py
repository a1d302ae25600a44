"""Workout session orchestration.

One ``WorkoutSession`` exists per workout. It owns the stroke detector,
the split estimator, the shot stopwatch and the debug recorder, and is
fed by three external sources: accelerometer samples, a ~10 Hz tick, and
user actions.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import datetime

from curling_sweeper.analysis.splits import SplitEstimator
from curling_sweeper.analysis.strokes import StrokeDetector, create_detector
from curling_sweeper.core.config import Settings, get_settings
from curling_sweeper.core.exceptions import HealthServiceError, SessionStateError
from curling_sweeper.core.logging import get_logger
from curling_sweeper.core.types import (
    DebugSample,
    RockPosition,
    Sample,
    StrokeCounters,
    StrokeEvent,
    WorkoutState,
    WorkoutStatus,
)
from curling_sweeper.session.formatting import format_elapsed, format_stopwatch
from curling_sweeper.session.interfaces import HealthService, NullHealthService, StatusSink
from curling_sweeper.session.recorder import DebugRecorder
from curling_sweeper.session.stopwatch import Stopwatch

logger = get_logger(__name__)


class WorkoutSession:
    """A single curling workout.

    Strokes are only counted while a shot is active: after the stopwatch
    has been stopped and before the shot's position is recorded or
    skipped. All public methods are serialized by one lock so samples may
    arrive on a sensor thread.
    """

    def __init__(
        self,
        health: HealthService | None = None,
        link: StatusSink | None = None,
        settings: Settings | None = None,
        estimator: SplitEstimator | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize a workout that has not started yet.

        Args:
            health: Platform health tracking (no-op if None)
            link: Receiver for status syncs and debug exports
            settings: Application settings (uses cached settings if None)
            estimator: Split calibration carried over from an earlier workout
            clock: Monotonic time source in seconds
            wall_clock: Wall clock used for the health service and file names
        """
        self.settings = settings or get_settings()
        self._health = health or NullHealthService()
        self._link = link
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()

        self.counters = StrokeCounters()
        self._detector = create_detector(self.settings.stroke, self.counters, clock)
        self._estimator = estimator or SplitEstimator(self.settings.split)
        self._stopwatch = Stopwatch(clock)
        self._recorder = DebugRecorder()
        self.debug_mode = self.settings.session.debug_mode

        self._state = WorkoutState.NOT_STARTED
        self._started_at: float | None = None
        self._last_sync_at: float | None = None

        self.elapsed_time = 0.0
        self.heart_rate = 0.0
        self.average_heart_rate = 0.0
        self.active_calories = 0.0
        self._heart_rate_sum = 0.0
        self._heart_rate_count = 0

        self.current_end = 0
        self.current_shot_index = 0
        self._next_shot_index = 0
        self._shot_started_at: float | None = None
        self.current_estimate: RockPosition | None = None
        self.last_recorded_position: RockPosition | None = None
        self.show_position_prompt = False
        self._prompt_due_at: float | None = None

    # Properties

    @property
    def state(self) -> WorkoutState:
        """Current workout state."""
        return self._state

    @property
    def is_active(self) -> bool:
        """Check if the workout is running or paused."""
        return self._state in (WorkoutState.RUNNING, WorkoutState.PAUSED)

    @property
    def _has_workout(self) -> bool:
        return self.is_active or self._started_at is not None

    @property
    def is_paused(self) -> bool:
        """Check if the workout is paused."""
        return self._state is WorkoutState.PAUSED

    @property
    def detector(self) -> StrokeDetector:
        """Stroke detector for this workout."""
        return self._detector

    @property
    def estimator(self) -> SplitEstimator:
        """Split estimator for this workout."""
        return self._estimator

    @property
    def recorder(self) -> DebugRecorder:
        """Debug sample recorder."""
        return self._recorder

    @property
    def stroke_count_end(self) -> int:
        """Strokes in the current end."""
        return self.counters.count_in_end

    @property
    def stroke_count_total(self) -> int:
        """Strokes in the workout."""
        return self.counters.count_total

    @property
    def stopwatch_time(self) -> float:
        """Displayed shot time in seconds."""
        return self._stopwatch.elapsed

    @property
    def is_stopwatch_running(self) -> bool:
        """Check if a shot is being timed."""
        return self._stopwatch.is_running

    @property
    def is_shot_active(self) -> bool:
        """Check if strokes are currently being counted."""
        return (
            self.is_active
            and not self._stopwatch.is_running
            and self._stopwatch.elapsed > 0
            and self._shot_started_at is not None
        )

    @property
    def status(self) -> WorkoutStatus:
        """Snapshot for syncing to the phone."""
        return WorkoutStatus(
            is_active=self.is_active,
            elapsed_time=self.elapsed_time,
            calories=self.active_calories,
            heart_rate=self.heart_rate,
            stroke_count=self.counters.count_total,
            current_end=self.current_end,
        )

    # Lifecycle

    def start(self) -> None:
        """Start the workout.

        Raises:
            SessionStateError: If the workout was already started
            HealthServiceError: If the health service could not start
        """
        with self._lock:
            if self._state is not WorkoutState.NOT_STARTED:
                raise SessionStateError(f"Cannot start workout in state {self._state.name}")

            try:
                self._health.start(self._wall_clock())
            except Exception as e:
                raise HealthServiceError(f"Failed to start workout: {e}") from e

            self._started_at = self._clock()
            self._state = WorkoutState.RUNNING
            self.current_end = 1
            self._detector.reset_counters()
            self._recorder.clear()
            self._shot_started_at = None

            logger.info("Workout started (%s strokes)", self.settings.stroke.algorithm)

    def pause(self) -> None:
        """Pause the workout; ticks are ignored until resumed."""
        with self._lock:
            if self._state is not WorkoutState.RUNNING:
                raise SessionStateError("Only a running workout can be paused")
            self._health.pause()
            self._state = WorkoutState.PAUSED
            logger.info("Workout paused")

    def resume(self) -> None:
        """Resume a paused workout."""
        with self._lock:
            if self._state is not WorkoutState.PAUSED:
                raise SessionStateError("Only a paused workout can be resumed")
            self._health.resume()
            self._state = WorkoutState.RUNNING
            logger.info("Workout resumed")

    def end(self) -> None:
        """Save the workout, upload remaining debug data and reset.

        Also valid after the health service reported the workout ended,
        until the session has been reset.
        """
        with self._lock:
            if not self._has_workout:
                raise SessionStateError("No active workout to end")

            self._send_and_clear_debug_data()
            try:
                self._health.end(self._wall_clock())
            except Exception as e:
                logger.error("Failed to end workout: %s", e)
            finally:
                self._reset_state()

            logger.info("Workout ended")

    def discard(self) -> None:
        """Throw the workout away without saving."""
        with self._lock:
            if not self._has_workout:
                raise SessionStateError("No active workout to discard")

            try:
                self._health.discard()
            except Exception as e:
                logger.warning("Error discarding workout: %s", e)
            finally:
                self._recorder.clear()
                self._reset_state()

            logger.info("Workout discarded")

    def mark_new_end(self) -> None:
        """Move on to the next end."""
        with self._lock:
            if not self.is_active:
                raise SessionStateError("No active workout")

            self._send_and_clear_debug_data()
            self.current_end += 1
            self._reset_stopwatch()
            self._finish_shot()
            self._detector.reset_end()

            logger.info("Starting end %d", self.current_end)

    def _reset_state(self) -> None:
        self._state = WorkoutState.ENDED
        self._started_at = None
        self.elapsed_time = 0.0
        self.heart_rate = 0.0
        self.average_heart_rate = 0.0
        self._heart_rate_sum = 0.0
        self._heart_rate_count = 0
        self.active_calories = 0.0
        self.current_end = 0
        self.current_shot_index = 0
        self._next_shot_index = 0
        self._reset_stopwatch()
        self._finish_shot()
        self._detector.reset_counters()

        self._sync_status(WorkoutStatus.inactive())

    # Timer

    def tick(self, now: float | None = None) -> None:
        """Advance clocks; called about ten times per second.

        Updates workout and stopwatch time, the live position estimate and
        the position prompt, and syncs status to the phone once per sync
        interval.
        """
        with self._lock:
            if self._state is not WorkoutState.RUNNING or self._started_at is None:
                return

            now = self._clock() if now is None else now
            self.elapsed_time = now - self._started_at

            if self._stopwatch.is_running:
                self.current_estimate = self._estimator.estimate(self._stopwatch.update(now))

            if (
                self._prompt_due_at is not None
                and now >= self._prompt_due_at
                and not self._stopwatch.is_running
            ):
                self.show_position_prompt = True
                self._prompt_due_at = None

            interval = self.settings.session.status_sync_interval_s
            if self._last_sync_at is None or now - self._last_sync_at >= interval:
                self._last_sync_at = now
                self._sync_status(self.status)

    # Stopwatch

    def toggle_stopwatch(self, now: float | None = None) -> None:
        """Start timing a shot, or stop timing and begin counting strokes."""
        with self._lock:
            now = self._clock() if now is None else now

            if self._stopwatch.is_running:
                elapsed = self._stopwatch.stop(now)
                self.current_estimate = self._estimator.estimate(elapsed)
                self._shot_started_at = now
                self._detector.reset()
                self._detector.activate()
                if elapsed > 0:
                    self._prompt_due_at = now + self.settings.split.position_prompt_delay_s
                logger.debug("Shot %d timed at %.3fs", self.current_shot_index, elapsed)
            else:
                self._stopwatch.start(now)
                self.current_estimate = None
                self.show_position_prompt = False
                self._prompt_due_at = None
                self.current_shot_index = self._next_shot_index
                self._shot_started_at = None
                self._detector.deactivate()

    def _reset_stopwatch(self) -> None:
        self._stopwatch.reset()
        self.current_estimate = None

    def _finish_shot(self) -> None:
        self._shot_started_at = None
        self._detector.deactivate()
        self.show_position_prompt = False
        self._prompt_due_at = None

    # Split recording

    def estimate(self) -> RockPosition | None:
        """Estimate the current shot's position from the stopwatch."""
        with self._lock:
            return self._estimator.estimate(self._stopwatch.elapsed)

    def record_split(self, position: RockPosition) -> bool:
        """Record where the timed rock stopped.

        Returns:
            False if there is no shot time to record
        """
        with self._lock:
            elapsed = self._stopwatch.elapsed
            if not elapsed > 0:
                return False

            self._next_shot_index += 1
            self._finish_shot()
            self._estimator.record(position, elapsed)
            self.last_recorded_position = position

            logger.info(
                "Shot %d: %s at %s (%d strokes this end)",
                self.current_shot_index,
                position.label,
                format_stopwatch(elapsed),
                self.counters.count_in_end,
            )
            return True

    def skip_split(self) -> None:
        """Dismiss the position prompt and finish the shot unrecorded."""
        with self._lock:
            if self._shot_started_at is not None:
                self._next_shot_index += 1
            self._finish_shot()

    # Sensor feed

    def process_sample(self, sample: Sample, timestamp: float | None = None) -> StrokeEvent | None:
        """Feed one accelerometer sample.

        Args:
            sample: Raw accelerometer reading
            timestamp: Monotonic sample time (clock is read if None)

        Returns:
            StrokeEvent if the sample completed a stroke
        """
        with self._lock:
            if not self.is_shot_active or self._shot_started_at is None:
                return None

            now = self._clock() if timestamp is None else timestamp
            event = self._detector.ingest(sample, now)

            if self.debug_mode:
                self._recorder.append(
                    DebugSample(
                        shot=self.current_shot_index,
                        timestamp=now - self._shot_started_at,
                        x=sample.x,
                        y=sample.y,
                        z=sample.z,
                        strokes=self.counters.count_in_end,
                    )
                )

            return event

    # Health service callbacks

    def handle_state_change(self, state: WorkoutState) -> None:
        """Apply a state reported by the health service."""
        with self._lock:
            if state is WorkoutState.NOT_STARTED:
                return
            self._state = state

    def handle_heart_rate(self, bpm: float) -> None:
        """Record a heart rate reading and update the running average."""
        with self._lock:
            if not bpm > 0:
                return
            self.heart_rate = bpm
            self._heart_rate_sum += bpm
            self._heart_rate_count += 1
            self.average_heart_rate = self._heart_rate_sum / self._heart_rate_count

    def handle_calories(self, kcal: float) -> None:
        """Record the cumulative active calories."""
        with self._lock:
            if kcal >= 0:
                self.active_calories = kcal

    # Debug data and sync

    @property
    def debug_sample_count(self) -> int:
        """Number of samples waiting to be exported."""
        return self._recorder.sample_count

    def debug_csv(self) -> str:
        """Export the recorded samples as CSV."""
        with self._lock:
            return self._recorder.to_csv()

    def _send_and_clear_debug_data(self) -> None:
        if not (self.debug_mode and self._recorder.has_data):
            return

        csv_data = self._recorder.to_csv()
        file_name = DebugRecorder.make_filename(self._wall_clock(), self.current_end)
        logger.info("Uploading %d debug samples as %s", self._recorder.sample_count, file_name)
        if self._link is not None:
            self._link.send_debug_data(csv_data, file_name)
        self._recorder.clear()
        self._shot_started_at = None
        self._detector.deactivate()

    def _sync_status(self, status: WorkoutStatus) -> None:
        if self._link is not None:
            self._link.sync_workout_status(status)

    # Formatting

    def formatted_elapsed_time(self) -> str:
        """Workout time as ``MM:SS.t``."""
        return format_elapsed(self.elapsed_time)

    def formatted_stopwatch_time(self) -> str:
        """Shot time as ``S.hh``."""
        return format_stopwatch(self._stopwatch.elapsed)
