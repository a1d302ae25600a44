"""Tests for the workout session orchestrator."""

from __future__ import annotations

import pytest

from curling_sweeper.analysis.splits import SplitEstimator
from curling_sweeper.analysis.strokes import LookbackDetector
from curling_sweeper.core.config import SessionSettings, Settings, StrokeDetectionSettings
from curling_sweeper.core.exceptions import HealthServiceError, SessionStateError
from curling_sweeper.core.types import RockPosition, Sample, ShotPhase, WorkoutState
from curling_sweeper.session.stopwatch import Stopwatch
from curling_sweeper.session.workout import WorkoutSession


@pytest.fixture
def session(settings, health, status_sink, clock, wall_clock) -> WorkoutSession:
    """Create a started workout session."""
    workout = WorkoutSession(
        health=health,
        link=status_sink,
        settings=settings,
        clock=clock,
        wall_clock=lambda: wall_clock,
    )
    workout.start()
    return workout


def _time_shot(session: WorkoutSession, clock, seconds: float) -> None:
    """Start and stop the stopwatch ``seconds`` apart."""
    session.toggle_stopwatch()
    clock.advance(seconds)
    session.toggle_stopwatch()


def _sweep(session: WorkoutSession, clock, square_wave, half_periods: int = 7) -> int:
    """Feed a sweeping motion starting at the current clock time."""
    strokes = 0
    for t, sample in square_wave(1.5, 6, half_periods, start=clock.now):
        if session.process_sample(sample, t) is not None:
            strokes += 1
    clock.now += half_periods * 6 / 60.0
    return strokes


class TestLifecycle:
    """Tests for starting, pausing and ending workouts."""

    def test_start_sets_first_end(self, session: WorkoutSession, health) -> None:
        """Starting begins end 1 with the health service running."""
        assert session.state == WorkoutState.RUNNING
        assert session.is_active
        assert session.current_end == 1
        assert health.calls == ["start"]

    def test_start_twice_raises(self, session: WorkoutSession) -> None:
        """A session can only be started once."""
        with pytest.raises(SessionStateError):
            session.start()

    def test_health_failure_on_start(self, settings, clock, failing_health) -> None:
        """Health service failures surface as HealthServiceError."""
        workout = WorkoutSession(health=failing_health("start"), settings=settings, clock=clock)

        with pytest.raises(HealthServiceError):
            workout.start()
        assert workout.state == WorkoutState.NOT_STARTED

    def test_pause_and_resume(self, session: WorkoutSession, health, clock) -> None:
        """Ticks are ignored while paused."""
        clock.advance(5.0)
        session.tick()
        session.pause()
        assert session.is_paused

        clock.advance(5.0)
        session.tick()
        assert session.elapsed_time == pytest.approx(5.0)

        session.resume()
        session.tick()
        assert session.elapsed_time == pytest.approx(10.0)
        assert health.calls == ["start", "pause", "resume"]

    def test_pause_when_not_running_raises(self, session: WorkoutSession) -> None:
        """Only a running workout can be paused."""
        session.pause()
        with pytest.raises(SessionStateError):
            session.pause()

    def test_end_resets_and_syncs_final_status(
        self, session: WorkoutSession, health, status_sink, clock, square_wave
    ) -> None:
        """Ending saves the workout, clears counts and reports inactive."""
        _time_shot(session, clock, 4.0)
        assert _sweep(session, clock, square_wave) > 0

        session.end()

        assert session.state == WorkoutState.ENDED
        assert session.stroke_count_total == 0
        assert session.current_end == 0
        assert health.calls[-1] == "end"
        final = status_sink.statuses[-1]
        assert not final.is_active
        assert final.stroke_count == 0

    def test_end_when_not_active_raises(self, session: WorkoutSession) -> None:
        """Ending twice raises."""
        session.end()
        with pytest.raises(SessionStateError):
            session.end()

    def test_health_failure_on_end_still_resets(self, settings, clock, failing_health) -> None:
        """A failing health service does not block ending."""
        workout = WorkoutSession(health=failing_health("end"), settings=settings, clock=clock)
        workout.start()

        workout.end()

        assert workout.state == WorkoutState.ENDED

    def test_end_after_health_reports_ended(
        self, session: WorkoutSession, health, status_sink, clock, square_wave
    ) -> None:
        """Ending still saves and resets once the health service has ended."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)
        session.tick()
        session.handle_state_change(WorkoutState.ENDED)

        session.end()

        assert health.calls[-1] == "end"
        assert len(status_sink.uploads) == 1
        assert not status_sink.statuses[-1].is_active
        assert session.current_end == 0
        assert session.stroke_count_total == 0
        assert session.stopwatch_time == 0.0
        with pytest.raises(SessionStateError):
            session.end()

    def test_discard_after_health_reports_ended(self, session: WorkoutSession, health) -> None:
        """Discarding is allowed until the session has been reset."""
        session.handle_state_change(WorkoutState.ENDED)

        session.discard()

        assert health.calls[-1] == "discard"
        assert session.current_end == 0

    def test_discard(self, session: WorkoutSession, health, clock, square_wave) -> None:
        """Discarding drops debug data and notifies the health service."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)
        assert session.debug_sample_count > 0

        session.discard()

        assert health.calls[-1] == "discard"
        assert session.debug_sample_count == 0
        assert not session.is_active


class TestStrokeCounting:
    """Tests for shot-gated stroke counting."""

    def test_samples_ignored_before_shot(
        self, session: WorkoutSession, clock, square_wave
    ) -> None:
        """No strokes are counted without a timed shot."""
        assert _sweep(session, clock, square_wave) == 0
        assert session.stroke_count_total == 0

    def test_samples_ignored_without_workout(
        self, settings, health, clock, square_wave
    ) -> None:
        """A timed shot does not count strokes before start or after end."""
        workout = WorkoutSession(health=health, settings=settings, clock=clock)
        _time_shot(workout, clock, 4.0)
        assert _sweep(workout, clock, square_wave) == 0

        workout.start()
        workout.end()
        _time_shot(workout, clock, 4.0)
        assert _sweep(workout, clock, square_wave) == 0
        assert workout.stroke_count_total == 0

    def test_samples_ignored_while_timing(
        self, session: WorkoutSession, clock, square_wave
    ) -> None:
        """Strokes are not counted while the stopwatch runs."""
        session.toggle_stopwatch()

        assert _sweep(session, clock, square_wave) == 0

    def test_counts_after_stopwatch_stops(
        self, session: WorkoutSession, clock, square_wave
    ) -> None:
        """Strokes are counted once the shot has been timed."""
        _time_shot(session, clock, 4.0)

        assert session.is_shot_active
        assert _sweep(session, clock, square_wave) == 6
        assert session.stroke_count_end == 6
        assert session.stroke_count_total == 6

    def test_recording_split_stops_counting(
        self, session: WorkoutSession, clock, square_wave
    ) -> None:
        """Once the position is recorded, further sweeping is ignored."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)

        session.record_split(RockPosition.WEIGHT_5)

        assert not session.is_shot_active
        assert _sweep(session, clock, square_wave) == 0

    def test_skip_stops_counting(self, session: WorkoutSession, clock, square_wave) -> None:
        """Skipping the prompt also ends the shot."""
        _time_shot(session, clock, 4.0)
        session.skip_split()

        assert _sweep(session, clock, square_wave) == 0

    def test_new_end_resets_end_count(
        self, session: WorkoutSession, clock, square_wave
    ) -> None:
        """A new end clears the per-end count but keeps the total."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)

        session.mark_new_end()

        assert session.current_end == 2
        assert session.stroke_count_end == 0
        assert session.stroke_count_total == 6
        assert session.stopwatch_time == 0.0
        assert not session.is_shot_active

    def test_lookback_algorithm_from_settings(self, health, clock) -> None:
        """The detector algorithm follows configuration."""
        settings = Settings(stroke=StrokeDetectionSettings(algorithm="lookback"))

        workout = WorkoutSession(health=health, settings=settings, clock=clock)

        assert isinstance(workout.detector, LookbackDetector)


class TestSplits:
    """Tests for shot timing and split recording."""

    def test_live_estimate_while_timing(self, session: WorkoutSession, clock) -> None:
        """The tick refreshes the stopwatch and its estimate."""
        session.toggle_stopwatch()
        assert session.current_estimate is None

        clock.advance(4.05)
        session.tick()

        assert session.stopwatch_time == pytest.approx(4.05)
        assert session.current_estimate == RockPosition.WEIGHT_4

    def test_record_split_calibrates(self, session: WorkoutSession, clock) -> None:
        """Recording feeds the stopwatch time into the estimator."""
        _time_shot(session, clock, 3.75)

        assert session.record_split(RockPosition.WEIGHT_6)

        assert session.estimator.split_time(RockPosition.WEIGHT_6) == pytest.approx(3.75)
        assert session.last_recorded_position == RockPosition.WEIGHT_6
        assert session.estimate() == RockPosition.WEIGHT_6

    def test_record_without_time_is_ignored(self, session: WorkoutSession) -> None:
        """Nothing is recorded without a stopwatch time."""
        assert not session.record_split(RockPosition.WEIGHT_6)
        assert session.estimator.table.recorded_positions == []

    def test_estimator_carries_over(self, health, clock, settings) -> None:
        """A calibration from an earlier workout can be reused."""
        estimator = SplitEstimator(settings.split)
        estimator.record(RockPosition.WEIGHT_5, 3.6)

        workout = WorkoutSession(health=health, settings=settings, estimator=estimator, clock=clock)

        assert workout.estimator.split_time(RockPosition.WEIGHT_5) == 3.6

    def test_position_prompt_after_delay(self, session: WorkoutSession, clock) -> None:
        """The position prompt appears once the rock has had time to stop."""
        _time_shot(session, clock, 4.0)
        stopped_at = clock.now

        session.tick(stopped_at + 9.5)
        assert not session.show_position_prompt

        session.tick(stopped_at + 10.0)
        assert session.show_position_prompt

        session.record_split(RockPosition.WEIGHT_5)
        assert not session.show_position_prompt

    def test_new_timing_cancels_prompt(self, session: WorkoutSession, clock) -> None:
        """Starting the next shot before the delay cancels the prompt."""
        _time_shot(session, clock, 4.0)
        session.toggle_stopwatch()

        session.tick(clock.now + 20.0)

        assert not session.show_position_prompt

    def test_shot_index_advances_on_record(self, session: WorkoutSession, clock) -> None:
        """Each recorded shot gets the next index."""
        _time_shot(session, clock, 4.0)
        assert session.current_shot_index == 0
        session.record_split(RockPosition.WEIGHT_5)

        _time_shot(session, clock, 3.9)
        assert session.current_shot_index == 1


class TestStatusAndDebug:
    """Tests for phone sync and debug recording."""

    def test_status_sync_is_throttled(self, session: WorkoutSession, status_sink) -> None:
        """Status is synced at most once per interval."""
        for i in range(9):
            session.tick(i * 0.25)

        assert len(status_sink.statuses) == 3
        assert status_sink.statuses[-1].elapsed_time == pytest.approx(2.0)
        assert status_sink.statuses[-1].current_end == 1

    def test_debug_csv_rows(self, session: WorkoutSession, clock) -> None:
        """Samples during a shot are recorded with shot and stroke counts."""
        _time_shot(session, clock, 4.0)
        session.process_sample(Sample(x=0.1, y=1.5, z=0.98), clock.now)
        session.process_sample(Sample(x=0.1, y=-1.5, z=0.98), clock.now + 0.5)

        lines = session.debug_csv().splitlines()

        assert lines[0] == "shot,timestamp,x,y,z,strokes"
        assert lines[1] == "0,0.0000,0.100000,1.500000,0.980000,0"
        assert lines[2] == "0,0.5000,0.100000,-1.500000,0.980000,1"

    def test_debug_disabled_records_nothing(self, health, clock, square_wave) -> None:
        """Without debug mode no samples are kept."""
        settings = Settings(session=SessionSettings(debug_mode=False))
        workout = WorkoutSession(health=health, settings=settings, clock=clock)
        workout.start()
        _time_shot(workout, clock, 4.0)

        _sweep(workout, clock, square_wave)

        assert workout.debug_sample_count == 0

    def test_new_end_uploads_debug_data(
        self, session: WorkoutSession, status_sink, clock, square_wave
    ) -> None:
        """Debug data of the finished end is uploaded and cleared."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)

        session.mark_new_end()

        assert len(status_sink.uploads) == 1
        csv_data, file_name = status_sink.uploads[0]
        assert file_name == "workout_2025-12-21_14-05_end1.csv"
        assert csv_data.startswith("shot,timestamp,x,y,z,strokes\n")
        assert session.debug_sample_count == 0

    def test_end_uploads_remaining_debug_data(
        self, session: WorkoutSession, status_sink, clock, square_wave
    ) -> None:
        """Ending the workout uploads what is left."""
        _time_shot(session, clock, 4.0)
        _sweep(session, clock, square_wave)

        session.end()

        assert len(status_sink.uploads) == 1

    def test_heart_rate_average(self, session: WorkoutSession) -> None:
        """Heart rate readings keep a running average."""
        for bpm in (100.0, 110.0, 120.0):
            session.handle_heart_rate(bpm)
        session.handle_heart_rate(0.0)

        assert session.heart_rate == 120.0
        assert session.average_heart_rate == pytest.approx(110.0)

    def test_calories_and_state_callbacks(self, session: WorkoutSession) -> None:
        """Health callbacks update the session."""
        session.handle_calories(42.5)
        session.handle_state_change(WorkoutState.PAUSED)

        assert session.active_calories == 42.5
        assert session.is_paused
        assert session.status.calories == 42.5

    def test_formatted_times(self, session: WorkoutSession, clock) -> None:
        """Display strings follow the watch layout."""
        _time_shot(session, clock, 4.25)
        session.tick(125.5)

        assert session.formatted_stopwatch_time() == "4.25"
        assert session.formatted_elapsed_time() == "02:05.5"


class TestStopwatch:
    """Tests for the shot stopwatch."""

    def test_phases(self, clock) -> None:
        """Stopwatch moves from idle to timing to stopped."""
        stopwatch = Stopwatch(clock)
        assert stopwatch.phase == ShotPhase.IDLE

        stopwatch.start()
        assert stopwatch.is_running
        clock.advance(3.5)
        assert stopwatch.stop() == pytest.approx(3.5)
        assert stopwatch.phase == ShotPhase.STOPPED

        clock.advance(10.0)
        assert stopwatch.update() == pytest.approx(3.5)

        stopwatch.reset()
        assert stopwatch.elapsed == 0.0
        assert stopwatch.phase == ShotPhase.IDLE
