"""Self-calibrating split time to rock position estimation.

This module is pure logic apart from the optional JSON persistence
helpers at the bottom of ``SplitEstimator``.

Split times decrease with position: a faster hog-to-hog time means a
heavier rock that travels further. ``split_times[i]`` is the slowest
time that still reaches position ``i``.
"""

from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from curling_sweeper.core.config import SplitSettings
from curling_sweeper.core.exceptions import CalibrationError
from curling_sweeper.core.logging import get_logger
from curling_sweeper.core.types import POSITION_COUNT, RockPosition

logger = get_logger(__name__)

# Marks a position without a direct observation
NOT_RECORDED = -1.0


def default_split_times(settings: SplitSettings | None = None) -> NDArray[np.float64]:
    """Build the seed split table.

    HOG is effectively infinite; weights start at ``first_weight_time_s``
    and drop by ``default_step_s`` per position.

    Args:
        settings: Split settings (uses defaults if None)

    Returns:
        Array of POSITION_COUNT split times in seconds
    """
    settings = settings or SplitSettings()
    steps = np.arange(POSITION_COUNT - 1, dtype=np.float64)
    weights = np.round(settings.first_weight_time_s - steps * settings.default_step_s, 6)
    return np.concatenate(([settings.hog_time_s], weights)).astype(np.float64)


def recalculate_split_times(
    recorded: NDArray[np.float64],
    base: NDArray[np.float64],
    default_step: float = 0.1,
) -> NDArray[np.float64]:
    """Fit split times through the recorded observations.

    Walks positions in order. Gaps between two recorded positions are
    filled linearly; positions before the first record are extrapolated
    with the step known at that point (the default), and positions after
    the last record with the last computed step. With no records the
    base table is returned unchanged.

    Args:
        recorded: Recorded times, NOT_RECORDED where unobserved
        base: Current split times
        default_step: Seconds per position before two records are known

    Returns:
        New split time array
    """
    splits = np.array(base, dtype=np.float64)
    count = len(recorded)
    last_index = -1
    step = default_step

    for i in range(count):
        observed = float(recorded[i])
        if not observed > 0:
            continue

        splits[i] = observed

        if last_index >= 0:
            span = i - last_index
            if span > 0:
                step = (float(recorded[last_index]) - observed) / span
            for j in range(last_index + 1, i):
                splits[j] = recorded[last_index] - (j - last_index) * step
        elif i > 0:
            for j in range(i - 1, -1, -1):
                splits[j] = observed + (i - j) * step

        last_index = i

    if 0 <= last_index < count - 1:
        for j in range(last_index + 1, count):
            splits[j] = recorded[last_index] - (j - last_index) * step

    return splits


@dataclass(frozen=True, eq=False)
class CalibrationTable:
    """Immutable snapshot of split and recorded times.

    Attributes:
        split_times: Current best estimate per position (always complete)
        recorded_times: Direct observations, NOT_RECORDED where missing
    """

    split_times: NDArray[np.float64]
    recorded_times: NDArray[np.float64]

    def __post_init__(self) -> None:
        self.split_times.setflags(write=False)
        self.recorded_times.setflags(write=False)

    @classmethod
    def initial(cls, settings: SplitSettings | None = None) -> CalibrationTable:
        """Seed table with no observations."""
        return cls(
            split_times=default_split_times(settings),
            recorded_times=np.full(POSITION_COUNT, NOT_RECORDED, dtype=np.float64),
        )

    def is_recorded(self, position: RockPosition) -> bool:
        """Check if a position has a direct observation."""
        return bool(self.recorded_times[int(position)] > 0)

    @property
    def recorded_positions(self) -> list[RockPosition]:
        """Positions with a direct observation, shortest travel first."""
        return [RockPosition(int(i)) for i in np.flatnonzero(self.recorded_times > 0)]


class SplitEstimator:
    """Maps a running hog-to-hog time onto a rock position.

    Each ``record`` call replaces the table with a freshly computed one,
    so ``estimate`` always reads a complete table even if a record is in
    progress on another thread.
    """

    def __init__(
        self,
        settings: SplitSettings | None = None,
        table: CalibrationTable | None = None,
    ) -> None:
        """Initialize estimator.

        Args:
            settings: Split settings (uses defaults if None)
            table: Existing calibration to continue from
        """
        self.settings = settings or SplitSettings()
        self._table = table or CalibrationTable.initial(self.settings)
        self._lock = threading.Lock()

    @property
    def table(self) -> CalibrationTable:
        """Current calibration snapshot."""
        return self._table

    @property
    def split_times(self) -> list[float]:
        """Split times in seconds, indexed by position."""
        return [float(t) for t in self._table.split_times]

    @property
    def recorded_times(self) -> list[float]:
        """Recorded times in seconds, NOT_RECORDED where unobserved."""
        return [float(t) for t in self._table.recorded_times]

    def split_time(self, position: RockPosition) -> float:
        """Split time for one position."""
        return float(self._table.split_times[int(position)])

    def estimate(self, elapsed: float) -> RockPosition | None:
        """Estimate where a rock timed at ``elapsed`` will stop.

        Args:
            elapsed: Stopwatch time in seconds

        Returns:
            Furthest position whose split time is not exceeded, HOG if
            none, or None if no time has elapsed
        """
        if not elapsed > 0:
            return None

        reachable = np.flatnonzero(elapsed <= self._table.split_times)
        if reachable.size == 0:
            return RockPosition.HOG
        return RockPosition(int(reachable[-1]))

    def record(self, position: RockPosition, elapsed: float) -> bool:
        """Record where a timed rock actually stopped and recalibrate.

        HOG is only overwritten by a faster time and HIT only by a slower
        one; other positions always take the new time. Recorded times
        that contradict the new observation are dropped, since ice speed
        changes over a game.

        Args:
            position: Observed resting position
            elapsed: Stopwatch time in seconds

        Returns:
            False if the time was not positive, True otherwise
        """
        position = RockPosition(position)
        if not elapsed > 0 or math.isinf(elapsed):
            return False

        index = int(position)
        with self._lock:
            recorded = np.array(self._table.recorded_times, dtype=np.float64)
            last = len(recorded) - 1
            current = recorded[index]

            if 0 < index < last:
                recorded[index] = elapsed
            elif index == 0 and (current < 0 or current > elapsed):
                recorded[index] = elapsed
            elif index == last and (current < 0 or current < elapsed):
                recorded[index] = elapsed
            else:
                logger.debug("Kept %s record %.3fs over %.3fs", position.name, current, elapsed)

            indices = np.arange(len(recorded))
            valid = recorded >= 0
            slower_shorter = (indices < index) & valid & (recorded <= elapsed)
            faster_longer = (indices > index) & valid & (recorded >= elapsed)
            stale = slower_shorter | faster_longer
            if stale.any():
                logger.info(
                    "Dropped %d inconsistent split(s) after %s at %.3fs",
                    int(stale.sum()),
                    position.name,
                    elapsed,
                )
            recorded[stale] = NOT_RECORDED

            splits = recalculate_split_times(
                recorded, self._table.split_times, self.settings.default_step_s
            )
            self._table = CalibrationTable(split_times=splits, recorded_times=recorded)

        logger.debug("Recorded %s at %.3fs", position.name, elapsed)
        return True

    def to_dict(self) -> dict[str, Any]:
        """Serialize the calibration table."""
        return {
            "split_times": self.split_times,
            "recorded_times": self.recorded_times,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        settings: SplitSettings | None = None,
    ) -> SplitEstimator:
        """Restore an estimator from ``to_dict`` output.

        Raises:
            CalibrationError: If the data is malformed
        """
        try:
            splits = np.asarray(data["split_times"], dtype=np.float64)
            recorded = np.asarray(data["recorded_times"], dtype=np.float64)
        except (KeyError, TypeError, ValueError) as e:
            raise CalibrationError(f"Invalid split calibration: {e}") from e

        if splits.shape != (POSITION_COUNT,) or recorded.shape != (POSITION_COUNT,):
            raise CalibrationError(
                f"Split calibration must have {POSITION_COUNT} positions"
            )
        if not np.all(np.isfinite(splits)):
            raise CalibrationError("Split times must be finite")

        table = CalibrationTable(split_times=splits, recorded_times=recorded)
        return cls(settings, table)

    def save(self, path: Path) -> None:
        """Save the calibration table as JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info("Saved split calibration to %s", path)

    @classmethod
    def load(cls, path: Path, settings: SplitSettings | None = None) -> SplitEstimator:
        """Load a calibration table saved with ``save``.

        Raises:
            CalibrationError: If the file is missing or invalid
        """
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CalibrationError(f"Failed to load split calibration: {e}") from e

        estimator = cls.from_dict(data, settings)
        logger.info("Loaded split calibration from %s", path)
        return estimator
