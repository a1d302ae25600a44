"""Accelerometer debug recording and CSV export."""

from __future__ import annotations

import csv
import io
from datetime import datetime

from curling_sweeper.core.exceptions import DebugLogError
from curling_sweeper.core.logging import get_logger
from curling_sweeper.core.types import DebugSample

logger = get_logger(__name__)

CSV_HEADER = ("shot", "timestamp", "x", "y", "z", "strokes")


class DebugRecorder:
    """Collects raw samples of each shot for offline tuning."""

    def __init__(self) -> None:
        self._samples: list[DebugSample] = []

    @property
    def samples(self) -> list[DebugSample]:
        """Recorded samples in arrival order."""
        return list(self._samples)

    @property
    def sample_count(self) -> int:
        """Number of recorded samples."""
        return len(self._samples)

    @property
    def has_data(self) -> bool:
        """Check if there is anything to export."""
        return bool(self._samples)

    def append(self, sample: DebugSample) -> None:
        """Record one sample."""
        self._samples.append(sample)

    def clear(self) -> None:
        """Drop all recorded samples."""
        self._samples.clear()

    def to_csv(self) -> str:
        """Export samples as CSV with a header row.

        Timestamps use 4 decimals and accelerations 6 decimals.
        """
        lines = [",".join(CSV_HEADER)]
        for s in self._samples:
            lines.append(
                f"{s.shot:d},{s.timestamp:.4f},{s.x:.6f},{s.y:.6f},{s.z:.6f},{s.strokes:d}"
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def make_filename(when: datetime, end: int) -> str:
        """Build the export file name, e.g. ``workout_2025-12-21_14-05_end3.csv``."""
        return f"workout_{when:%Y-%m-%d_%H-%M}_end{end}.csv"


def parse_debug_csv(text: str) -> list[DebugSample]:
    """Parse CSV produced by ``DebugRecorder.to_csv``.

    Args:
        text: CSV content including the header row

    Returns:
        Samples in file order

    Raises:
        DebugLogError: If the header or any row is malformed
    """
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames is None or tuple(reader.fieldnames) != CSV_HEADER:
        raise DebugLogError(f"Unexpected debug CSV header: {reader.fieldnames}")

    samples: list[DebugSample] = []
    for line_no, row in enumerate(reader, start=2):
        try:
            samples.append(
                DebugSample(
                    shot=int(row["shot"]),
                    timestamp=float(row["timestamp"]),
                    x=float(row["x"]),
                    y=float(row["y"]),
                    z=float(row["z"]),
                    strokes=int(row["strokes"]),
                )
            )
        except (TypeError, ValueError) as e:
            raise DebugLogError(f"Invalid debug CSV row {line_no}: {e}") from e

    logger.debug("Parsed %d debug samples", len(samples))
    return samples
