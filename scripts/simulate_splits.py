#!/usr/bin/env python3
"""Apply split observations to the estimator and show the resulting table.

Observations are given as POSITION:SECONDS, where POSITION is a label
(HOG, 1-10, HACK, BOARD, HIT) or an index, e.g.::

    simulate_splits.py 5:4.0 8:3.7 HOG:4.9
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from curling_sweeper.analysis.splits import SplitEstimator
from curling_sweeper.core.config import get_settings
from curling_sweeper.core.exceptions import CalibrationError
from curling_sweeper.core.logging import get_logger, setup_logging
from curling_sweeper.core.types import RockPosition

logger = get_logger(__name__)

_BY_LABEL = {position.label: position for position in RockPosition}


def parse_position(text: str) -> RockPosition:
    """Parse a position label or index.

    Raises:
        ValueError: If the text names no position
    """
    key = text.strip().upper()
    if key in _BY_LABEL:
        return _BY_LABEL[key]
    if key in RockPosition.__members__:
        return RockPosition[key]
    return RockPosition(int(key))


def parse_observation(text: str) -> tuple[RockPosition, float]:
    """Parse ``POSITION:SECONDS`` for argparse."""
    try:
        position_text, seconds_text = text.rsplit(":", 1)
        return parse_position(position_text), float(seconds_text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid observation {text!r}: {e}") from e


def print_table(estimator: SplitEstimator) -> None:
    """Print split and recorded times per position."""
    print(f"{'position':>8} {'split':>8} {'recorded':>9}")
    for position in RockPosition:
        recorded = estimator.recorded_times[position]
        recorded_text = f"{recorded:>9.3f}" if recorded > 0 else f"{'-':>9}"
        print(f"{position.label:>8} {estimator.split_time(position):>8.3f} {recorded_text}")


def main() -> int:
    """Run simulation script."""
    parser = argparse.ArgumentParser(description="Simulate split time calibration")
    parser.add_argument(
        "observations",
        type=parse_observation,
        nargs="*",
        help="Observations as POSITION:SECONDS",
    )
    parser.add_argument(
        "--load",
        "-l",
        type=Path,
        help="Start from a saved calibration JSON",
    )
    parser.add_argument(
        "--save",
        "-s",
        type=Path,
        help="Save the resulting calibration JSON",
    )
    parser.add_argument(
        "--estimate",
        "-e",
        type=float,
        action="append",
        default=[],
        help="Print the estimate for a stopwatch time (repeatable)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    try:
        estimator = (
            SplitEstimator.load(args.load, settings.split)
            if args.load
            else SplitEstimator(settings.split)
        )
    except CalibrationError as e:
        logger.error("%s", e)
        return 1

    for position, seconds in args.observations:
        if not estimator.record(position, seconds):
            logger.warning("Ignored non-positive time for %s", position.label)

    print_table(estimator)

    for seconds in args.estimate:
        position = estimator.estimate(seconds)
        label = position.label if position is not None else "-"
        print(f"{seconds:.2f}s -> {label}")

    if args.save:
        estimator.save(args.save)

    return 0


if __name__ == "__main__":
    sys.exit(main())
