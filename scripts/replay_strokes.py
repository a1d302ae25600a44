#!/usr/bin/env python3
"""Replay recorded accelerometer data through the stroke detectors.

Reads a debug CSV exported by the watch and counts strokes per shot
with each detection algorithm, for tuning thresholds offline.
"""

from __future__ import annotations

import argparse
import csv
import sys
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path

from curling_sweeper.analysis.strokes import detect_strokes_batch
from curling_sweeper.core.config import StrokeDetectionSettings, get_settings
from curling_sweeper.core.exceptions import DebugLogError
from curling_sweeper.core.logging import get_logger, setup_logging
from curling_sweeper.core.types import DebugSample, Sample
from curling_sweeper.session.recorder import parse_debug_csv

logger = get_logger(__name__)

ALGORITHMS = ("zero_crossing", "lookback")


@dataclass
class ShotReplay:
    """Stroke counts for one recorded shot."""

    shot: int
    samples: int
    duration_s: float
    recorded_strokes: int
    counts: dict[str, int]


def replay_shot(
    shot: int,
    samples: list[DebugSample],
    settings: StrokeDetectionSettings,
    algorithms: tuple[str, ...],
) -> ShotReplay:
    """Run each algorithm over one shot's samples.

    Args:
        shot: Shot index
        samples: Samples of the shot in time order
        settings: Base detection settings
        algorithms: Algorithms to run

    Returns:
        Replay result for the shot
    """
    pairs = [(s.timestamp, Sample(x=s.x, y=s.y, z=s.z)) for s in samples]
    counts: dict[str, int] = {}
    for algorithm in algorithms:
        variant = settings.model_copy(update={"algorithm": algorithm})
        counts[algorithm] = len(detect_strokes_batch(pairs, variant))

    # The recorded column is the per-end count, so take the rise over the shot
    first, last = samples[0], samples[-1]
    return ShotReplay(
        shot=shot,
        samples=len(samples),
        duration_s=last.timestamp - first.timestamp,
        recorded_strokes=max(0, last.strokes - first.strokes),
        counts=counts,
    )


def replay_log(
    samples: list[DebugSample],
    settings: StrokeDetectionSettings,
    algorithms: tuple[str, ...] = ALGORITHMS,
) -> list[ShotReplay]:
    """Replay every shot in a debug log."""
    return [
        replay_shot(shot, list(group), settings, algorithms)
        for shot, group in groupby(samples, key=lambda s: s.shot)
    ]


def print_results(results: list[ShotReplay], algorithms: tuple[str, ...]) -> None:
    """Print per-shot counts as a table."""
    header = f"{'shot':>5} {'samples':>8} {'secs':>7} {'recorded':>9}"
    header += "".join(f" {name:>14}" for name in algorithms)
    print(header)
    print("-" * len(header))

    for r in results:
        row = f"{r.shot:>5} {r.samples:>8} {r.duration_s:>7.2f} {r.recorded_strokes:>9}"
        row += "".join(f" {r.counts[name]:>14}" for name in algorithms)
        print(row)

    print("-" * len(header))
    totals = f"{'total':>5} {sum(r.samples for r in results):>8} {'':>7} "
    totals += f"{sum(r.recorded_strokes for r in results):>9}"
    totals += "".join(f" {sum(r.counts[name] for r in results):>14}" for name in algorithms)
    print(totals)


def main() -> int:
    """Run replay script."""
    parser = argparse.ArgumentParser(description="Replay a debug CSV through stroke detectors")
    parser.add_argument(
        "csv",
        type=Path,
        help="Debug CSV exported by the watch",
    )
    parser.add_argument(
        "--algorithm",
        "-a",
        choices=(*ALGORITHMS, "both"),
        default="both",
        help="Detection algorithm (default: both)",
    )
    parser.add_argument(
        "--axis",
        choices=("x", "y", "z"),
        help="Sweep axis (default: from settings)",
    )
    parser.add_argument(
        "--sweep-threshold",
        type=float,
        help="Zero-crossing amplitude threshold in g",
    )
    parser.add_argument(
        "--lookback-threshold",
        type=float,
        help="Lookback amplitude threshold in g",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output CSV for per-shot counts",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.file)

    overrides = {
        "axis": args.axis,
        "sweep_threshold": args.sweep_threshold,
        "lookback_threshold": args.lookback_threshold,
    }
    stroke_settings = settings.stroke.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )
    algorithms = ALGORITHMS if args.algorithm == "both" else (args.algorithm,)

    try:
        samples = parse_debug_csv(args.csv.read_text(encoding="utf-8"))
    except (OSError, DebugLogError) as e:
        logger.error("Could not read %s: %s", args.csv, e)
        return 1

    if not samples:
        logger.warning("No samples in %s", args.csv)
        return 1

    results = replay_log(samples, stroke_settings, algorithms)
    print_results(results, algorithms)

    if args.output:
        with open(args.output, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["shot", "samples", "duration_s", "recorded", *algorithms])
            for r in results:
                writer.writerow(
                    [
                        r.shot,
                        r.samples,
                        f"{r.duration_s:.4f}",
                        r.recorded_strokes,
                        *(r.counts[name] for name in algorithms),
                    ]
                )
        logger.info("Results saved to %s", args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
