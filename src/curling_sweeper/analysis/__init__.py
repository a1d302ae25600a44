"""Pure analysis logic: stroke detection and split time estimation.

This module contains NO platform integration. All classes operate on
typed dataclasses and return results.
"""

from curling_sweeper.analysis.splits import CalibrationTable, SplitEstimator
from curling_sweeper.analysis.strokes import (
    LookbackDetector,
    StrokeDetector,
    ZeroCrossingDetector,
    create_detector,
)

__all__ = [
    "StrokeDetector",
    "ZeroCrossingDetector",
    "LookbackDetector",
    "create_detector",
    "SplitEstimator",
    "CalibrationTable",
]
