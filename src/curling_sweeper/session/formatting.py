"""Display formatting for workout and stopwatch times."""

from __future__ import annotations


def _truncate(seconds: float, scale: int) -> int:
    # Round away float noise first so 4.1 does not display as 4.09
    return int(round(max(0.0, seconds) * scale, 6))


def format_elapsed(seconds: float) -> str:
    """Format workout time as ``MM:SS.t``."""
    whole, tenths = divmod(_truncate(seconds, 10), 10)
    return f"{whole // 60:02d}:{whole % 60:02d}.{tenths}"


def format_elapsed_short(seconds: float) -> str:
    """Format workout time as ``MM:SS``."""
    whole = _truncate(seconds, 1)
    return f"{whole // 60:02d}:{whole % 60:02d}"


def format_stopwatch(seconds: float) -> str:
    """Format a shot time as ``S.hh``."""
    whole, hundredths = divmod(_truncate(seconds, 100), 100)
    return f"{whole}.{hundredths:02d}"
