"""Watch and phone messaging: status sync and debug uploads."""

from curling_sweeper.connectivity.link import LoopbackTransport, Transport, WatchLink
from curling_sweeper.connectivity.messages import DebugDataMessage, WorkoutStatusMessage
from curling_sweeper.connectivity.receiver import PhoneReceiver

__all__ = [
    "Transport",
    "WatchLink",
    "LoopbackTransport",
    "PhoneReceiver",
    "WorkoutStatusMessage",
    "DebugDataMessage",
]
