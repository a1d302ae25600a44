"""Watch side of the paired-device link."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from curling_sweeper.connectivity.messages import DebugDataMessage, WorkoutStatusMessage
from curling_sweeper.core.exceptions import TransportError
from curling_sweeper.core.logging import get_logger
from curling_sweeper.core.types import WorkoutStatus

if TYPE_CHECKING:
    from curling_sweeper.connectivity.receiver import PhoneReceiver

logger = get_logger(__name__)


class Transport(Protocol):
    """Message channel to the paired device.

    ``send_message`` requires the peer to be reachable and raises
    TransportError on failure. ``update_context`` replaces the latest
    state and is delivered whenever the peer next connects.
    """

    @property
    def is_reachable(self) -> bool: ...

    def send_message(self, message: dict[str, Any]) -> None: ...

    def update_context(self, context: dict[str, Any]) -> None: ...


class WatchLink:
    """Sends workout status and debug data to the phone.

    Delivery problems are logged and reflected in ``last_send_status``;
    they never interrupt the workout.
    """

    def __init__(self, transport: Transport) -> None:
        """Initialize link.

        Args:
            transport: Channel to the phone
        """
        self._transport = transport
        self.last_send_status: str | None = None

    @property
    def is_phone_reachable(self) -> bool:
        """Check if the phone can receive messages now."""
        return self._transport.is_reachable

    def sync_workout_status(self, status: WorkoutStatus) -> None:
        """Publish a status snapshot.

        Args:
            status: Current workout status
        """
        message = WorkoutStatusMessage.from_status(status).model_dump(by_alias=True)

        try:
            self._transport.update_context(message)
            if self._transport.is_reachable:
                self._transport.send_message(message)
        except TransportError as e:
            logger.warning("Status sync failed: %s", e)

    def send_debug_data(self, csv_data: str, file_name: str) -> None:
        """Send an accelerometer debug CSV.

        Args:
            csv_data: CSV content
            file_name: Suggested file name on the phone
        """
        if not self._transport.is_reachable:
            self.last_send_status = "iPhone not reachable"
            logger.warning("Debug data %s not sent: phone not reachable", file_name)
            return

        message = DebugDataMessage(debug_csv=csv_data, file_name=file_name).model_dump(
            by_alias=True
        )
        try:
            self._transport.send_message(message)
        except TransportError as e:
            self.last_send_status = f"Failed: {e}"
            logger.warning("Debug data %s not sent: %s", file_name, e)
            return

        self.last_send_status = f"Sent {len(csv_data)} bytes"
        logger.info("Sent debug data %s (%d bytes)", file_name, len(csv_data))


class LoopbackTransport:
    """Transport that hands messages straight to a PhoneReceiver."""

    def __init__(self, receiver: PhoneReceiver, reachable: bool = True) -> None:
        self.receiver = receiver
        self.reachable = reachable

    @property
    def is_reachable(self) -> bool:
        return self.reachable

    def send_message(self, message: dict[str, Any]) -> None:
        if not self.reachable:
            raise TransportError("Phone not reachable")
        self.receiver.handle_message(dict(message))

    def update_context(self, context: dict[str, Any]) -> None:
        self.receiver.handle_context(dict(context))
