"""Custom exceptions for Curling Sweeper."""


class CurlingSweeperError(Exception):
    """Base exception for all Curling Sweeper errors."""

    pass


class SessionStateError(CurlingSweeperError):
    """Workout session operation is not valid in the current state."""

    def __init__(self, message: str = "Invalid workout session state") -> None:
        self.message = message
        super().__init__(self.message)


class HealthServiceError(CurlingSweeperError):
    """The health tracking service failed to start or control a workout."""

    def __init__(self, message: str = "Health service error") -> None:
        self.message = message
        super().__init__(self.message)


class TransportError(CurlingSweeperError):
    """Failed to deliver a message to the paired device."""

    def __init__(self, message: str = "Failed to send message") -> None:
        self.message = message
        super().__init__(self.message)


class CalibrationError(CurlingSweeperError):
    """Invalid or unreadable split-time calibration data."""

    def __init__(self, message: str = "Calibration failed") -> None:
        self.message = message
        super().__init__(self.message)


class DebugLogError(CurlingSweeperError):
    """Accelerometer debug log could not be parsed."""

    def __init__(self, message: str = "Invalid debug log") -> None:
        self.message = message
        super().__init__(self.message)
