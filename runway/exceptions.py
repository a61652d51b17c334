"""Custom exceptions for the runway simulator."""

from __future__ import annotations


class RunwayError(Exception):
    """Base exception for runway simulator errors."""

    pass


class ValidationError(RunwayError):
    """Raised when a simulation configuration fails validation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class SimulationError(RunwayError):
    """Raised when simulation encounters numerical or logical issues."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BridgeUnavailableError(RunwayError):
    """Raised when no background execution context is available."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SimulationCancelledError(RunwayError):
    """Raised for requests still pending when the execution context is torn down."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Simulation {request_id} cancelled: execution context terminated")
