"""Exceptions raised by the strategy optimizer."""


class OptimizationError(Exception):
    """Base exception for all strategy optimization failures."""


class InvalidConfigError(OptimizationError, ValueError):
    """Raised before any search when an optimization precondition is violated."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid optimization config: {reason}")


class InfeasibleStrategyError(OptimizationError):
    """Raised when no strategy satisfies the pit-stop and compound constraints.

    The inputs were individually valid but jointly unsatisfiable, e.g.
    ``max_pit_stops`` too low to allow the mandatory compound change.
    """

    def __init__(self, message: str = "No valid strategy found within constraints") -> None:
        self.message = message
        super().__init__(message)
