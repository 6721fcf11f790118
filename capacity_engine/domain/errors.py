"""Exception hierarchy shared by the analytics services."""

from __future__ import annotations


class CapacityAnalyticsError(Exception):
    """Base exception for capacity analytics failures."""


class AnalyticsValidationError(CapacityAnalyticsError):
    """Raised when caller-supplied analysis options are invalid."""


class InsufficientDataError(CapacityAnalyticsError):
    """Raised when a regression is requested over too few historical periods."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"At least {required} historical periods are required, got {available}"
        )
        self.required = required
        self.available = available
