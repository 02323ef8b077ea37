"""
Exceptions raised by the planner core.

Storage failures are not wrapped: whatever the key/value store raises
(OSError, json errors, ...) reaches the caller unchanged.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base class for planner errors."""


class ConfigurationUnavailableError(PlannerError):
    """Raised when schedule generation is requested before any configuration was saved."""

    def __init__(self, message: str = "Schedule configuration unavailable") -> None:
        super().__init__(message)


class InvalidStatusError(PlannerError, ValueError):
    def __init__(self, status: str) -> None:
        super().__init__(f"Invalid course status: {status!r}")
        self.status = status
