"""Shared error types for stability_core."""

from __future__ import annotations


class StabilityError(Exception):
    """Base exception for errors synthesized by stability decorators."""


class CallCancelledError(StabilityError):
    """Raised when a call context is cancelled before a wait completes."""

    def __init__(self, message: str = "call_cancelled") -> None:
        super().__init__(message)


class DeadlineExceededError(CallCancelledError):
    """Raised when a call context deadline passes before a wait completes.

    Attributes:
        timeout: Context timeout in seconds that was exceeded.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"deadline_exceeded: timeout={timeout:g}s")
