"""Resilience decorators for calls to unreliable dependencies."""

from stability_core.circuit_breaker import Breaker, CircuitOpenError
from stability_core.context import Call, CallContext, CallOutcome
from stability_core.debounce import DebounceFirst, DebounceLast
from stability_core.errors import (
    CallCancelledError,
    DeadlineExceededError,
    StabilityError,
)
from stability_core.retry import Retry, RetryPolicy

__all__ = [
    "Breaker",
    "Call",
    "CallCancelledError",
    "CallContext",
    "CallOutcome",
    "CircuitOpenError",
    "DeadlineExceededError",
    "DebounceFirst",
    "DebounceLast",
    "Retry",
    "RetryPolicy",
    "StabilityError",
]
