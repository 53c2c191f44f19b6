"""Circuit breaker state primitives."""

from dataclasses import dataclass
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(slots=True)
class BreakerState:
    """Mutable counters owned by exactly one breaker instance.

    Attributes:
        consecutive_failures: Failed calls since the last success.
        last_attempt: Monotonic timestamp of the last completed call, or of
            breaker construction before any call completes.
    """

    consecutive_failures: int
    last_attempt: float


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker internals useful for metrics/logging.

    Attributes:
        name: Breaker name.
        state: ``OPEN`` while cooling down, ``HALF_OPEN`` once the cool-down
            has elapsed but no call has completed yet, ``CLOSED`` otherwise.
        consecutive_failures: Failed calls since the last success.
        last_attempt: Monotonic timestamp of the last completed call.
        retry_at: Monotonic timestamp when the cool-down elapses, if the
            failure threshold has been reached.
    """

    name: str
    state: CircuitState
    consecutive_failures: int
    last_attempt: float
    retry_at: float | None
