"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being rejected because the circuit is open (``CircuitOpenError``).
  - A call that was attempted and failed (the wrapped call's own exception).
"""

from stability_core.errors import StabilityError


class CircuitBreakerError(StabilityError):
    """Base exception for the circuit breaker package."""


class CircuitOpenError(CircuitBreakerError):
    """Raised when a call is rejected because the circuit is open.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        retry_after: Seconds until the breaker lets a call through again.
    """

    def __init__(self, breaker_name: str, retry_after: float) -> None:
        """Initialize a circuit-open exception payload.

        Args:
            breaker_name: Breaker rejecting the call.
            retry_after: Seconds until the cool-down elapses.
        """
        self.breaker_name = breaker_name
        self.retry_after = retry_after
        super().__init__(
            f"service_unreachable: {breaker_name} retry_after={retry_after:g}s"
        )
