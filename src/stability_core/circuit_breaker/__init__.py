"""In-memory async circuit breaker.

Key behavior notes:
  - State is owned by one ``Breaker`` instance and never shared.
  - The circuit opens once consecutive failures reach the threshold. The
    cool-down starts at ``base_delay`` seconds after the last completed call
    and doubles with every further failure.
  - The wrapped call runs outside the state guard, so concurrent callers may
    all pass once the cool-down elapses. Each of them counts toward the
    failure total.
"""

from stability_core.circuit_breaker.breaker import Breaker
from stability_core.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
)
from stability_core.circuit_breaker.metrics import BreakerListener
from stability_core.circuit_breaker.state import (
    BreakerSnapshot,
    BreakerState,
    CircuitState,
)

__all__ = [
    "Breaker",
    "BreakerListener",
    "BreakerSnapshot",
    "BreakerState",
    "CircuitBreakerError",
    "CircuitOpenError",
    "CircuitState",
]
