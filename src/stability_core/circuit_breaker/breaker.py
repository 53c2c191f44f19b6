"""Core circuit breaker implementation."""

import time
from collections.abc import Sequence

from stability_core._guard import StateGuard
from stability_core.circuit_breaker.exceptions import CircuitOpenError
from stability_core.circuit_breaker.metrics import BreakerListener
from stability_core.circuit_breaker.state import (
    BreakerSnapshot,
    BreakerState,
    CircuitState,
)
from stability_core.context import Call, CallContext

# 2**64 cool-down multipliers already exceed any realistic uptime.
_MAX_BACKOFF_EXPONENT = 64


def _monotonic() -> float:
    return time.monotonic()


class Breaker:
    """Stateful proxy that stops calling a dependency after repeated failures.

    Every failure past ``failure_threshold`` doubles the cool-down, starting
    from ``base_delay`` seconds after the last completed call. Any success
    resets the failure count.
    """

    def __init__(
        self,
        call: Call,
        failure_threshold: int,
        *,
        name: str = "breaker",
        base_delay: float = 2.0,
        listeners: Sequence[BreakerListener] | None = None,
    ) -> None:
        """Wrap ``call`` with circuit breaker protection.

        Args:
            call: Dependency call to protect.
            failure_threshold: Consecutive failures tolerated before the
                circuit opens.
            name: Breaker name used in errors and listener events.
            base_delay: Cool-down in seconds when the threshold is first reached.
            listeners: Optional listener hooks for breaker events.
        """
        if failure_threshold < 0:
            raise ValueError("failure_threshold must be >= 0")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self.name = name
        self.failure_threshold = failure_threshold
        self.base_delay = base_delay
        self._call = call
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._guard = StateGuard()
        self._state = BreakerState(consecutive_failures=0, last_attempt=_monotonic())

    async def _emit_state_change(self, old: CircuitState, new: CircuitState) -> None:
        for listener in self._listeners:
            try:
                await listener.on_state_change(self.name, old, new)
            except Exception:
                continue

    async def _emit_call_rejected(self) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_rejected(self.name)
            except Exception:
                continue

    async def _emit_call_succeeded(self, elapsed: float) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_succeeded(self.name, elapsed)
            except Exception:
                continue

    async def _emit_call_failed(self, exc: Exception, elapsed: float) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_failed(self.name, exc, elapsed)
            except Exception:
                continue

    def _retry_at(self, state: BreakerState) -> float | None:
        overflow = state.consecutive_failures - self.failure_threshold
        if overflow < 0:
            return None
        exponent = min(overflow, _MAX_BACKOFF_EXPONENT)
        return state.last_attempt + self.base_delay * (2**exponent)

    def snapshot(self) -> BreakerSnapshot:
        """Return a consistent view of the breaker counters."""
        with self._guard:
            failures = self._state.consecutive_failures
            last_attempt = self._state.last_attempt
            retry_at = self._retry_at(self._state)

        if retry_at is None:
            state = CircuitState.CLOSED
        elif _monotonic() > retry_at:
            state = CircuitState.HALF_OPEN
        else:
            state = CircuitState.OPEN
        return BreakerSnapshot(
            name=self.name,
            state=state,
            consecutive_failures=failures,
            last_attempt=last_attempt,
            retry_at=retry_at,
        )

    async def __call__(self, ctx: CallContext) -> str:
        """Invoke the wrapped call unless the circuit is cooling down.

        Raises:
            CircuitOpenError: When the cool-down has not elapsed yet. The
                wrapped call is not invoked.
            Exception: The wrapped call's own exception when it fails.
        """
        with self._guard:
            retry_at = self._retry_at(self._state)
            now = _monotonic()
        if retry_at is not None and not now > retry_at:
            await self._emit_call_rejected()
            raise CircuitOpenError(self.name, retry_after=retry_at - now)

        start = time.monotonic()
        try:
            response = await self._call(ctx)
        except Exception as exc:
            elapsed = max(time.monotonic() - start, 0.0)
            with self._guard:
                previous = self._state.consecutive_failures
                self._state.consecutive_failures = previous + 1
                self._state.last_attempt = _monotonic()
            await self._emit_call_failed(exc, elapsed)
            if previous < self.failure_threshold <= previous + 1:
                await self._emit_state_change(CircuitState.CLOSED, CircuitState.OPEN)
            raise

        elapsed = max(time.monotonic() - start, 0.0)
        with self._guard:
            previous = self._state.consecutive_failures
            self._state.consecutive_failures = 0
            self._state.last_attempt = _monotonic()
        if 0 < previous and self.failure_threshold <= previous:
            await self._emit_state_change(CircuitState.OPEN, CircuitState.CLOSED)
        await self._emit_call_succeeded(elapsed)
        return response
