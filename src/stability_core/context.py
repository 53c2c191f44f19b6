"""Call contract shared by every stability decorator.

A *call* is an async callable taking a :class:`CallContext` and returning a
string payload. Failures are raised. Decorators consume a call and are
themselves calls, so they compose freely.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass

from stability_core.errors import CallCancelledError, DeadlineExceededError


def _monotonic() -> float:
    return time.monotonic()


class CallContext:
    """Cancellation and deadline signal threaded through a call."""

    def __init__(self, *, timeout: float | None = None) -> None:
        """Create a context, optionally expiring ``timeout`` seconds from now.

        Args:
            timeout: Seconds until the context's deadline. ``None`` means the
                context only ends through :meth:`cancel`.
        """
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be >= 0")
        self._timeout = timeout
        self._deadline = None if timeout is None else _monotonic() + timeout
        self._done = asyncio.Event()
        self._error: CallCancelledError | None = None

    def _finish(self, error: CallCancelledError) -> None:
        if self._error is None:
            self._error = error
            self._done.set()

    def cancel(self) -> None:
        """Cancel the context. Repeated calls are no-ops."""
        self._finish(CallCancelledError())

    def remaining(self) -> float | None:
        """Return seconds left until the deadline, if one is set."""
        if self._deadline is None:
            return None
        return max(self._deadline - _monotonic(), 0.0)

    def done(self) -> bool:
        """Return whether the context was cancelled or its deadline passed."""
        if self._error is not None:
            return True
        if self._timeout is None or self._deadline is None:
            return False
        if _monotonic() >= self._deadline:
            self._finish(DeadlineExceededError(self._timeout))
            return True
        return False

    def error(self) -> CallCancelledError | None:
        """Return why the context is done, or ``None`` while it is live."""
        self.done()
        return self._error

    def raise_if_done(self) -> None:
        """Raise the context error when the context is done."""
        error = self.error()
        if error is not None:
            raise error

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until the context is done or ``timeout`` seconds elapse.

        Returns:
            ``True`` when the context is done, ``False`` on timeout.
        """
        wait_until = None if timeout is None else _monotonic() + max(timeout, 0.0)
        while not self.done():
            bounded = None if wait_until is None else wait_until - _monotonic()
            if bounded is not None and bounded <= 0:
                return False
            remaining = self.remaining()
            if remaining is not None:
                bounded = remaining if bounded is None else min(bounded, remaining)

            with suppress(TimeoutError):
                await asyncio.wait_for(self._done.wait(), timeout=bounded)
        return True


Call = Callable[[CallContext], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class CallOutcome:
    """Captured result of one call: a payload or the exception it raised."""

    value: str = ""
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the payload or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    async def capture(cls, call: Call, ctx: CallContext) -> CallOutcome:
        """Run ``call`` and capture its payload or raised exception."""
        try:
            value = await call(ctx)
        except Exception as exc:
            return cls(error=exc)
        return cls(value=value)
