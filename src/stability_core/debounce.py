"""Debounce decorators that collapse bursts of calls into one real call.

``DebounceFirst`` executes the first call of a burst and serves the cached
outcome until the burst ends. ``DebounceLast`` defers execution to a
background watcher that fires once the burst has been quiet for ``window``
seconds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress
from dataclasses import dataclass, field

from stability_core._guard import StateGuard
from stability_core.context import Call, CallContext, CallOutcome
from stability_core.errors import CallCancelledError
from stability_core.logging import LOGGER_NAMESPACE, log_debug

_logger = logging.getLogger(f"{LOGGER_NAMESPACE}.debounce")


def _monotonic() -> float:
    return time.monotonic()


@dataclass(slots=True)
class DebounceFirstState:
    """Suppression deadline and cached outcome for one ``DebounceFirst``."""

    suppress_until: float | None = None
    cached: CallOutcome = field(default_factory=CallOutcome)


@dataclass(slots=True)
class DebounceLastState:
    """Quiet deadline, cached outcome and active watcher for one ``DebounceLast``."""

    quiet_until: float = 0.0
    cached: CallOutcome = field(default_factory=CallOutcome)
    watcher: asyncio.Task[None] | None = None


class DebounceFirst:
    """Run only the first call of a burst.

    Every call, executed or suppressed, pushes the suppression deadline to
    ``now + window``. A dense enough stream of calls therefore never reaches
    the wrapped call again until a gap longer than ``window`` appears.
    """

    def __init__(self, call: Call, window: float) -> None:
        if window < 0:
            raise ValueError("window must be >= 0")
        self.window = window
        self._call = call
        self._lock = asyncio.Lock()
        self._state = DebounceFirstState()

    async def __call__(self, ctx: CallContext) -> str:
        async with self._lock:
            try:
                suppress_until = self._state.suppress_until
                if suppress_until is None or _monotonic() >= suppress_until:
                    self._state.cached = await CallOutcome.capture(self._call, ctx)
                outcome = self._state.cached
            finally:
                self._state.suppress_until = _monotonic() + self.window
        return outcome.unwrap()


class DebounceLast:
    """Run the wrapped call once a burst of calls has gone quiet.

    Calls return the cached outcome immediately, which is stale while a burst
    is in progress. The first call after an idle period starts a watcher task
    bound to that call's context; the watcher fires the wrapped call once no
    call has arrived for ``window`` seconds. At most one watcher exists per
    instance at a time.
    """

    def __init__(
        self,
        call: Call,
        window: float,
        *,
        poll_interval: float = 0.1,
        name: str = "debounce_last",
    ) -> None:
        """Wrap ``call`` with trailing-edge debouncing.

        Args:
            call: Dependency call to debounce.
            window: Quiet period in seconds required before the call fires.
            poll_interval: Longest time in seconds the watcher sleeps between
                deadline checks.
            name: Name used for the watcher task and log events.
        """
        if window < 0:
            raise ValueError("window must be >= 0")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        self.name = name
        self.window = window
        self.poll_interval = poll_interval
        self._call = call
        self._guard = StateGuard()
        self._state = DebounceLastState()

    @property
    def watcher_active(self) -> bool:
        with self._guard:
            return self._state.watcher is not None

    async def __call__(self, ctx: CallContext) -> str:
        with self._guard:
            self._state.quiet_until = _monotonic() + self.window
            if self._state.watcher is None:
                watcher = asyncio.create_task(
                    self._watch(ctx),
                    name=f"debounce_last:{self.name}",
                )
                watcher.add_done_callback(self._on_watcher_done)
                self._state.watcher = watcher
            outcome = self._state.cached
        return outcome.unwrap()

    def _release_watcher(self, task: asyncio.Task[None] | None) -> None:
        with self._guard:
            if self._state.watcher is task:
                self._state.watcher = None

    def _on_watcher_done(self, task: asyncio.Task[None]) -> None:
        # A watcher cancelled before its first step never reaches its finally.
        with self._guard:
            if self._state.watcher is not task:
                return
            self._state.watcher = None
            if task.cancelled():
                self._state.cached = CallOutcome(
                    error=CallCancelledError("watcher_cancelled")
                )

    def _store(self, outcome: CallOutcome) -> None:
        with self._guard:
            self._state.cached = outcome

    async def _watch(self, ctx: CallContext) -> None:
        try:
            while True:
                with self._guard:
                    fired_for = self._state.quiet_until
                    remaining = fired_for - _monotonic()
                if remaining > 0:
                    if await ctx.wait(timeout=min(remaining, self.poll_interval)):
                        self._store(CallOutcome(error=ctx.error()))
                        log_debug(_logger, "debounce.cancelled", debouncer=self.name)
                        return
                    continue

                outcome = await CallOutcome.capture(self._call, ctx)
                log_debug(
                    _logger, "debounce.fired", debouncer=self.name, ok=outcome.ok
                )
                with self._guard:
                    self._state.cached = outcome
                    # Calls made while firing moved the deadline; fire again for them.
                    if self._state.quiet_until == fired_for:
                        if self._state.watcher is asyncio.current_task():
                            self._state.watcher = None
                        return
        except asyncio.CancelledError:
            self._store(CallOutcome(error=CallCancelledError("watcher_cancelled")))
            raise
        finally:
            self._release_watcher(asyncio.current_task())

    async def aclose(self) -> None:
        """Cancel the active watcher, if any, and wait for it to finish."""
        with self._guard:
            watcher = self._state.watcher
        if watcher is None:
            return
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher
