from __future__ import annotations

from stability_core.context import CallContext


class FakeLogger:
    """Capture structured logger events for assertions."""

    def __init__(self) -> None:
        self.events: list[str] = []
        self.calls: list[tuple[str, str, dict[str, object]]] = []

    def _record(self, level: str, event: str, **kwargs: object) -> None:
        self.calls.append((level, event, kwargs))

    def debug(self, event: str, **kwargs: object) -> None:
        self._record("debug", event, **kwargs)

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append(event)
        self._record("info", event, **kwargs)

    def warning(self, event: str, **kwargs: object) -> None:
        self.events.append(event)
        self._record("warning", event, **kwargs)


class UpstreamError(RuntimeError):
    """Failure raised by scripted dependency calls."""


class ScriptedCall:
    """Dependency call double that fails a fixed number of times first.

    Successful calls return ``"<payload>-<n>"`` where ``n`` counts invocations.
    """

    def __init__(self, *, failures: int = 0, payload: str = "ok") -> None:
        self.failures = failures
        self.payload = payload
        self.calls = 0
        self.contexts: list[CallContext] = []

    async def __call__(self, ctx: CallContext) -> str:
        self.calls += 1
        self.contexts.append(ctx)
        if self.calls <= self.failures:
            raise UpstreamError(f"failure {self.calls}")
        return f"{self.payload}-{self.calls}"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds
