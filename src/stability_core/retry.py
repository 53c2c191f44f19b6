from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from stability_core.context import Call, CallContext
from stability_core.errors import CallCancelledError
from stability_core.logging import StructuredLogger, get_logger, log_warning


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry count and the fixed delay between attempts."""

    retries: int
    delay: float

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    @property
    def attempts(self) -> int:
        return self.retries + 1


def build_cancellable_sleep(ctx: CallContext) -> Callable[[float], Awaitable[None]]:
    """Build an async sleep that raises as soon as ``ctx`` is done."""

    async def _cancellable_sleep(delay: float) -> None:
        await ctx.wait(timeout=max(delay, 0.0))
        ctx.raise_if_done()

    return _cancellable_sleep


def build_fixed_delay_retrying(
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    before_sleep: Callable[[RetryCallState], None] | None = None,
) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` that retries any failure except cancellation."""
    retry = retry_if_exception_type(Exception) & retry_if_not_exception_type(
        CallCancelledError
    )
    kwargs: dict[str, object] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    if before_sleep is not None:
        kwargs["before_sleep"] = before_sleep
    return AsyncRetrying(
        retry=retry,
        wait=wait_fixed(policy.delay),
        stop=stop_after_attempt(policy.attempts),
        reraise=True,
        **kwargs,  # type: ignore[arg-type]
    )


class Retry:
    """Re-invoke a failing call up to ``retries`` more times.

    The caller sees the last attempt's outcome. Retries are only visible
    through the ``retry.attempt_failed`` log events.
    """

    def __init__(
        self,
        call: Call,
        retries: int,
        delay: float,
        *,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.policy = RetryPolicy(retries=retries, delay=delay)
        self._call = call
        self._logger: StructuredLogger = (
            get_logger("retry") if logger is None else logger
        )

    def _log_retry(self, state: RetryCallState) -> None:
        try:
            outcome = state.outcome
            error = None if outcome is None else outcome.exception()
            log_warning(
                self._logger,
                "retry.attempt_failed",
                attempt=state.attempt_number,
                retry_in_seconds=self.policy.delay,
                error=repr(error),
            )
        except Exception:
            return

    async def __call__(self, ctx: CallContext) -> str:
        """Invoke the wrapped call, retrying failures after a fixed delay.

        Raises:
            CallCancelledError: When ``ctx`` is done during a retry delay, or
                when the wrapped call itself raises it.
            Exception: The last attempt's exception once retries are exhausted.
        """
        retrying = build_fixed_delay_retrying(
            policy=self.policy,
            sleep=build_cancellable_sleep(ctx),
            before_sleep=self._log_retry,
        )
        response = ""
        async for attempt in retrying:
            with attempt:
                response = await self._call(ctx)
        return response
