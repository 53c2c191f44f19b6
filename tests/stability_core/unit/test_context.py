from __future__ import annotations

import asyncio

import pytest

import stability_core._guard as guard_mod
from stability_core._guard import StateGuard
from stability_core.context import CallContext, CallOutcome
from stability_core.errors import (
    CallCancelledError,
    DeadlineExceededError,
    StabilityError,
)
from tests.stability_core.support.fakes import ScriptedCall, UpstreamError

pytestmark = pytest.mark.asyncio


async def test_fresh_context_is_live() -> None:
    ctx = CallContext()

    assert ctx.done() is False
    assert ctx.error() is None
    assert ctx.remaining() is None
    ctx.raise_if_done()


async def test_cancel_is_idempotent_and_keeps_first_error() -> None:
    ctx = CallContext()
    ctx.cancel()
    first = ctx.error()
    ctx.cancel()

    assert ctx.done() is True
    assert isinstance(first, CallCancelledError)
    assert isinstance(first, StabilityError)
    assert ctx.error() is first
    with pytest.raises(CallCancelledError):
        ctx.raise_if_done()


async def test_wait_returns_false_on_timeout() -> None:
    ctx = CallContext()

    assert await ctx.wait(timeout=0.01) is False


async def test_wait_returns_true_when_cancelled_mid_wait() -> None:
    ctx = CallContext()
    asyncio.get_running_loop().call_later(0.01, ctx.cancel)

    assert await asyncio.wait_for(ctx.wait(timeout=30.0), timeout=1.0) is True


async def test_deadline_ends_wait_with_deadline_error() -> None:
    ctx = CallContext(timeout=0.02)

    assert await asyncio.wait_for(ctx.wait(), timeout=1.0) is True
    error = ctx.error()
    assert isinstance(error, DeadlineExceededError)
    assert error.timeout == 0.02
    assert ctx.remaining() == 0.0


async def test_zero_timeout_is_done_immediately_with_deadline_error() -> None:
    ctx = CallContext(timeout=0.0)

    assert ctx.done() is True
    error = ctx.error()
    assert isinstance(error, DeadlineExceededError)
    assert error.timeout == 0.0
    with pytest.raises(DeadlineExceededError):
        ctx.raise_if_done()


async def test_context_without_timeout_stays_live_until_cancelled() -> None:
    ctx = CallContext()

    assert await ctx.wait(timeout=0.01) is False
    assert ctx.done() is False
    ctx.cancel()
    assert isinstance(ctx.error(), CallCancelledError)
    assert not isinstance(ctx.error(), DeadlineExceededError)


async def test_negative_timeout_is_rejected() -> None:
    with pytest.raises(ValueError, match="timeout"):
        CallContext(timeout=-1.0)


async def test_outcome_capture_keeps_payload_or_error() -> None:
    ok = await CallOutcome.capture(ScriptedCall(), CallContext())
    failed = await CallOutcome.capture(ScriptedCall(failures=1), CallContext())

    assert ok.ok is True
    assert ok.unwrap() == "ok-1"
    assert failed.ok is False
    with pytest.raises(UpstreamError):
        failed.unwrap()


async def test_empty_outcome_unwraps_to_empty_payload() -> None:
    assert CallOutcome().unwrap() == ""


async def test_state_guard_uses_thread_lock_when_gil_disabled(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(guard_mod.sys, "_is_gil_enabled", lambda: False, raising=False)
    guard = StateGuard()

    assert guard._thread_lock is not None
    with guard:
        assert guard._thread_lock.locked() is True
    assert guard._thread_lock.locked() is False


async def test_state_guard_is_lock_free_with_gil(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(guard_mod.sys, "_is_gil_enabled", lambda: True, raising=False)

    assert StateGuard()._thread_lock is None
