from __future__ import annotations

import pytest

from tests.stability_core.support.fakes import FakeClock, FakeLogger, ScriptedCall


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced monotonic clock per test."""
    return FakeClock()


@pytest.fixture
def ok_call() -> ScriptedCall:
    """Provide a dependency call that always succeeds."""
    return ScriptedCall()
