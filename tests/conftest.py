"""Pytest fixtures for Settle tests."""

import logging
import os
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from settle.foundation.config import reset_config


class FakeClock:
    """Deterministic monotonic clock; sleeping advances it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)

    @property
    def slept(self) -> float:
        return sum(self.sleeps)


class ScriptedProbe:
    """Probe replaying a script of observations.

    Each step is a state label (payload is generated), None (absent),
    a ``(payload, state)`` tuple, or an exception to raise. The last step
    repeats once the script runs out.
    """

    def __init__(self, steps: Sequence[Any], clock: FakeClock | None = None, cost: float = 0.0) -> None:
        self.steps = list(steps)
        self.calls = 0
        self.clock = clock
        self.cost = cost

    def __call__(self) -> tuple[Any, str]:
        step = self.steps[min(self.calls, len(self.steps) - 1)]
        self.calls += 1
        if self.clock is not None and self.cost:
            self.clock.now += self.cost
        if isinstance(step, BaseException):
            raise step
        if step is None:
            return None, ""
        if isinstance(step, tuple):
            return step
        return {"call": self.calls, "status": step}, step


@pytest.fixture
def fake_clock() -> FakeClock:
    """A clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def scripted(fake_clock: FakeClock) -> Callable[..., ScriptedProbe]:
    """Factory for ScriptedProbe bound to the fake clock."""

    def make(*steps: Any, cost: float = 0.0) -> ScriptedProbe:
        return ScriptedProbe(steps, clock=fake_clock, cost=cost)

    return make


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from real config files and SETTLE_* variables."""
    for key in list(os.environ):
        if key.startswith("SETTLE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """configure_logging() replaces root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
