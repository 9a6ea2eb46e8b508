"""Tests for the async convergence waiter."""

import asyncio

import pytest

from settle.convergence import PollEvent, StateWaiter, Verdict, WaitSpec, wait_for_state_async
from settle.foundation.errors import (
    ProbeError,
    UnexpectedStateError,
    WaitCancelledError,
    WaitTimeoutError,
)


def _spec(**kwargs) -> WaitSpec:
    values = {"pending": {"CREATING"}, "target": {"ACTIVE"}, "timeout": 30.0, "min_timeout": 1.0}
    values.update(kwargs)
    return WaitSpec(**values)


class AsyncScript:
    """Awaitable probe replaying a list of states."""

    def __init__(self, *states: str | None) -> None:
        self.states = list(states)
        self.calls = 0

    async def __call__(self) -> tuple[object, str]:
        state = self.states[min(self.calls, len(self.states) - 1)]
        self.calls += 1
        await asyncio.sleep(0)
        if state is None:
            return None, ""
        return {"call": self.calls, "status": state}, state


class TestAsyncConvergence:
    @pytest.mark.asyncio
    async def test_async_probe_converges(self, fake_clock) -> None:
        probe = AsyncScript("CREATING", "CREATING", "ACTIVE")

        payload = await wait_for_state_async(
            probe, _spec(), clock=fake_clock, sleep=fake_clock.async_sleep
        )

        assert payload == {"call": 3, "status": "ACTIVE"}
        assert fake_clock.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_sync_probe_accepted(self, fake_clock, scripted) -> None:
        probe = scripted("CREATING", "ACTIVE")

        payload = await wait_for_state_async(
            probe, _spec(), clock=fake_clock, sleep=fake_clock.async_sleep
        )

        assert payload["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_deletion_returns_none(self, fake_clock) -> None:
        probe = AsyncScript("DELETING", "DELETING", None)
        spec = _spec(pending={"DELETING"}, target=())

        result = await wait_for_state_async(
            probe, spec, clock=fake_clock, sleep=fake_clock.async_sleep
        )

        assert result is None
        assert probe.calls == 3

    @pytest.mark.asyncio
    async def test_real_event_loop_sleep(self) -> None:
        probe = AsyncScript("CREATING", "ACTIVE")

        payload = await wait_for_state_async(probe, _spec(min_timeout=0.0, poll_interval=0.01))

        assert payload["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_observer_events(self, fake_clock) -> None:
        events: list[PollEvent] = []

        await wait_for_state_async(
            AsyncScript("CREATING", "ACTIVE"),
            _spec(),
            observer=events.append,
            clock=fake_clock,
            sleep=fake_clock.async_sleep,
        )

        assert [e.verdict for e in events] == [Verdict.PENDING, Verdict.SUCCEEDED]


class TestAsyncFailures:
    @pytest.mark.asyncio
    async def test_timeout(self, fake_clock) -> None:
        with pytest.raises(WaitTimeoutError) as exc_info:
            await wait_for_state_async(
                AsyncScript("CREATING"), _spec(), clock=fake_clock, sleep=fake_clock.async_sleep
            )

        assert exc_info.value.last_state == "CREATING"
        assert fake_clock.slept == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_unexpected_state(self, fake_clock) -> None:
        with pytest.raises(UnexpectedStateError):
            await wait_for_state_async(
                AsyncScript("CREATING", "ROLLBACK_COMPLETE"),
                _spec(),
                clock=fake_clock,
                sleep=fake_clock.async_sleep,
            )

    @pytest.mark.asyncio
    async def test_awaitable_probe_error_chained(self, fake_clock) -> None:
        async def probe() -> tuple[object, str]:
            raise TimeoutError("describe timed out")

        with pytest.raises(ProbeError) as exc_info:
            await wait_for_state_async(probe, _spec(), clock=fake_clock, sleep=fake_clock.async_sleep)

        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert exc_info.value.attempt == 1


class TestAsyncCancellation:
    @pytest.mark.asyncio
    async def test_cancel_event_interrupts_sleep(self) -> None:
        cancel = asyncio.Event()
        spec = _spec(poll_interval=30.0, timeout=60.0)

        async def fire() -> None:
            await asyncio.sleep(0.05)
            cancel.set()

        trigger = asyncio.create_task(fire())
        with pytest.raises(WaitCancelledError) as exc_info:
            await asyncio.wait_for(
                wait_for_state_async(AsyncScript("CREATING"), spec, cancel_event=cancel),
                timeout=5.0,
            )
        await trigger

        assert exc_info.value.last_state == "CREATING"

    @pytest.mark.asyncio
    async def test_cancel_event_already_set(self, fake_clock) -> None:
        cancel = asyncio.Event()
        cancel.set()
        probe = AsyncScript("ACTIVE")

        with pytest.raises(WaitCancelledError):
            await wait_for_state_async(
                probe, _spec(), cancel_event=cancel, clock=fake_clock, sleep=fake_clock.async_sleep
            )

        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self) -> None:
        spec = _spec(poll_interval=30.0, timeout=60.0)
        task = asyncio.create_task(wait_for_state_async(AsyncScript("CREATING"), spec))
        await asyncio.sleep(0.05)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestStateWaiterAsync:
    @pytest.mark.asyncio
    async def test_concurrent_waits(self) -> None:
        spec = _spec(min_timeout=0.0, poll_interval=0.01)
        waiters = [StateWaiter(probe=AsyncScript("CREATING", "ACTIVE"), spec=spec) for _ in range(5)]

        results = await asyncio.gather(*(w.wait_async() for w in waiters))

        assert [r["status"] for r in results] == ["ACTIVE"] * 5
