"""Convergence Waiter: poll a status probe until a resource settles.

Each wait is a closed loop: call the probe, classify the observed state,
then succeed, fail, or sleep for a backoff interval and try again until
the deadline. Every call owns its run state, so a waiter may be used
from many threads or tasks at once.

Example:
    >>> spec = WaitSpec(pending={"CREATING"}, target={"ACTIVE"}, timeout=600, min_timeout=5)
    >>> cluster = wait_for_state(lambda: describe(cluster_id), spec)

    >>> # Async, with an external cancellation signal
    >>> stop = asyncio.Event()
    >>> cluster = await wait_for_state_async(probe, spec, cancel_event=stop)
"""

import asyncio
import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from settle.convergence.schedule import PollSchedule
from settle.convergence.tracker import ConvergenceTracker
from settle.convergence.types import (
    AsyncProbe,
    Observer,
    PollEvent,
    Probe,
    Verdict,
    WaitSpec,
)
from settle.foundation.errors import ProbeError, WaitCancelledError, WaitTimeoutError
from settle.reliability.backoff import interruptible_sleep, interruptible_sleep_async

logger = logging.getLogger(__name__)

Clock: TypeAlias = Callable[[], float]
Sleep: TypeAlias = Callable[[float], None]
AsyncSleep: TypeAlias = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class _Run:
    """Run state of one wait. Created per call, never shared."""

    spec: WaitSpec
    clock: Clock
    observer: Observer | None
    started: float
    tracker: ConvergenceTracker = field(init=False)
    schedule: PollSchedule = field(init=False)

    def __post_init__(self) -> None:
        self.tracker = ConvergenceTracker(self.spec)
        self.schedule = PollSchedule.for_spec(self.spec)

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started

    def probe_failed(self, exc: Exception) -> ProbeError:
        logger.debug("Probe failed on attempt %d: %r", self.tracker.attempts + 1, exc)
        return ProbeError(
            exc,
            attempt=self.tracker.attempts + 1,
            last_payload=self.tracker.last_payload,
            last_state=self.tracker.last_state,
        )

    def cancelled(self) -> WaitCancelledError:
        logger.debug("Wait cancelled after %.3fs", self.elapsed)
        return WaitCancelledError(
            elapsed=self.elapsed,
            last_payload=self.tracker.last_payload,
            last_state=self.tracker.last_state,
        )

    def step(self, payload: Any, state: str) -> float | None:
        """Classify one observation.

        Returns:
            None when the wait succeeded, otherwise the sleep before the next probe.

        Raises:
            WaitError: On an unexpected state or absence, or when the deadline passed.
        """
        tracker = self.tracker
        verdict = tracker.observe(payload, state)
        elapsed = self.elapsed

        if verdict.is_terminal:
            self._emit(verdict, elapsed, None)
            if verdict is Verdict.SUCCEEDED:
                logger.debug(
                    "Converged on '%s' after %d probes (%.3fs)",
                    tracker.last_state, tracker.attempts, elapsed,
                )
                return None
            raise tracker.failure()

        if elapsed >= self.spec.timeout:
            self._emit(verdict, elapsed, None)
            logger.debug("Timed out in '%s' after %.3fs", tracker.last_state, elapsed)
            raise WaitTimeoutError(
                timeout=self.spec.timeout,
                target=self.spec.target,
                last_payload=tracker.last_payload,
                last_state=tracker.last_state,
            )

        interval = self.schedule.next_interval(
            self.spec.timeout - elapsed,
            hold=verdict is Verdict.CONFIRMING,
        )
        self._emit(verdict, elapsed, interval)
        logger.debug(
            "Probe %d: state=%r verdict=%s, sleeping %.3fs",
            tracker.attempts, tracker.last_state, verdict.value, interval,
        )
        return interval

    def _emit(self, verdict: Verdict, elapsed: float, next_interval: float | None) -> None:
        if self.observer is None:
            return
        self.observer(
            PollEvent(
                attempt=self.tracker.attempts,
                state=self.tracker.last_state,
                payload=self.tracker.last_payload,
                verdict=verdict,
                elapsed=elapsed,
                next_interval=next_interval,
            )
        )


def _pause(
    seconds: float,
    cancel_event: threading.Event | None,
    sleep: Sleep | None,
) -> bool:
    """Sleep; False if the cancel signal fired."""
    if sleep is None:
        return interruptible_sleep(seconds, cancel_event)
    sleep(seconds)
    return not (cancel_event is not None and cancel_event.is_set())


async def _pause_async(
    seconds: float,
    cancel_event: asyncio.Event | None,
    sleep: AsyncSleep | None,
) -> bool:
    if sleep is None:
        return await interruptible_sleep_async(seconds, cancel_event)
    await sleep(seconds)
    return not (cancel_event is not None and cancel_event.is_set())


def wait_for_state(
    probe: Probe,
    spec: WaitSpec,
    *,
    cancel_event: threading.Event | None = None,
    observer: Observer | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep | None = None,
) -> Any:
    """Poll ``probe`` until it reports a target state (or absence, if that is the goal).

    Args:
        probe: Returns ``(payload, state)``; a ``None`` payload means not found.
        spec: Pending/target labels and timing of this wait.
        cancel_event: Set from another thread to stop the wait promptly.
        observer: Called with a PollEvent after every probe.
        clock: Monotonic clock in seconds.
        sleep: Replacement for the interruptible sleep (cancellation is
            still checked after each sleep).

    Returns:
        The payload of the final observation; None when absence was the goal.

    Raises:
        ProbeError: The probe raised. Never retried here.
        UnexpectedStateError: A label in neither pending nor target was seen.
        UnexpectedAbsenceError: The resource vanished while a target was expected.
        WaitTimeoutError: The deadline passed first.
        WaitCancelledError: ``cancel_event`` was set.
    """
    run = _Run(spec=spec, clock=clock, observer=observer, started=clock())
    logger.debug(
        "Waiting up to %ss for %s (pending: %s)",
        spec.timeout, sorted(spec.target) or "absence", sorted(spec.pending),
    )

    if spec.delay > 0 and not _pause(spec.delay, cancel_event, sleep):
        raise run.cancelled()

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise run.cancelled()

        try:
            payload, state = probe()
        except Exception as exc:
            raise run.probe_failed(exc) from exc

        interval = run.step(payload, state)
        if interval is None:
            return payload

        if cancel_event is not None and cancel_event.is_set():
            raise run.cancelled()
        if not _pause(interval, cancel_event, sleep):
            raise run.cancelled()


async def wait_for_state_async(
    probe: Probe | AsyncProbe,
    spec: WaitSpec,
    *,
    cancel_event: asyncio.Event | None = None,
    observer: Observer | None = None,
    clock: Clock = time.monotonic,
    sleep: AsyncSleep | None = None,
) -> Any:
    """Async twin of :func:`wait_for_state`.

    ``probe`` may be a plain callable or return an awaitable. Cancelling the
    surrounding task raises ``asyncio.CancelledError`` as usual; setting
    ``cancel_event`` raises WaitCancelledError instead.
    """
    run = _Run(spec=spec, clock=clock, observer=observer, started=clock())
    logger.debug(
        "Waiting up to %ss for %s (pending: %s)",
        spec.timeout, sorted(spec.target) or "absence", sorted(spec.pending),
    )

    if spec.delay > 0 and not await _pause_async(spec.delay, cancel_event, sleep):
        raise run.cancelled()

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise run.cancelled()

        try:
            result = probe()
            if inspect.isawaitable(result):
                result = await result
            payload, state = result
        except Exception as exc:
            raise run.probe_failed(exc) from exc

        interval = run.step(payload, state)
        if interval is None:
            return payload

        if cancel_event is not None and cancel_event.is_set():
            raise run.cancelled()
        if not await _pause_async(interval, cancel_event, sleep):
            raise run.cancelled()


@dataclass(frozen=True, slots=True)
class StateWaiter:
    """A probe bound to a WaitSpec, reusable across waits.

    Holds no run state; each ``wait()`` starts from scratch.

    Example:
        >>> waiter = StateWaiter(probe=notebook_status(conn, name), spec=IN_SERVICE)
        >>> notebook = waiter.wait()
    """

    probe: Probe | AsyncProbe
    """Status probe returning (payload, state)."""

    spec: WaitSpec
    """Labels and timing."""

    observer: Observer | None = None
    """Optional per-poll callback."""

    def wait(self, cancel_event: threading.Event | None = None) -> Any:
        """Block until the resource settles."""
        return wait_for_state(
            self.probe,  # type: ignore[arg-type]
            self.spec,
            cancel_event=cancel_event,
            observer=self.observer,
        )

    async def wait_async(self, cancel_event: asyncio.Event | None = None) -> Any:
        """Await until the resource settles."""
        return await wait_for_state_async(
            self.probe,
            self.spec,
            cancel_event=cancel_event,
            observer=self.observer,
        )
