"""Exponential backoff and abortable sleeps, in seconds.

Two users:
- the poll schedule of a wait (``DEFAULT_POLL_BACKOFF``: 0.1s doubling to 10s)
- probe wrappers retrying transient API errors (``DEFAULT_RETRY_BACKOFF``)

delay(n) = min(max_delay, initial * factor**(n - 1) * (1 + jitter * U[0, 1)))

Example:
    >>> policy = BackoffPolicy(initial=0.5, max_delay=10.0, factor=2.0)
    >>> compute_backoff_sequence(policy, 6)
    [0.5, 1.0, 2.0, 4.0, 8.0, 10.0]
    >>> completed = interruptible_sleep(2.0, stop_event)
"""

import asyncio
import math
import random
import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Growth, cap and jitter of a sequence of delays."""

    initial: float = 0.1
    """First delay in seconds."""

    max_delay: float = 10.0
    """Upper bound on any delay, jitter included."""

    factor: float = 2.0
    """Growth per step; 1.0 gives a constant delay."""

    jitter: float = 0.0
    """Extra random delay as a fraction of the base (0.0-1.0)."""

    def __post_init__(self) -> None:
        for name in ("initial", "max_delay", "factor", "jitter"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")
        if self.initial <= 0:
            raise ValueError("initial must be positive")
        if self.max_delay < self.initial:
            raise ValueError("max_delay must be >= initial")
        if self.factor < 1.0:
            raise ValueError("factor must be >= 1.0")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0.0 and 1.0")


DEFAULT_POLL_BACKOFF = BackoffPolicy(initial=0.1, max_delay=10.0, factor=2.0, jitter=0.0)
"""Poll schedule of a wait: 0.1s, 0.2s, 0.4s ... 10s. No jitter."""

DEFAULT_RETRY_BACKOFF = BackoffPolicy(initial=0.5, max_delay=10.0, factor=2.0, jitter=0.25)
"""Probe retries: 0.5s, 1s, 2s, 4s, 8s, 10s, each up to 25% longer."""


def apply_jitter(policy: BackoffPolicy, base: float) -> float:
    """``base`` plus up to ``policy.jitter * base`` of random delay."""
    if policy.jitter <= 0:
        return base
    return base + base * policy.jitter * random.random()


def compute_backoff(policy: BackoffPolicy, attempt: int) -> float:
    """Delay in seconds before retry number ``attempt`` (1-based), jitter included."""
    step = max(attempt - 1, 0)
    return min(policy.max_delay, apply_jitter(policy, policy.initial * policy.factor**step))


def compute_backoff_sequence(policy: BackoffPolicy, max_attempts: int) -> list[float]:
    """The first ``max_attempts`` delays without jitter, for display."""
    return [
        min(policy.max_delay, policy.initial * policy.factor**step)
        for step in range(max_attempts)
    ]


def interruptible_sleep(seconds: float, abort_event: threading.Event | None = None) -> bool:
    """Block for ``seconds`` unless ``abort_event`` is set first.

    Returns:
        False if the event was (or became) set, True otherwise.
    """
    if seconds <= 0:
        return abort_event is None or not abort_event.is_set()
    if abort_event is None:
        time.sleep(seconds)
        return True
    return not abort_event.wait(seconds)


async def interruptible_sleep_async(
    seconds: float,
    abort_event: asyncio.Event | None = None,
) -> bool:
    """Async twin of :func:`interruptible_sleep`."""
    if abort_event is None:
        await asyncio.sleep(max(seconds, 0))
        return True
    if abort_event.is_set():
        return False
    try:
        await asyncio.wait_for(abort_event.wait(), timeout=max(seconds, 0))
    except TimeoutError:
        return True
    return False


async def sleep_with_backoff(
    policy: BackoffPolicy,
    attempt: int,
    abort_event: asyncio.Event | None = None,
) -> bool:
    """Await the backoff delay for ``attempt``; False if aborted early."""
    return await interruptible_sleep_async(compute_backoff(policy, attempt), abort_event)
