"""Type definitions for convergence waits.

Immutable data structures describing one wait and what each poll observed.
"""

import math
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from settle.reliability.backoff import DEFAULT_POLL_BACKOFF, BackoffPolicy

Observation: TypeAlias = tuple[Any, str]
"""What a probe returns: (payload or None when absent, state label)."""

Probe: TypeAlias = Callable[[], Observation]
"""Synchronous status probe. Errors are signalled by raising."""

AsyncProbe: TypeAlias = Callable[[], Awaitable[Observation]]
"""Awaitable status probe, accepted by the async driver."""


class Verdict(Enum):
    """Classification of a single probe observation."""

    PENDING = "pending"
    """Transitional state, keep polling."""

    CONFIRMING = "confirming"
    """Target seen, but not yet for enough consecutive polls."""

    ABSENT_TOLERATED = "absent_tolerated"
    """Resource not found, still within the tolerated number of checks."""

    SUCCEEDED = "succeeded"
    """The resource converged."""

    UNEXPECTED_STATE = "unexpected_state"
    """Label in neither the pending nor the target set."""

    UNEXPECTED_ABSENCE = "unexpected_absence"
    """Resource vanished for longer than tolerated while a target was expected."""

    @property
    def is_terminal(self) -> bool:
        """True if the wait ends on this verdict."""
        return self in (
            Verdict.SUCCEEDED,
            Verdict.UNEXPECTED_STATE,
            Verdict.UNEXPECTED_ABSENCE,
        )


@dataclass(frozen=True, slots=True)
class WaitSpec:
    """Immutable input to one convergence wait.

    Example:
        >>> spec = WaitSpec(
        ...     pending={"CREATING"},
        ...     target={"ACTIVE"},
        ...     timeout=30.0,
        ...     min_timeout=1.0,
        ... )
        >>> spec.expects_absence
        False
    """

    pending: frozenset[str]
    """Transitional labels; observing one continues polling. Any iterable is accepted."""

    target: frozenset[str]
    """Terminal-success labels. Empty means success is the resource disappearing."""

    timeout: float
    """Overall deadline in seconds, counted from the start of the wait."""

    delay: float = 0.0
    """Seconds to wait before the first probe."""

    min_timeout: float = 0.0
    """Floor and starting value of the poll interval in seconds."""

    poll_interval: float = 0.0
    """Fixed poll interval; overrides backoff growth when > 0."""

    continuous_target_occurrence: int = 1
    """Consecutive target observations required before declaring success."""

    not_found_checks: int = 1
    """Consecutive absent observations tolerated before absence is terminal."""

    backoff: BackoffPolicy = DEFAULT_POLL_BACKOFF
    """Growth factor, cap and jitter of the poll interval."""

    def __post_init__(self) -> None:
        """Normalize label collections and validate parameters."""
        # A bare string is one label, not a set of characters
        object.__setattr__(self, "pending", _label_set(self.pending))
        object.__setattr__(self, "target", _label_set(self.target))

        for name in ("timeout", "delay", "min_timeout", "poll_interval"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")
        if self.min_timeout < 0:
            raise ValueError("min_timeout must be >= 0")
        if self.poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if self.continuous_target_occurrence < 1:
            raise ValueError("continuous_target_occurrence must be >= 1")
        if self.not_found_checks < 1:
            raise ValueError("not_found_checks must be >= 1")

    @property
    def expects_absence(self) -> bool:
        """True if success is defined as the resource becoming absent."""
        return not self.target


@dataclass(frozen=True, slots=True)
class PollEvent:
    """What one poll observed, reported to an optional observer.

    Example:
        >>> event = PollEvent(attempt=1, state="CREATING", payload={"id": "db-1"},
        ...                   verdict=Verdict.PENDING, elapsed=0.01, next_interval=1.0)
        >>> event.found
        True
    """

    attempt: int
    """Probe number (1-based)."""

    state: str
    """Observed label ('' when absent)."""

    payload: Any
    """Observed payload, None when absent."""

    verdict: Verdict
    """Classification of this observation."""

    elapsed: float
    """Seconds since the wait started."""

    next_interval: float | None = None
    """Sleep before the next probe; None when the wait ends here."""

    @property
    def found(self) -> bool:
        """True if the probe saw the resource."""
        return self.payload is not None


Observer: TypeAlias = Callable[[PollEvent], None]
"""Callback receiving every PollEvent of a wait."""


def _label_set(labels: Iterable[str]) -> frozenset[str]:
    if isinstance(labels, str):
        return frozenset({labels})
    return frozenset(labels)
