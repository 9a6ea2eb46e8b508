"""Poll interval scheduling.

Bounded exponential backoff between probes:
- starts at ``min_timeout`` (or the policy's initial delay when that is 0)
- multiplies by the policy factor after every sleep
- holds flat while a target streak is being confirmed
- capped at the policy maximum, never below ``min_timeout``
- never longer than the time left before the deadline

A fixed ``poll_interval`` replaces the growth entirely.
"""

from dataclasses import dataclass, field

from settle.convergence.types import WaitSpec
from settle.reliability.backoff import DEFAULT_POLL_BACKOFF, BackoffPolicy, apply_jitter


@dataclass(slots=True)
class PollSchedule:
    """Computes the sleep before each probe of one wait.

    Example:
        >>> schedule = PollSchedule(min_timeout=1.0)
        >>> [schedule.next_interval(remaining=60) for _ in range(5)]
        [1.0, 2.0, 4.0, 8.0, 10.0]
        >>> schedule.next_interval(remaining=3.5)
        3.5
    """

    min_timeout: float = 0.0
    poll_interval: float = 0.0
    policy: BackoffPolicy = DEFAULT_POLL_BACKOFF

    _current: float = field(default=0.0, init=False)

    @classmethod
    def for_spec(cls, spec: WaitSpec) -> "PollSchedule":
        """Create a fresh schedule for one wait."""
        return cls(
            min_timeout=spec.min_timeout,
            poll_interval=spec.poll_interval,
            policy=spec.backoff,
        )

    @property
    def ceiling(self) -> float:
        """Largest interval the growth may reach."""
        return max(self.policy.max_delay, self.min_timeout)

    def next_interval(self, remaining: float, *, hold: bool = False) -> float:
        """Return the next sleep in seconds.

        Args:
            remaining: Seconds left before the deadline.
            hold: Keep the previous interval instead of growing it.
        """
        if self.poll_interval > 0:
            interval = self.poll_interval
        else:
            if self._current <= 0:
                self._current = self.min_timeout if self.min_timeout > 0 else self.policy.initial
            elif not hold:
                self._current = self._current * self.policy.factor
            self._current = min(max(self._current, self.min_timeout), self.ceiling)
            interval = min(apply_jitter(self.policy, self._current), self.ceiling)

        return max(0.0, min(interval, remaining))
