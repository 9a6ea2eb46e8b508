"""Configuration type definitions - single source of truth for all config classes."""


from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from settle.convergence.types import WaitSpec
from settle.reliability.backoff import BackoffPolicy


@dataclass(frozen=True, slots=True)
class WaitDefaults:
    """Default timing for waits started from the CLI or from config."""

    timeout: float = 600.0
    """Overall deadline in seconds."""

    delay: float = 0.0
    """Seconds before the first probe."""

    min_timeout: float = 0.0
    """Floor and starting value of the poll interval."""

    poll_interval: float = 0.0
    """Fixed interval between probes (0 = exponential backoff)."""

    continuous_target_occurrence: int = 1
    """Consecutive target observations required."""

    not_found_checks: int = 1
    """Consecutive not-found observations tolerated."""

    initial_interval: float = 0.1
    """First interval when min_timeout is 0."""

    max_interval: float = 10.0
    """Cap on the backoff interval."""

    backoff_factor: float = 2.0
    """Growth factor of the interval."""

    jitter: float = 0.0
    """Random jitter ratio added to each interval."""

    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(
            initial=self.initial_interval,
            max_delay=self.max_interval,
            factor=self.backoff_factor,
            jitter=self.jitter,
        )

    def to_spec(self, pending: Iterable[str], target: Iterable[str], **overrides: Any) -> WaitSpec:
        """Build a WaitSpec from these defaults.

        ``overrides`` with a value of None are ignored, so CLI options that were
        not given fall back to the configured defaults.
        """
        values: dict[str, Any] = {
            "timeout": self.timeout,
            "delay": self.delay,
            "min_timeout": self.min_timeout,
            "poll_interval": self.poll_interval,
            "continuous_target_occurrence": self.continuous_target_occurrence,
            "not_found_checks": self.not_found_checks,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return WaitSpec(pending=pending, target=target, backoff=self.backoff(), **values)


@dataclass(frozen=True, slots=True)
class RetryDefaults:
    """Retry policy for transient probe errors."""

    max_attempts: int = 3
    """Attempts per probe call before the error reaches the waiter."""

    initial: float = 0.5
    """First retry delay in seconds."""

    max_delay: float = 10.0
    """Cap on the retry delay."""

    factor: float = 2.0
    """Growth factor of the retry delay."""

    jitter: float = 0.25
    """Random jitter ratio."""

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError("max_attempts must be an integer")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            initial=self.initial,
            max_delay=self.max_delay,
            factor=self.factor,
            jitter=self.jitter,
        )


@dataclass(frozen=True, slots=True)
class SettleConfig:
    """Root configuration for Settle."""

    wait: WaitDefaults = field(default_factory=WaitDefaults)
    """Wait timing defaults."""

    retry: RetryDefaults = field(default_factory=RetryDefaults)
    """Probe retry defaults."""

    verbose: bool = False
    """Print every poll by default."""
