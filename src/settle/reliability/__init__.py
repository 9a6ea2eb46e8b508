"""Reliability primitives: exponential backoff and interruptible sleeps."""

from settle.reliability.backoff import (
    DEFAULT_POLL_BACKOFF,
    DEFAULT_RETRY_BACKOFF,
    BackoffPolicy,
    compute_backoff,
    compute_backoff_sequence,
    interruptible_sleep,
    interruptible_sleep_async,
    sleep_with_backoff,
)

__all__ = [
    "BackoffPolicy",
    "DEFAULT_POLL_BACKOFF",
    "DEFAULT_RETRY_BACKOFF",
    "compute_backoff",
    "compute_backoff_sequence",
    "interruptible_sleep",
    "interruptible_sleep_async",
    "sleep_with_backoff",
]
