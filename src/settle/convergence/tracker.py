"""State classification for a single convergence wait.

The tracker is the mutable run state of one wait: consecutive target
observations, consecutive not-found observations, and the last thing the
probe reported. It never sleeps or calls the probe; drivers feed it.

Example:
    >>> tracker = ConvergenceTracker(WaitSpec({"CREATING"}, {"ACTIVE"}, timeout=60))
    >>> tracker.observe({"id": 1}, "CREATING")
    <Verdict.PENDING: 'pending'>
    >>> tracker.observe({"id": 1}, "ACTIVE")
    <Verdict.SUCCEEDED: 'succeeded'>
"""

from dataclasses import dataclass, field
from typing import Any

from settle.convergence.types import Verdict, WaitSpec
from settle.foundation.errors import (
    UnexpectedAbsenceError,
    UnexpectedStateError,
    WaitError,
)


@dataclass(slots=True)
class ConvergenceTracker:
    """Classifies probe observations against a WaitSpec.

    Owned by exactly one wait; never shared between waits.
    """

    spec: WaitSpec
    """The wait being tracked."""

    attempts: int = field(default=0, init=False)
    """Observations seen so far."""

    target_streak: int = field(default=0, init=False)
    """Consecutive target observations."""

    not_found_streak: int = field(default=0, init=False)
    """Consecutive absent observations."""

    last_payload: Any = field(default=None, init=False)
    """Payload of the latest observation (None when absent)."""

    last_state: str = field(default="", init=False)
    """Label of the latest observation."""

    last_verdict: Verdict | None = field(default=None, init=False)
    """Verdict of the latest observation."""

    def observe(self, payload: Any, state: str) -> Verdict:
        """Record one probe result and classify it."""
        self.attempts += 1
        self.last_payload = payload
        self.last_state = state or ""
        verdict = self._absent() if payload is None else self._present(self.last_state)
        self.last_verdict = verdict
        return verdict

    def _absent(self) -> Verdict:
        spec = self.spec
        self.target_streak = 0
        self.not_found_streak += 1

        if spec.expects_absence:
            if self.not_found_streak >= spec.not_found_checks:
                return Verdict.SUCCEEDED
            return Verdict.ABSENT_TOLERATED

        if self.not_found_streak > spec.not_found_checks:
            return Verdict.UNEXPECTED_ABSENCE
        return Verdict.ABSENT_TOLERATED

    def _present(self, state: str) -> Verdict:
        spec = self.spec
        self.not_found_streak = 0

        if state in spec.target:
            self.target_streak += 1
            if self.target_streak >= spec.continuous_target_occurrence:
                return Verdict.SUCCEEDED
            return Verdict.CONFIRMING

        # Any return to pending breaks the stability streak
        self.target_streak = 0
        if state in spec.pending:
            return Verdict.PENDING
        return Verdict.UNEXPECTED_STATE

    def failure(self) -> WaitError:
        """Build the error for a failed terminal verdict."""
        spec = self.spec
        if self.last_verdict is Verdict.UNEXPECTED_STATE:
            return UnexpectedStateError(
                self.last_state,
                target=spec.target,
                pending=spec.pending,
                payload=self.last_payload,
            )
        if self.last_verdict is Verdict.UNEXPECTED_ABSENCE:
            return UnexpectedAbsenceError(
                checks=self.not_found_streak,
                not_found_checks=spec.not_found_checks,
                target=spec.target,
                last_payload=self.last_payload,
                last_state=self.last_state,
            )
        raise RuntimeError(f"no failure to report for verdict {self.last_verdict}")
