"""Convergence waits: poll a status probe until a resource settles.

Example:
    >>> from settle.convergence import WaitSpec, wait_for_state
    >>> spec = WaitSpec(pending={"DELETING"}, target=set(), timeout=300)
    >>> wait_for_state(lambda: describe_or_none(bucket), spec)
"""

from settle.convergence.schedule import PollSchedule
from settle.convergence.tracker import ConvergenceTracker
from settle.convergence.types import (
    AsyncProbe,
    Observation,
    Observer,
    PollEvent,
    Probe,
    Verdict,
    WaitSpec,
)
from settle.convergence.waiter import StateWaiter, wait_for_state, wait_for_state_async

__all__ = [
    # Types
    "WaitSpec",
    "Verdict",
    "PollEvent",
    "Probe",
    "AsyncProbe",
    "Observation",
    "Observer",
    # Engine
    "ConvergenceTracker",
    "PollSchedule",
    "StateWaiter",
    "wait_for_state",
    "wait_for_state_async",
]
