"""Settle - wait for cloud resources to converge.

Polls a caller-supplied status probe until the resource reaches a target
state, disappears (when that is the goal), fails, or a deadline passes.

Example:
    >>> from settle import WaitSpec, wait_for_state
    >>> spec = WaitSpec(pending={"CREATING"}, target={"ACTIVE"}, timeout=900, min_timeout=5)
    >>> probe = status_probe(lambda: describe_table(name), lambda t: t["TableStatus"])
    >>> table = wait_for_state(probe, spec)
"""

import logging

from settle.convergence import (
    PollEvent,
    StateWaiter,
    Verdict,
    WaitSpec,
    wait_for_state,
    wait_for_state_async,
)
from settle.foundation.errors import (
    ErrorCode,
    ProbeError,
    SettleError,
    UnexpectedAbsenceError,
    UnexpectedStateError,
    WaitCancelledError,
    WaitError,
    WaitTimeoutError,
)
from settle.probes import command_probe, status_probe, with_retries, with_retries_async
from settle.reliability import BackoffPolicy

__version__ = "0.1.0"

# Silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Engine
    "WaitSpec",
    "StateWaiter",
    "PollEvent",
    "Verdict",
    "wait_for_state",
    "wait_for_state_async",
    "BackoffPolicy",
    # Probes
    "command_probe",
    "status_probe",
    "with_retries",
    "with_retries_async",
    # Errors
    "ErrorCode",
    "SettleError",
    "WaitError",
    "ProbeError",
    "UnexpectedStateError",
    "UnexpectedAbsenceError",
    "WaitTimeoutError",
    "WaitCancelledError",
]
