"""Building blocks for status probes.

A probe is any zero-argument callable returning ``(payload, state)``, with a
``None`` payload meaning the resource was not found. These helpers cover the
parts every probe shares; fetching a particular resource stays with the caller.

Example:
    >>> probe = with_retries(
    ...     status_probe(
    ...         lambda: client.describe_stack(stack_id),
    ...         lambda stack: stack["StackStatus"],
    ...         is_not_found=lambda exc: "does not exist" in str(exc),
    ...     )
    ... )
    >>> wait_for_state(probe, spec)
"""

import json
import logging
import shlex
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from settle.convergence.types import AsyncProbe, Observation, Probe
from settle.foundation.errors import CommandProbeError
from settle.reliability.backoff import (
    DEFAULT_RETRY_BACKOFF,
    BackoffPolicy,
    compute_backoff,
    sleep_with_backoff,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ABSENT: Observation = (None, "")
"""Observation for a resource that could not be found."""

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError)
"""Exceptions retried by default."""


def status_probe(
    fetch: Callable[[], T | None],
    extract_state: Callable[[T], str],
    *,
    is_not_found: Callable[[Exception], bool] | None = None,
) -> Probe:
    """Build a probe from a describe call and a state accessor.

    Args:
        fetch: Reads the resource; may return None when it does not exist.
        extract_state: Maps the fetched object to its state label.
        is_not_found: Recognizes the exception ``fetch`` raises for a missing
            resource. Other exceptions propagate to the waiter.
    """

    def probe() -> Observation:
        try:
            resource = fetch()
        except Exception as exc:
            if is_not_found is not None and is_not_found(exc):
                return ABSENT
            raise
        if resource is None:
            return ABSENT
        return resource, extract_state(resource)

    return probe


def with_retries(
    probe: Probe,
    *,
    policy: BackoffPolicy = DEFAULT_RETRY_BACKOFF,
    max_attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
) -> Probe:
    """Retry transient probe errors with exponential backoff.

    The waiter never retries a failing probe itself; this is where that policy
    belongs. After ``max_attempts`` the last error propagates.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def probe_with_retries() -> Observation:
        for attempt in range(1, max_attempts + 1):
            try:
                return probe()
            except retry_on as exc:
                if attempt == max_attempts:
                    raise
                delay = compute_backoff(policy, attempt)
                logger.debug(
                    "Probe attempt %d/%d failed (%r), retrying in %.2fs",
                    attempt, max_attempts, exc, delay,
                )
                sleep(delay)
        raise AssertionError("unreachable")

    return probe_with_retries


def with_retries_async(
    probe: AsyncProbe,
    *,
    policy: BackoffPolicy = DEFAULT_RETRY_BACKOFF,
    max_attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
) -> AsyncProbe:
    """Async twin of :func:`with_retries`."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    async def probe_with_retries() -> Observation:
        for attempt in range(1, max_attempts + 1):
            try:
                return await probe()
            except retry_on as exc:
                if attempt == max_attempts:
                    raise
                logger.debug("Probe attempt %d/%d failed (%r), retrying", attempt, max_attempts, exc)
                await sleep_with_backoff(policy, attempt)
        raise AssertionError("unreachable")

    return probe_with_retries


# =============================================================================
# Command probe
# =============================================================================


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Payload of a command probe."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    data: Any = None
    """Parsed JSON stdout, when a JSON key was requested."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "argv": list(self.argv),
            "returncode": self.returncode,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "data": self.data,
        }


def command_probe(
    argv: Sequence[str],
    *,
    json_key: str | None = None,
    absent_exit_code: int | None = None,
    timeout: float | None = None,
) -> Probe:
    """Probe that runs a command and reads the state from its output.

    - stdout (stripped) is the state label, or ``stdout[json_key]`` when
      ``json_key`` is given (dotted keys walk nested objects)
    - empty output, or exit status ``absent_exit_code``, means not found
    - any other non-zero exit raises CommandProbeError
    - output that is not JSON, or lacks ``json_key``, raises ValueError
    """
    argv = tuple(argv)
    if not argv:
        raise ValueError("command must not be empty")
    command = shlex.join(argv)

    def probe() -> Observation:
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
        if absent_exit_code is not None and proc.returncode == absent_exit_code:
            return ABSENT
        if proc.returncode != 0:
            raise CommandProbeError(command, proc.returncode, proc.stderr.strip())

        stdout = proc.stdout.strip()
        if not stdout:
            return ABSENT

        data = None
        state = stdout
        if json_key is not None:
            data = json.loads(stdout)
            state = _lookup(data, json_key)
        return CommandOutput(argv, proc.returncode, proc.stdout, proc.stderr, data), str(state)

    return probe


def _lookup(data: Any, dotted_key: str) -> Any:
    """Walk ``dotted_key`` through nested objects.

    Raises:
        ValueError: A key is missing, its value is null, or an intermediate
            value is not an object.
    """
    path: list[str] = []
    for part in dotted_key.split("."):
        path.append(part)
        if not isinstance(data, dict) or part not in data:
            raise ValueError(f"JSON key {'.'.join(path)!r} not found in command output")
        data = data[part]
    if data is None:
        raise ValueError(f"JSON key {dotted_key!r} is null in command output")
    return data
