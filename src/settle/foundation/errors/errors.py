"""Errors raised by Settle.

Every error carries a numeric code (``ST-xxxx``), a context dict that fills
the message template, and recovery hints for the CLI. Wait failures also keep
the last payload and state the probe reported.
"""

from collections.abc import Iterable
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Probe errors
        2xxx - State classification errors
        3xxx - Deadline/cancellation errors
        5xxx - Configuration errors
    """

    # 1xxx - Probe Errors
    PROBE_FAILED = 1001
    PROBE_COMMAND_FAILED = 1002

    # 2xxx - State Errors
    UNEXPECTED_STATE = 2001
    UNEXPECTED_ABSENCE = 2002

    # 3xxx - Deadline Errors
    WAIT_TIMEOUT = 3001
    WAIT_CANCELLED = 3002

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5001
    CONFIG_UNREADABLE = 5002

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "probe",
            2: "state",
            3: "deadline",
            5: "config",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether retrying the whole wait may plausibly succeed."""
        non_recoverable = {
            ErrorCode.UNEXPECTED_STATE,
            ErrorCode.CONFIG_INVALID,
            ErrorCode.CONFIG_UNREADABLE,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PROBE_FAILED: "Probe failed: {detail}",
    ErrorCode.PROBE_COMMAND_FAILED: "Probe command {command} exited with status {returncode}: {detail}",
    ErrorCode.UNEXPECTED_STATE: "Unexpected state '{state}', wanted target '{target}'.",
    ErrorCode.UNEXPECTED_ABSENCE: "Resource not found after {checks} consecutive checks (tolerated {not_found_checks}).",
    ErrorCode.WAIT_TIMEOUT: "Timeout while waiting for state to become '{target}' (last state: '{state}', timeout: {timeout}s).",
    ErrorCode.WAIT_CANCELLED: "Wait cancelled after {elapsed}s (last state: '{state}').",
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.CONFIG_UNREADABLE: "Cannot read configuration file '{path}': {detail}",
}


# Recovery hints
RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.PROBE_FAILED: [
        "Check connectivity and credentials used by the probe",
        "Wrap the probe with with_retries() if the failure is transient",
    ],
    ErrorCode.PROBE_COMMAND_FAILED: [
        "Run the probe command by hand to inspect its output",
        "Use --absent-exit-code if the command signals 'not found' by exit status",
    ],
    ErrorCode.UNEXPECTED_STATE: [
        "Add '{state}' to the pending states if it is transitional",
        "Add '{state}' to the target states if it is an acceptable outcome",
    ],
    ErrorCode.UNEXPECTED_ABSENCE: [
        "Increase not_found_checks to tolerate eventual-consistency lag",
        "Verify the resource was not deleted out of band",
    ],
    ErrorCode.WAIT_TIMEOUT: [
        "Increase the timeout (currently {timeout}s)",
        "Check whether the resource is stuck in '{state}'",
    ],
    ErrorCode.CONFIG_INVALID: [
        "Check the value of '{key}' in .settle/config.yaml or SETTLE_* variables",
    ],
    ErrorCode.CONFIG_UNREADABLE: [
        "Fix the YAML syntax in '{path}' or remove the file",
    ],
}


def _labels(labels: Iterable[str]) -> str:
    """Render a label set deterministically for messages."""
    return ", ".join(sorted(labels))


class _Context(dict):
    """Leaves unknown placeholders in a template as they are."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _render(template: str, context: dict[str, Any]) -> str:
    return template.format_map(_Context(context))


class SettleError(Exception):
    """Base exception for all Settle errors.

    Attributes:
        code: What went wrong, see ErrorCode
        context: Values substituted into the message and hints
        cause: Underlying exception, if any

    Example:
        >>> err = SettleError(ErrorCode.CONFIG_INVALID, {"key": "wait.timeout", "detail": "must be > 0"})
        >>> str(err)
        "[ST-5001] Invalid configuration for 'wait.timeout': must be > 0"
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        self.code = code
        self.context = dict(context or {})
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        return _render(ERROR_MESSAGES.get(self.code, "Error: {detail}"), self.context)

    @property
    def recovery_hints(self) -> list[str]:
        return [_render(hint, self.context) for hint in RECOVERY_HINTS.get(self.code, [])]

    @property
    def is_recoverable(self) -> bool:
        """True if running the same wait again may succeed."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Stable identifier such as 'ST-3001'."""
        return f"ST-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.name}, {self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view; context values that are not scalars are dropped."""
        return {
            "error_id": self.error_id,
            "code": int(self.code),
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": {k: v for k, v in self.context.items() if _is_plain(v)},
        }


def _is_plain(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


# =============================================================================
# Wait failures
# =============================================================================


class WaitError(SettleError):
    """A convergence wait that did not succeed.

    Every wait failure keeps the last observation so callers can still
    inspect it (e.g. to look up a failure reason).
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
        *,
        last_payload: Any = None,
        last_state: str = "",
    ):
        self.last_payload = last_payload
        self.last_state = last_state
        super().__init__(code, context, cause)


class ProbeError(WaitError):
    """The probe itself raised; the original exception is the cause."""

    def __init__(
        self,
        cause: BaseException,
        *,
        attempt: int = 0,
        last_payload: Any = None,
        last_state: str = "",
    ):
        self.attempt = attempt
        super().__init__(
            ErrorCode.PROBE_FAILED,
            {"detail": str(cause) or type(cause).__name__, "attempt": attempt, "state": last_state},
            cause,
            last_payload=last_payload,
            last_state=last_state,
        )


class UnexpectedStateError(WaitError):
    """A label outside both the pending and target sets was observed."""

    def __init__(
        self,
        state: str,
        *,
        target: Iterable[str] = (),
        pending: Iterable[str] = (),
        payload: Any = None,
    ):
        self.target = frozenset(target)
        self.pending = frozenset(pending)
        super().__init__(
            ErrorCode.UNEXPECTED_STATE,
            {"state": state, "target": _labels(self.target), "pending": _labels(self.pending)},
            last_payload=payload,
            last_state=state,
        )


class UnexpectedAbsenceError(WaitError):
    """The resource stayed absent longer than tolerated while a target was expected."""

    def __init__(
        self,
        *,
        checks: int,
        not_found_checks: int,
        target: Iterable[str] = (),
        last_payload: Any = None,
        last_state: str = "",
    ):
        self.checks = checks
        self.not_found_checks = not_found_checks
        super().__init__(
            ErrorCode.UNEXPECTED_ABSENCE,
            {
                "checks": checks,
                "not_found_checks": not_found_checks,
                "target": _labels(target),
                "state": last_state,
            },
            last_payload=last_payload,
            last_state=last_state,
        )


class WaitTimeoutError(WaitError):
    """The deadline elapsed before the resource converged."""

    def __init__(
        self,
        *,
        timeout: float,
        target: Iterable[str] = (),
        last_payload: Any = None,
        last_state: str = "",
    ):
        self.timeout = timeout
        self.target = frozenset(target)
        super().__init__(
            ErrorCode.WAIT_TIMEOUT,
            {"timeout": _seconds(timeout), "target": _labels(self.target), "state": last_state},
            last_payload=last_payload,
            last_state=last_state,
        )


class WaitCancelledError(WaitError):
    """An external cancellation signal stopped the wait."""

    def __init__(self, *, elapsed: float, last_payload: Any = None, last_state: str = ""):
        self.elapsed = elapsed
        super().__init__(
            ErrorCode.WAIT_CANCELLED,
            {"elapsed": _seconds(elapsed), "state": last_state},
            last_payload=last_payload,
            last_state=last_state,
        )


class CommandProbeError(SettleError):
    """A probe command exited with an unexpected status."""

    def __init__(self, command: str, returncode: int, detail: str = ""):
        self.command = command
        self.returncode = returncode
        super().__init__(
            ErrorCode.PROBE_COMMAND_FAILED,
            {"command": command, "returncode": returncode, "detail": detail or "no output"},
        )


class ConfigError(SettleError):
    """Configuration could not be read or is invalid."""


def _seconds(value: float) -> str:
    return f"{value:g}"


# Convenience factory functions

def config_error(
    key: str = "",
    detail: str = "",
    path: str = "",
    cause: BaseException | None = None,
) -> ConfigError:
    """Create a configuration error."""
    code = ErrorCode.CONFIG_UNREADABLE if path and not key else ErrorCode.CONFIG_INVALID
    return ConfigError(
        code=code,
        context={"key": key, "detail": detail, "path": path},
        cause=cause,
    )
