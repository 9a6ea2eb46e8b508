"""Error system for Settle."""

from settle.foundation.errors.errors import (
    ERROR_MESSAGES,
    RECOVERY_HINTS,
    CommandProbeError,
    ConfigError,
    ErrorCode,
    ProbeError,
    SettleError,
    UnexpectedAbsenceError,
    UnexpectedStateError,
    WaitCancelledError,
    WaitError,
    WaitTimeoutError,
    config_error,
)

__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "RECOVERY_HINTS",
    "SettleError",
    "WaitError",
    "ProbeError",
    "UnexpectedStateError",
    "UnexpectedAbsenceError",
    "WaitTimeoutError",
    "WaitCancelledError",
    "CommandProbeError",
    "ConfigError",
    "config_error",
]
