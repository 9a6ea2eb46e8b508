"""CLI Error Handler.

Provides unified error handling for the CLI with support for:
- Human-readable output (default)
- JSON output for machine consumption
- Exit codes that tell a timeout and a cancellation apart from a failure
"""

import json
import sys
from typing import NoReturn

from rich.markup import escape

from settle.cli.core.theme import ICONS, create_console
from settle.foundation.errors import (
    ErrorCode,
    SettleError,
    WaitCancelledError,
    WaitTimeoutError,
)

EXIT_FAILURE = 1
EXIT_TIMEOUT = 124
EXIT_CANCELLED = 130


def exit_code_for(error: BaseException) -> int:
    """Process exit status for an error."""
    if isinstance(error, WaitTimeoutError):
        return EXIT_TIMEOUT
    if isinstance(error, WaitCancelledError):
        return EXIT_CANCELLED
    return EXIT_FAILURE


def error_to_dict(error: SettleError) -> dict:
    """Structured form of an error, including the underlying cause."""
    error_dict = error.to_dict()
    if error.cause:
        error_dict["cause"] = str(error.cause)
    last_state = getattr(error, "last_state", None)
    if last_state is not None:
        error_dict["last_state"] = last_state
    return error_dict


def format_error_for_json(error: SettleError) -> str:
    """Format an error as JSON string."""
    return json.dumps(error_to_dict(error))


def handle_error(error: SettleError, json_output: bool = False) -> NoReturn:
    """Report an error and exit.

    Args:
        error: The error to handle
        json_output: If True, print a JSON object to stdout instead of text

    Raises:
        SystemExit: Always, with the code from exit_code_for()
    """
    if json_output:
        print(format_error_for_json(error))
        sys.exit(exit_code_for(error))

    _print_human_error(error)
    sys.exit(exit_code_for(error))


def _print_human_error(error: SettleError) -> None:
    console = create_console(stderr=True)

    console.print(
        f"[settle.error]{ICONS['error']} {error.error_id}[/] {escape(error.message)}"
    )
    if error.cause and error.code in (ErrorCode.PROBE_FAILED, ErrorCode.CONFIG_UNREADABLE):
        console.print(f"  [settle.dim]caused by {type(error.cause).__name__}: {escape(str(error.cause))}[/]")

    if error.recovery_hints:
        console.print("\n[bold]What you can do:[/]")
        for i, hint in enumerate(error.recovery_hints, 1):
            console.print(f"  {i}. {escape(hint)}")
