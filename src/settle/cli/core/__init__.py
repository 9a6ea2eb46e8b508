"""Core CLI infrastructure.

- Main entry point and command group
- Error handling and exit codes
- Theme and styling
"""

from settle.cli.core.main import cli_entrypoint, main
from settle.cli.core.error_handler import (
    exit_code_for,
    format_error_for_json,
    handle_error,
)
from settle.cli.core.theme import SETTLE_THEME, create_console, render_event

__all__ = [
    "cli_entrypoint",
    "main",
    "exit_code_for",
    "format_error_for_json",
    "handle_error",
    "SETTLE_THEME",
    "create_console",
    "render_event",
]
