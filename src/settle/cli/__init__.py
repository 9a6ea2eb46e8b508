"""Command-line interface for Settle."""

from settle.cli.core.main import cli_entrypoint, main

__all__ = ["cli_entrypoint", "main"]
