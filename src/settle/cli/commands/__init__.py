"""CLI command implementations.

Commands are registered on the main group in core/main.py and can be
imported individually:
    from settle.cli.commands.wait_cmd import wait
"""

__all__ = []
