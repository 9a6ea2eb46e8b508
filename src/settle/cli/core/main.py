"""Main CLI entry point.

    settle wait -p CREATING -t ACTIVE -- <command printing the state>
    settle config show
"""

import sys

import click

from settle import __version__
from settle.cli.commands.config_cmd import config_group
from settle.cli.commands.wait_cmd import wait
from settle.cli.core.error_handler import EXIT_CANCELLED, handle_error
from settle.cli.core.theme import create_console
from settle.foundation.errors import SettleError

console = create_console(stderr=True)


def cli_entrypoint() -> None:
    """Wrapped entrypoint with global error handling.

    Called from pyproject.toml [project.scripts].
    """
    try:
        main(standalone_mode=False)
    except click.ClickException as e:
        # Let Click handle its own exceptions
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        # Ctrl-C while waiting
        console.print("\n  [settle.dim]◈ Cancelled[/]")
        sys.exit(EXIT_CANCELLED)
    except SettleError as e:
        handle_error(e)


@click.group()
@click.version_option(__version__, prog_name="settle")
def main() -> None:
    """Settle: wait for cloud resources to converge."""


main.add_command(wait)
main.add_command(config_group)
