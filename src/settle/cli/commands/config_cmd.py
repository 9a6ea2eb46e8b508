"""Config commands: inspect the resolved configuration."""

import json

import click
import yaml

from settle.cli.core.error_handler import handle_error
from settle.cli.core.theme import create_console
from settle.foundation.config import config_paths, config_to_dict, load_config
from settle.foundation.errors import SettleError


@click.group(name="config")
def config_group() -> None:
    """Inspect Settle configuration."""


@config_group.command(name="show")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file to use")
@click.option("--json", "json_output", is_flag=True, help="Print as JSON instead of YAML")
def show(config_path: str | None, json_output: bool) -> None:
    """Print the configuration after files and SETTLE_* overrides are applied."""
    try:
        config = load_config(config_path)
    except SettleError as e:
        handle_error(e, json_output)

    data = config_to_dict(config)
    if json_output:
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.safe_dump(data, sort_keys=False).rstrip())


@config_group.command(name="paths")
def paths() -> None:
    """List the config files Settle looks for, in priority order."""
    console = create_console()
    for path in config_paths():
        marker = "[settle.ok]found[/]" if path.exists() else "[settle.dim]missing[/]"
        console.print(f"{path}  {marker}", soft_wrap=True)
