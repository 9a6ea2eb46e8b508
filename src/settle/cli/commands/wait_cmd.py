"""Wait command: poll a shell command until the resource it reports settles.

Examples:
    settle wait -p CREATING -t ACTIVE --timeout 900 -- \\
        aws rds describe-db-instances --db-instance-identifier db1 \\
        --query 'DBInstances[0].DBInstanceStatus' --output text

    settle wait -p DELETING --not-found-checks 3 --absent-exit-code 254 -- \\
        aws eks describe-cluster --name prod --query cluster.status --output text
"""

import json
import subprocess

import click
from rich.markup import escape

from settle.cli.core.error_handler import handle_error
from settle.cli.core.theme import ICONS, create_console, render_event
from settle.convergence import PollEvent, wait_for_state
from settle.foundation.config import get_config, load_config
from settle.foundation.errors import CommandProbeError, SettleError
from settle.foundation.logging import configure_logging
from settle.probes import CommandOutput, command_probe, with_retries


@click.command(name="wait")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--pending", "-p", multiple=True, help="Transitional state (repeatable)")
@click.option("--target", "-t", multiple=True, help="Target state (repeatable). None given = wait for the resource to disappear")
@click.option("--timeout", type=float, help="Overall deadline in seconds")
@click.option("--delay", type=float, help="Seconds to wait before the first probe")
@click.option("--min-timeout", type=float, help="Minimum seconds between probes")
@click.option("--poll-interval", type=float, help="Fixed seconds between probes (disables backoff)")
@click.option("--continuous-target-occurrence", "--stable", type=int, help="Consecutive target observations required")
@click.option("--not-found-checks", type=int, help="Consecutive not-found observations tolerated")
@click.option("--json-key", help="Read the state from this (dotted) key of JSON output")
@click.option("--absent-exit-code", type=int, help="Exit status meaning 'not found'")
@click.option("--command-timeout", type=float, help="Seconds before a single probe command is killed")
@click.option("--retries", type=click.IntRange(min=1), help="Attempts per probe before a command failure ends the wait")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file to use")
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Print every poll")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def wait(
    command: tuple[str, ...],
    pending: tuple[str, ...],
    target: tuple[str, ...],
    timeout: float | None,
    delay: float | None,
    min_timeout: float | None,
    poll_interval: float | None,
    continuous_target_occurrence: int | None,
    not_found_checks: int | None,
    json_key: str | None,
    absent_exit_code: int | None,
    command_timeout: float | None,
    retries: int | None,
    config_path: str | None,
    json_output: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Poll COMMAND until its output reaches a target state.

    COMMAND prints the current state on stdout. Empty output (or
    --absent-exit-code) means the resource was not found; any other
    non-zero exit is a probe failure.

    \b
    Exit status:
        0    settled
        1    unexpected state, unexpected absence, probe or config failure
        124  timed out
        130  cancelled
    """
    configure_logging(debug=debug)
    console = create_console()

    try:
        config = load_config(config_path) if config_path else get_config()
    except SettleError as e:
        handle_error(e, json_output)

    try:
        spec = config.wait.to_spec(
            pending,
            target,
            timeout=timeout,
            delay=delay,
            min_timeout=min_timeout,
            poll_interval=poll_interval,
            continuous_target_occurrence=continuous_target_occurrence,
            not_found_checks=not_found_checks,
        )
        probe = command_probe(
            command,
            json_key=json_key,
            absent_exit_code=absent_exit_code,
            timeout=command_timeout,
        )
        attempts = retries if retries is not None else config.retry.max_attempts
        if attempts > 1:
            probe = with_retries(
                probe,
                policy=config.retry.policy(),
                max_attempts=attempts,
                retry_on=(CommandProbeError, subprocess.TimeoutExpired),
            )
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    events: list[PollEvent] = []

    def observe(event: PollEvent) -> None:
        events.append(event)
        if verbose or config.verbose:
            console.print(render_event(event))

    try:
        payload = wait_for_state(probe, spec, observer=observe)
    except SettleError as e:
        handle_error(e, json_output)

    last = events[-1]
    if json_output:
        click.echo(json.dumps({
            "status": "settled",
            "state": last.state if last.found else None,
            "found": last.found,
            "attempts": last.attempt,
            "elapsed": round(last.elapsed, 3),
            "payload": payload.to_dict() if isinstance(payload, CommandOutput) else None,
        }))
        return

    if last.found:
        console.print(
            f"[settle.ok]{ICONS['ok']}[/] settled in [settle.state]{escape(last.state)}[/] "
            f"[settle.dim]after {last.attempt} probes ({last.elapsed:.1f}s)[/]"
        )
    else:
        console.print(
            f"[settle.ok]{ICONS['ok']}[/] resource is gone "
            f"[settle.dim]after {last.attempt} probes ({last.elapsed:.1f}s)[/]"
        )
