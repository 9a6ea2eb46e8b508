"""CLI theme.

One Rich theme so every command renders states, verdicts and errors the
same way.
"""

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

from settle.convergence.types import PollEvent, Verdict

SETTLE_THEME = Theme({
    "settle.ok": "bold green",
    "settle.pending": "yellow",
    "settle.confirming": "cyan",
    "settle.absent": "magenta",
    "settle.error": "bold red",
    "settle.dim": "dim",
    "settle.state": "bold",
})

VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.PENDING: "settle.pending",
    Verdict.CONFIRMING: "settle.confirming",
    Verdict.ABSENT_TOLERATED: "settle.absent",
    Verdict.SUCCEEDED: "settle.ok",
    Verdict.UNEXPECTED_STATE: "settle.error",
    Verdict.UNEXPECTED_ABSENCE: "settle.error",
}

ICONS = {
    "ok": "✓",
    "error": "✗",
    "poll": "◇",
}


def create_console(*, stderr: bool = False) -> Console:
    """Create a Rich console with the Settle theme."""
    return Console(theme=SETTLE_THEME, stderr=stderr, highlight=False)


def render_event(event: PollEvent) -> str:
    """One progress line for a poll."""
    style = VERDICT_STYLES[event.verdict]
    state = escape(event.state) if event.found else "(not found)"
    line = (
        f"[settle.dim]{ICONS['poll']} #{event.attempt} {event.elapsed:6.1f}s[/] "
        f"[settle.state]{state}[/] [{style}]{event.verdict.value}[/]"
    )
    if event.next_interval is not None:
        line += f" [settle.dim]next in {event.next_interval:.1f}s[/]"
    return line
