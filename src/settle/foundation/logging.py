"""Logging setup for the Settle CLI.

Engine modules log every probe, verdict and sleep at DEBUG through their
module loggers. The package installs a NullHandler, so library callers see
nothing until they configure logging themselves. The CLI calls
configure_logging() before the first wait:

    settle wait ...                  WARNING, short format
    settle wait --debug ...          DEBUG, timestamps and thread names
    SETTLE_LOG_LEVEL=INFO settle ... any level, for CI
    SETTLE_DEBUG=1 settle ...        same as --debug

Level resolution, first match wins:
    1. ``level`` argument
    2. SETTLE_LOG_LEVEL
    3. SETTLE_DEBUG (true/1/yes)
    4. ``debug`` argument
    5. WARNING
"""

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

LEVEL_ENV = "SETTLE_LOG_LEVEL"
DEBUG_ENV = "SETTLE_DEBUG"

# Thread name tells concurrent waits apart
_DETAILED_FORMAT = "%(asctime)s %(threadName)s %(name)s [%(levelname)s] %(message)s"
_SHORT_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Third-party loggers kept at WARNING even under --debug
_QUIET_LOGGERS = ("asyncio", "markdown_it")


def resolve_level(*, debug: bool = False, level: int | str | None = None) -> int:
    """Effective console level for the given flags and environment."""
    if level is not None:
        return _parse_level(level)
    env_level = os.environ.get(LEVEL_ENV)
    if env_level:
        return _parse_level(env_level)
    if debug or os.environ.get(DEBUG_ENV, "").lower() in ("true", "1", "yes"):
        return logging.DEBUG
    return logging.WARNING


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    log_file: str | Path | None = None,
) -> int:
    """Install console (and optional file) handlers on the root logger.

    Replaces any handlers already installed, so calling it twice is safe.

    Args:
        debug: The --debug flag.
        level: Explicit level, overriding flags and environment.
        stream: Console stream, stderr by default.
        log_file: Also append a DEBUG log of every poll to this file.

    Returns:
        The console level in effect.
    """
    console_level = resolve_level(debug=debug, level=level)
    handlers = [_console_handler(console_level, stream or sys.stderr)]
    if log_file:
        handlers.append(_file_handler(Path(log_file)))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(min(h.level for h in handlers))
    for handler in handlers:
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: console=%s file=%s",
        logging.getLevelName(console_level),
        log_file or "-",
    )
    return console_level


def _console_handler(level: int, stream: TextIO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    fmt = _DETAILED_FORMAT if level <= logging.DEBUG else _SHORT_FORMAT
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_DETAILED_FORMAT))
    return handler


def _parse_level(level: int | str) -> int:
    """Level from an int, a numeric string or a level name; WARNING if unknown."""
    if isinstance(level, int):
        return level
    text = level.strip()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text.upper(), logging.WARNING)
