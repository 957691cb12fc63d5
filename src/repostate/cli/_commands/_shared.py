# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- JSON output formatting
- Console utilities for error handling
- Tracker construction from a command-line path
"""

from enum import IntEnum, StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Never

from repostate.config import safe_load_config
from repostate.exceptions import MetadataUnreadableError, RepositoryNotFoundError
from repostate.repository import discover_root, open_repository
from repostate.utils import create_logger

if TYPE_CHECKING:
    from rich.console import Console

    from repostate.config import Config
    from repostate.repository import PublisherProtocol, RepositoryTracker

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "OutputFormat",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "open_tracker",
]


class ExitCode(IntEnum):
    """Standard exit codes for repostate CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    NOT_FOUND = 3
    IO_ERROR = 4


class OutputFormat(StrEnum):
    """Output formats for the status command."""

    TEXT = "text"
    JSON = "json"


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson  # noqa: PLC0415

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def get_error_console() -> "Console":  # noqa: UP037
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console  # noqa: PLC0415

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.LOAD_ERROR,
    *,
    console: "Console | None" = None,  # noqa: UP037
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to LOAD_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    raise SystemExit(code)


def open_tracker(
    path: Path,
    *,
    publisher: "PublisherProtocol | None" = None,  # noqa: UP037
    command: str,
) -> "tuple[RepositoryTracker, Config]":  # noqa: UP037
    """Open the repository at a CLI path, exiting with a code on failure.

    Args:
        path: Path given on the command line.
        publisher: Publisher to attach to the tracker.
        command: Command name bound to every log entry.

    Returns:
        The tracker with its baseline read, and the loaded configuration.

    Raises:
        SystemExit: NOT_FOUND when no repository contains the path, IO_ERROR
            when its metadata cannot be read.
    """
    try:
        root = discover_root(path)
    except RepositoryNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND)

    config, _ = safe_load_config(root.path)
    logger = create_logger(
        level=config.logging.level.value,
        log_format=config.logging.format.value,  # type: ignore[arg-type]
        log_file=config.logging.file,
        command=command,
    )

    try:
        tracker = open_repository(
            root.path, publisher=publisher, config=config, logger=logger
        )
    except MetadataUnreadableError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)
    return tracker, config
