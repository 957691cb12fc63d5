"""The command-line interface for repostate."""

from cyclopts import App
from rich.console import Console

from ._commands import register_commands

_HELP = "Track Mercurial and Git working-copy state."

app = App(name="repostate", help=_HELP, help_on_error=True)
register_commands(app)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="repostate",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `repostate` CLI."""
    app = create_app()
    app()
