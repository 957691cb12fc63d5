"""repostate CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._shared import ExitCode, OutputFormat, exit_with_error, format_json
from ._status import status
from ._watch import watch

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ExitCode",
    "OutputFormat",
    "exit_with_error",
    "format_json",
    "register_commands",
    "status",
    "watch",
]


def register_commands(app: App) -> None:
    app.command(status, name="status")
    app.command(watch, name="watch")
