# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""The status command."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.markup import escape

from repostate.repository import NameWithHash, RepositoryTracker

from ._shared import OutputFormat, format_json, open_tracker


def _status_data(tracker: RepositoryTracker) -> dict[str, object]:
    data: dict[str, object] = {
        "root": str(tracker.root.path),
        "kind": tracker.root.kind.value,
    }
    data.update(tracker.snapshot.to_dict())
    data["open_branches"] = sorted(tracker.open_branches)
    config = tracker.repository_config
    data["paths"] = dict(sorted(config.paths.items()))
    data["default_path"] = config.default_path
    data["default_push_path"] = config.default_push_path
    return data


def _print_names(console: Console, title: str, entries: tuple[NameWithHash, ...]) -> None:
    if not entries:
        return
    console.print(f"[bold]{title}:[/bold]")
    for entry in entries:
        console.print(f"  {escape(entry.name)} [dim]{entry.hash[:12]}[/dim]")


def _print_text(console: Console, tracker: RepositoryTracker) -> None:
    snapshot = tracker.snapshot
    revision = snapshot.current_revision or "(no commits)"

    console.print(
        f"[bold]{escape(str(tracker.root.path))}[/bold] [dim]({tracker.root.kind.value})[/dim]",
        soft_wrap=True,
    )
    console.print(f"Branch:   [cyan]{escape(snapshot.current_branch)}[/cyan]")
    console.print(f"Revision: {revision}")
    console.print(f"State:    {snapshot.state.value}")
    if snapshot.current_bookmark:
        console.print(f"Bookmark: [green]{escape(snapshot.current_bookmark)}[/green]")

    if snapshot.branches:
        console.print("[bold]Branches:[/bold]")
        for name in sorted(snapshot.branches):
            marker = "*" if name == snapshot.current_branch else " "
            closed = ""
            if tracker.open_branches and name not in tracker.open_branches:
                closed = " [dim](closed)[/dim]"
            console.print(f"  {marker} {escape(name)}{closed}")

    _print_names(console, "Bookmarks", snapshot.bookmarks)
    _print_names(console, "Tags", snapshot.tags)
    _print_names(console, "Local tags", snapshot.local_tags)

    config = tracker.repository_config
    if config.default_path:
        console.print(f"Default path: {config.default_path}")


def status(
    path: Annotated[
        Path,
        Parameter(help="Path inside the working copy"),
    ] = Path(),
    *,
    format: Annotated[  # noqa: A002
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format"),
    ] = OutputFormat.TEXT,
) -> None:
    """Show the current repository state."""
    tracker, _ = open_tracker(path, command="status")
    with tracker:
        if format is OutputFormat.JSON:
            print(format_json(_status_data(tracker)))  # noqa: T201
            return
        _print_text(Console(), tracker)
