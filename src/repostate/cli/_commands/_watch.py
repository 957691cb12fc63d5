# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""The watch command."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console

from repostate.events import REPOSITORY_CHANGED, MessageBus
from repostate.repository import RepositoryRoot, RepositoryTracker
from repostate.watch import watch_repository

from ._shared import open_tracker


def _describe(tracker: RepositoryTracker) -> str:
    snapshot = tracker.snapshot
    revision = (snapshot.current_revision or "none")[:12]
    line = f"{snapshot.current_branch} {revision} {snapshot.state.value}"
    if snapshot.current_bookmark:
        line += f" [{snapshot.current_bookmark}]"
    return line


def watch(
    path: Annotated[
        Path,
        Parameter(help="Path inside the working copy"),
    ] = Path(),
) -> None:
    """Print a line every time the repository state changes."""
    console = Console()
    bus = MessageBus()
    tracker, config = open_tracker(path, publisher=bus, command="watch")

    def _on_changed(root: RepositoryRoot) -> None:
        console.print(
            f"changed: {root.path}: {_describe(tracker)}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    console.print(
        f"watching {tracker.root.path}: {_describe(tracker)}",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    with tracker, bus.subscribe(REPOSITORY_CHANGED, _on_changed):
        try:
            _ = watch_repository(
                tracker,
                debounce_ms=config.watch.debounce_ms,
                step_ms=config.watch.step_ms,
            )
        except KeyboardInterrupt:
            pass
