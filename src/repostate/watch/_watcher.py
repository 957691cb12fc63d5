"""Filesystem trigger for repository trackers using watchfiles.

The watcher turns batches of metadata file events into tracker.update()
calls. The tracker's equality gate decides whether a batch was a real
change, so the filter here only needs to drop obvious noise.
"""

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Final

import structlog

from repostate.exceptions import MetadataUnreadableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from watchfiles import Change

    from repostate.repository import RepositoryRoot, RepositoryTracker

# Lock files are rewritten on every VCS command, including read-only ones
_LOCK_NAMES: Final = frozenset({"lock", "wlock", "index.lock", "HEAD.lock"})

_WORKING_COPY_FILES: Final = frozenset({".hgtags"})


def watched_paths(root: "RepositoryRoot") -> tuple[Path, ...]:  # noqa: UP037
    """Return the directories to watch for a repository.

    The working copy is included so that .hgtags edits are seen; the
    metadata directory is added separately when it lives outside it
    (Git worktrees).
    """
    if root.metadata_dir.is_relative_to(root.path):
        return (root.path,)
    return (root.path, root.metadata_dir)


def make_filter(root: "RepositoryRoot") -> "Callable[[Change, str], bool]":  # noqa: UP037
    """Build a watchfiles filter accepting only metadata events.

    Args:
        root: The repository being watched.

    Returns:
        Filter returning True for paths inside the metadata directory
        (lock files excluded) and for working-copy files read as metadata.
    """
    metadata_dir = root.metadata_dir

    def should_watch(_change: "Change", changed_path: str) -> bool:  # noqa: UP037
        path = Path(changed_path)
        if path.parent == root.path:
            return path.name in _WORKING_COPY_FILES or path == metadata_dir
        if not path.is_relative_to(metadata_dir):
            return False
        return path.name not in _LOCK_NAMES

    return should_watch


def watch_repository(
    tracker: "RepositoryTracker",  # noqa: UP037
    *,
    debounce_ms: int = 1600,
    step_ms: int = 50,
    stop_event: threading.Event | None = None,
    on_change: "Callable[[RepositoryTracker], object] | None" = None,  # noqa: UP037
) -> int:
    """Call tracker.update() for every batch of metadata changes.

    Blocks until stop_event is set or the tracker's session is disposed.

    Args:
        tracker: The tracker to refresh.
        debounce_ms: Maximum time to collect events into one batch.
        step_ms: Quiet time after which a batch is yielded.
        stop_event: Event that ends watching when set.
        on_change: Called after each update() that detected a change.

    Returns:
        Number of batches that produced a change notification.
    """
    from watchfiles import watch  # noqa: PLC0415

    stop = stop_event if stop_event is not None else threading.Event()
    tracker.session.register(stop.set)
    root = tracker.root
    logger = structlog.get_logger("repostate").bind(root=str(root.path))

    changes = 0
    for batch in watch(
        *watched_paths(root),
        watch_filter=make_filter(root),
        debounce=debounce_ms,
        step=step_ms,
        stop_event=stop,
        recursive=True,
    ):
        if tracker.session.is_disposed:
            break
        logger.debug("metadata_events", count=len(batch))
        try:
            changed = tracker.update()
        except MetadataUnreadableError as e:
            logger.warning("watch_update_failed", error=str(e))
            continue
        if changed:
            changes += 1
            if on_change is not None:
                _ = on_change(tracker)
    return changes
