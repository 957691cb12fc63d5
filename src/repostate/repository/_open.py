"""Factory assembling a tracker for a working copy on disk."""

from pathlib import Path
from typing import TYPE_CHECKING

from repostate.config import Config
from repostate.repository._discovery import discover_root
from repostate.repository._enumerator import (
    CommandBranchEnumerator,
    DisabledBranchEnumerator,
)
from repostate.repository._git import GitMetadataReader
from repostate.repository._hg import MercurialMetadataReader
from repostate.repository._models import RepositoryKind, RepositoryRoot
from repostate.repository._tracker import RepositoryTracker

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from repostate.repository._protocol import (
        BranchEnumeratorProtocol,
        MetadataReaderProtocol,
        PublisherProtocol,
    )
    from repostate.session import Session


def create_reader(root: RepositoryRoot) -> "MetadataReaderProtocol":  # noqa: UP037
    """Create the metadata reader for a repository kind."""
    if root.kind is RepositoryKind.HG:
        return MercurialMetadataReader(root)
    return GitMetadataReader(root)


def create_enumerator(
    root: RepositoryRoot, config: Config
) -> "BranchEnumeratorProtocol":  # noqa: UP037
    """Create the open-branch enumerator configured for a repository kind."""
    settings = config.enumeration
    if not settings.enabled:
        return DisabledBranchEnumerator()
    command = settings.hg_command if root.kind is RepositoryKind.HG else settings.git_command
    return CommandBranchEnumerator.for_kind(
        root.kind, command=command, timeout_ms=settings.timeout_ms
    )


def open_repository(
    path: Path | str,
    *,
    session: "Session | None" = None,
    publisher: "PublisherProtocol | None" = None,
    config: Config | None = None,
    logger: "FilteringBoundLogger | None" = None,
) -> RepositoryTracker:
    """Open the working copy containing a path and record its baseline.

    Args:
        path: A file or directory inside the working copy.
        session: Owning lifecycle; the tracker creates its own when omitted.
        publisher: Receives REPOSITORY_CHANGED notifications.
        config: Settings for enumeration; defaults apply when omitted.
        logger: Logger passed to the tracker.

    Returns:
        A tracker whose baseline snapshot has been read.

    Raises:
        RepositoryNotFoundError: If no working copy contains the path.
        MetadataUnreadableError: If the baseline cannot be read.
    """
    root = discover_root(Path(path))
    effective_config = config if config is not None else Config()

    tracker = RepositoryTracker(
        create_reader(root),
        create_enumerator(root, effective_config),
        publisher=publisher,
        session=session,
        logger=logger,
    )
    _ = tracker.update()
    return tracker
