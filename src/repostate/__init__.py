"""Working-copy state tracking for Mercurial and Git repositories.

Example:
    >>> from repostate import MessageBus, REPOSITORY_CHANGED, open_repository
    >>> bus = MessageBus()
    >>> tracker = open_repository("/path/to/repo", publisher=bus)
    >>> bus.subscribe(REPOSITORY_CHANGED, lambda root: print(root.path))
    >>> tracker.update()
"""

from repostate.events import REPOSITORY_CHANGED, MessageBus, PublishResult
from repostate.exceptions import (
    ConfigError,
    ConfigLoadError,
    EnumerationFailedError,
    MetadataUnreadableError,
    RepositoryError,
    RepositoryNotFoundError,
    RepoStateError,
)
from repostate.repository import (
    NameWithHash,
    RepositoryConfig,
    RepositoryKind,
    RepositoryRoot,
    RepositoryState,
    RepositoryTracker,
    Snapshot,
    open_repository,
)
from repostate.session import Session

__all__ = [
    "REPOSITORY_CHANGED",
    "ConfigError",
    "ConfigLoadError",
    "EnumerationFailedError",
    "MessageBus",
    "MetadataUnreadableError",
    "NameWithHash",
    "PublishResult",
    "RepoStateError",
    "RepositoryConfig",
    "RepositoryError",
    "RepositoryKind",
    "RepositoryNotFoundError",
    "RepositoryRoot",
    "RepositoryState",
    "RepositoryTracker",
    "Session",
    "Snapshot",
    "open_repository",
]
