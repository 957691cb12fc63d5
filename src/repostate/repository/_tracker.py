"""Cached repository state with change detection.

RepositoryTracker owns the last known Snapshot of one working copy. Each
update() reads a new snapshot, compares it with the cached one, and only when
they differ refreshes the open-branch set, swaps the cache, and publishes a
single REPOSITORY_CHANGED notification.

The cached state is an immutable object replaced by reference, so accessors
never lock and never observe a half-updated state. update() calls are
serialized by a per-tracker lock.
"""

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING, Self

import structlog

from repostate.events import REPOSITORY_CHANGED, PublishResult
from repostate.exceptions import EnumerationFailedError, MetadataUnreadableError
from repostate.repository._models import (
    NameWithHash,
    RepositoryConfig,
    RepositoryRoot,
    RepositoryState,
    Snapshot,
)
from repostate.session import Session

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from repostate.repository._protocol import (
        BranchEnumeratorProtocol,
        MetadataReaderProtocol,
        PublisherProtocol,
    )


@dataclass(frozen=True, slots=True)
class _TrackedState:
    snapshot: Snapshot
    open_branches: frozenset[str]
    baseline: bool


class RepositoryTracker:
    """Last known state of one repository, refreshed on demand.

    The tracker does not read anything on construction; open_repository()
    runs the first update(). Until then the accessors return an empty
    snapshot on the reader's default branch.

    Example:
        >>> tracker = RepositoryTracker(reader, enumerator, publisher=bus)
        >>> tracker.update()  # first call only records a baseline
        False
        >>> tracker.current_branch
        'default'
    """

    __slots__ = (
        "_config",
        "_enumerator",
        "_fresh",
        "_logger",
        "_owns_session",
        "_publisher",
        "_reader",
        "_session",
        "_state",
        "_update_lock",
    )

    def __init__(
        self,
        reader: "MetadataReaderProtocol",
        enumerator: "BranchEnumeratorProtocol",
        *,
        publisher: "PublisherProtocol | None" = None,
        session: Session | None = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            reader: Reads snapshots and repository config from disk.
            enumerator: Runs the open-branch query after a change.
            publisher: Receives one notification per detected change.
            session: Owning lifecycle. A private session is created when
                omitted and disposed by close().
            logger: Logger to use; defaults to the "repostate" structlog logger.
        """
        self._reader: MetadataReaderProtocol = reader
        self._enumerator: BranchEnumeratorProtocol = enumerator
        self._publisher: PublisherProtocol | None = publisher
        self._owns_session: bool = session is None
        self._session: Session = session if session is not None else Session()
        base_logger = logger if logger is not None else structlog.get_logger("repostate")
        self._logger: FilteringBoundLogger = base_logger.bind(
            root=str(reader.root.path), kind=reader.root.kind.value
        )
        self._update_lock: threading.Lock = threading.Lock()
        self._fresh: bool = True
        self._state: _TrackedState = _TrackedState(
            snapshot=Snapshot.empty(reader.default_branch),
            open_branches=frozenset(),
            baseline=False,
        )
        self._config: RepositoryConfig = self._load_config()

    # =========================================================================
    # Update
    # =========================================================================

    def update(self) -> bool:
        """Re-read repository metadata and publish if anything changed.

        The first call records the baseline and never publishes. A detected
        change also clears the freshness flag.

        Subscribers run synchronously while the update lock and the session
        guard are held. A subscriber must not block on another thread that
        calls `update()` or `Session.dispose()` on the same tracker.

        Returns:
            True if a change was detected, the cache was replaced, and a
            notification was published.

        Raises:
            MetadataUnreadableError: If the metadata cannot be read. The
                cached state is kept and nothing is published.
        """
        if self._session.is_disposed:
            self._logger.debug("update_skipped_disposed")
            return False

        with self._update_lock:
            if self._session.is_disposed:
                self._logger.debug("update_skipped_disposed")
                return False

            self._fresh = self._fresh and self._reader.is_fresh()

            try:
                snapshot = self._reader.read()
            except MetadataUnreadableError as e:
                self._logger.warning(
                    "metadata_unreadable",
                    path=str(e.path) if e.path else None,
                    error=str(e),
                )
                raise

            previous = self._state
            if previous.baseline and snapshot == previous.snapshot:
                self._logger.debug("snapshot_unchanged")
                return False

            open_branches = self._collect_open_branches(previous.open_branches)
            new_state = _TrackedState(
                snapshot=snapshot, open_branches=open_branches, baseline=True
            )

            if not previous.baseline:
                with self._session.guard():
                    if self._session.is_disposed:
                        self._logger.debug("update_skipped_disposed")
                        return False
                    self._state = new_state
                self._logger.debug(
                    "snapshot_baseline",
                    branch=snapshot.current_branch,
                    revision=snapshot.current_revision,
                )
                return False

            with self._session.guard():
                if self._session.is_disposed:
                    self._logger.debug("update_skipped_disposed")
                    return False
                self._state = new_state
                self._fresh = False
                self._logger.info(
                    "snapshot_changed",
                    changed_fields=list(snapshot.changed_fields(previous.snapshot)),
                    branch=snapshot.current_branch,
                    revision=snapshot.current_revision,
                )
                self._publish()
            return True

    def _collect_open_branches(self, previous: frozenset[str]) -> frozenset[str]:
        root = self._reader.root
        try:
            return frozenset(self._enumerator.collect_open_branches(root))
        except EnumerationFailedError as e:
            self._logger.warning(
                "open_branches_enumeration_failed",
                command=e.command,
                exit_code=e.exit_code,
                stderr=e.stderr,
                error=str(e),
            )
            return previous

    def _publish(self) -> None:
        if self._publisher is None:
            return
        result = self._publisher.publish(REPOSITORY_CHANGED, self._reader.root)
        if isinstance(result, PublishResult):
            for failure in result.failures:
                self._logger.error(
                    "subscriber_failed",
                    handler=getattr(failure.handler, "__qualname__", repr(failure.handler)),
                    error=str(failure.error),
                    error_type=type(failure.error).__name__,
                )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def root(self) -> RepositoryRoot:
        """Return the tracked repository."""
        return self._reader.root

    @property
    def session(self) -> Session:
        """Return the owning session."""
        return self._session

    @property
    def snapshot(self) -> Snapshot:
        """Return the cached snapshot."""
        return self._state.snapshot

    @property
    def current_branch(self) -> str:
        """Return the active branch name."""
        return self._state.snapshot.current_branch

    @property
    def current_revision(self) -> str | None:
        """Return the working copy parent revision, None without commits."""
        return self._state.snapshot.current_revision

    @property
    def state(self) -> RepositoryState:
        """Return the working copy lifecycle state."""
        return self._state.snapshot.state

    @property
    def branches(self) -> Mapping[str, frozenset[str]]:
        """Return branch names mapped to their head revisions."""
        return self._state.snapshot.branches

    @property
    def bookmarks(self) -> tuple[NameWithHash, ...]:
        """Return the repository bookmarks."""
        return self._state.snapshot.bookmarks

    @property
    def current_bookmark(self) -> str | None:
        """Return the active bookmark, if any."""
        return self._state.snapshot.current_bookmark

    @property
    def tags(self) -> tuple[NameWithHash, ...]:
        """Return the shared tags."""
        return self._state.snapshot.tags

    @property
    def local_tags(self) -> tuple[NameWithHash, ...]:
        """Return the local tags."""
        return self._state.snapshot.local_tags

    @property
    def open_branches(self) -> frozenset[str]:
        """Return the open branch names from the last successful enumeration."""
        return self._state.open_branches

    def is_fresh(self) -> bool:
        """Return False once any metadata change has been observed."""
        return self._fresh

    # =========================================================================
    # Repository config
    # =========================================================================

    def _load_config(self) -> RepositoryConfig:
        try:
            return self._reader.read_config()
        except MetadataUnreadableError as e:
            self._logger.warning("repository_config_unreadable", error=str(e))
            return RepositoryConfig()

    @property
    def repository_config(self) -> RepositoryConfig:
        """Return the configured remote paths as of the last config read."""
        return self._config

    def update_config(self) -> RepositoryConfig:
        """Re-read the repository's remote paths.

        Returns:
            The new configuration.

        Raises:
            MetadataUnreadableError: If the configuration is malformed. The
                previous configuration is kept.
        """
        config = self._reader.read_config()
        self._config = config
        self._logger.debug(
            "repository_config_updated",
            default_path=config.default_path,
            paths=sorted(config.paths),
        )
        return config

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def to_log_string(self) -> str:
        """Describe the tracker for log and debug output."""
        snapshot = self._state.snapshot
        revision = snapshot.current_revision or "none"
        return (
            f"{self.root.kind.value} repository {self.root.path} "
            f"[branch={snapshot.current_branch}, revision={revision}, "
            f"state={snapshot.state.value}, fresh={self._fresh}]"
        )

    def close(self) -> None:
        """Dispose the tracker's session if the tracker created it."""
        if self._owns_session:
            self._session.dispose()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RepositoryTracker({self.to_log_string()})"
