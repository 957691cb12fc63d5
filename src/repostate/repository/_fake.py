# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake collaborators for testing.

This module provides a FakeMetadataReader and a FakeBranchEnumerator that
implement the collaborator protocols without touching the filesystem or
spawning processes.
"""

from dataclasses import dataclass, field
from pathlib import Path

from repostate.exceptions import EnumerationFailedError, MetadataUnreadableError
from repostate.repository._models import (
    RepositoryConfig,
    RepositoryKind,
    RepositoryRoot,
    Snapshot,
)


def _fake_root() -> RepositoryRoot:
    path = Path("/fake/repo")
    return RepositoryRoot(path=path, metadata_dir=path / ".hg", kind=RepositoryKind.HG)


@dataclass(slots=True)
class FakeMetadataReader:
    """Fake metadata reader for testing.

    Implements MetadataReaderProtocol. Tests set ``snapshot`` to whatever the
    next read() should return, flip ``fresh`` to simulate on-disk changes, and
    set ``fail`` to make read() raise MetadataUnreadableError.

    Example:
        >>> reader = FakeMetadataReader(snapshot=Snapshot(current_branch="default"))
        >>> reader.read().current_branch
        'default'
        >>> reader.fail = True
        >>> reader.read()
        Traceback (most recent call last):
        ...
        repostate.exceptions.MetadataUnreadableError: ...
    """

    snapshot: Snapshot = field(default_factory=lambda: Snapshot(current_branch="default"))
    root: RepositoryRoot = field(default_factory=_fake_root)
    default_branch: str = "default"
    config: RepositoryConfig = field(default_factory=RepositoryConfig)
    fresh: bool = True
    fail: bool = False
    fail_config: bool = False
    read_count: int = 0
    fresh_checks: int = 0

    def read(self) -> Snapshot:
        """Return the configured snapshot.

        Raises:
            MetadataUnreadableError: If ``fail`` is set.
        """
        if self.fail:
            msg = f"Fake metadata unreadable: {self.root.metadata_dir}"
            raise MetadataUnreadableError(msg, path=self.root.metadata_dir)
        self.read_count += 1
        return self.snapshot

    def is_fresh(self) -> bool:
        """Return the configured freshness flag."""
        self.fresh_checks += 1
        return self.fresh

    def read_config(self) -> RepositoryConfig:
        """Return the configured repository config.

        Raises:
            MetadataUnreadableError: If ``fail_config`` is set.
        """
        if self.fail_config:
            msg = "Fake config unreadable"
            raise MetadataUnreadableError(msg, path=self.root.metadata_dir / "hgrc")
        return self.config


@dataclass(slots=True)
class FakeBranchEnumerator:
    """Fake open-branch enumerator for testing.

    Implements BranchEnumeratorProtocol. Returns ``branches`` and records every
    call; raises EnumerationFailedError while ``fail`` is set.
    """

    branches: frozenset[str] = field(default_factory=frozenset)
    fail: bool = False
    calls: list[RepositoryRoot] = field(default_factory=list)

    def collect_open_branches(self, root: RepositoryRoot) -> frozenset[str]:
        """Return the configured branch names.

        Raises:
            EnumerationFailedError: If ``fail`` is set.
        """
        self.calls.append(root)
        if self.fail:
            msg = "Fake enumeration failed"
            raise EnumerationFailedError(msg, command="fake branches", exit_code=255)
        return self.branches
