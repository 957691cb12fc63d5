"""Repository state tracking.

This package reads Mercurial and Git working-copy metadata into immutable
snapshots and notifies subscribers when the snapshot changes.

Classes:
    RepositoryTracker: Cached state with change detection and notification.
    MercurialMetadataReader: Reads .hg/ metadata files directly.
    GitMetadataReader: Reads .git/ metadata through dulwich.
    CommandBranchEnumerator: Runs the VCS to list open branches.
    FreshnessTracker: Cheap stat-based change latch.
    FakeMetadataReader, FakeBranchEnumerator: Test doubles.

Models:
    Snapshot: All observable facts from one metadata read.
    RepositoryRoot: Identity of a working copy.
    RepositoryState: Working copy lifecycle state.
    NameWithHash: A bookmark or tag.
    RepositoryConfig: Configured remote paths.

Example:
    >>> from repostate.repository import open_repository
    >>> with open_repository("/path/to/repo") as tracker:
    ...     tracker.update()
    ...     print(tracker.current_branch)
"""

from repostate.repository._discovery import discover_root
from repostate.repository._enumerator import (
    CommandBranchEnumerator,
    DisabledBranchEnumerator,
    parse_hg_branches,
    parse_ref_names,
)
from repostate.repository._fake import FakeBranchEnumerator, FakeMetadataReader
from repostate.repository._freshness import FreshnessTracker, compute_signature
from repostate.repository._git import GitMetadataReader
from repostate.repository._hg import MercurialMetadataReader
from repostate.repository._models import (
    SNAPSHOT_FIELDS,
    NameWithHash,
    RepositoryConfig,
    RepositoryKind,
    RepositoryRoot,
    RepositoryState,
    Snapshot,
)
from repostate.repository._open import create_enumerator, create_reader, open_repository
from repostate.repository._protocol import (
    BranchEnumeratorProtocol,
    MetadataReaderProtocol,
    PublisherProtocol,
)
from repostate.repository._tracker import RepositoryTracker

__all__ = [
    "SNAPSHOT_FIELDS",
    "BranchEnumeratorProtocol",
    "CommandBranchEnumerator",
    "DisabledBranchEnumerator",
    "FakeBranchEnumerator",
    "FakeMetadataReader",
    "FreshnessTracker",
    "GitMetadataReader",
    "MercurialMetadataReader",
    "MetadataReaderProtocol",
    "NameWithHash",
    "PublisherProtocol",
    "RepositoryConfig",
    "RepositoryKind",
    "RepositoryRoot",
    "RepositoryState",
    "RepositoryTracker",
    "Snapshot",
    "compute_signature",
    "create_enumerator",
    "create_reader",
    "discover_root",
    "open_repository",
    "parse_hg_branches",
    "parse_ref_names",
]
