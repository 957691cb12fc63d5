"""Repository state models.

This module defines the immutable value types the tracker caches and
compares: the repository root identity, lifecycle states, named revisions,
the per-update Snapshot, and the per-repository path configuration.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime dataclass fields
from types import MappingProxyType
from typing import Final, Self


class RepositoryKind(StrEnum):
    """Version control systems the tracker can read."""

    HG = "hg"
    GIT = "git"


class RepositoryState(StrEnum):
    """Mutually exclusive working-copy lifecycle states.

    - NORMAL: No operation in progress
    - MERGING: A merge is in progress (second parent present)
    - REBASING: A rebase is in progress
    - GRAFTING: A graft (cherry-pick) is in progress
    - DETACHED: The working copy is not on a named branch (Git only)
    """

    NORMAL = "normal"
    MERGING = "merging"
    REBASING = "rebasing"
    GRAFTING = "grafting"
    DETACHED = "detached"


@dataclass(frozen=True, slots=True)
class RepositoryRoot:
    """Identity of one tracked working copy.

    Attributes:
        path: Resolved path to the working copy directory.
        metadata_dir: Path to the metadata directory (.hg or .git).
        kind: The version control system owning the metadata directory.
    """

    path: Path
    metadata_dir: Path
    kind: RepositoryKind


@dataclass(frozen=True, slots=True)
class NameWithHash:
    """A name pointing at a revision (bookmark or tag).

    Attributes:
        name: Bookmark or tag name.
        hash: Full hex revision id.
    """

    name: str
    hash: str


# Closed set of fields that make up a Snapshot, in declaration order.
SNAPSHOT_FIELDS: Final = (
    "current_branch",
    "current_revision",
    "state",
    "branches",
    "bookmarks",
    "current_bookmark",
    "tags",
    "local_tags",
)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """All observable repository facts from one metadata read.

    Two snapshots are equal only when every field is element-wise equal.
    Equality is what gates change notifications, so no field may be left
    out of the comparison.

    Attributes:
        current_branch: Name of the active branch.
        current_revision: Hex id of the working copy parent, None without commits.
        state: Lifecycle state of the working copy.
        branches: Branch name to the set of its head revision ids.
        bookmarks: Bookmarks in on-disk order.
        current_bookmark: Active bookmark, if any.
        tags: Shared tags in on-disk order.
        local_tags: Tags that are never pushed.
    """

    current_branch: str
    current_revision: str | None = None
    state: RepositoryState = RepositoryState.NORMAL
    branches: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    bookmarks: tuple[NameWithHash, ...] = ()
    current_bookmark: str | None = None
    tags: tuple[NameWithHash, ...] = ()
    local_tags: tuple[NameWithHash, ...] = ()

    def __post_init__(self) -> None:
        # Copy into a read-only view so callers cannot mutate a cached snapshot
        frozen = {name: frozenset(heads) for name, heads in self.branches.items()}
        object.__setattr__(self, "branches", MappingProxyType(frozen))
        object.__setattr__(self, "bookmarks", tuple(self.bookmarks))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "local_tags", tuple(self.local_tags))

    def __hash__(self) -> int:
        return hash(
            (
                self.current_branch,
                self.current_revision,
                self.state,
                frozenset(self.branches.items()),
                self.bookmarks,
                self.current_bookmark,
                self.tags,
                self.local_tags,
            )
        )

    @classmethod
    def empty(cls, current_branch: str) -> Self:
        """Create the snapshot of a repository with no commits.

        Args:
            current_branch: The branch name a fresh repository starts on.

        Returns:
            A snapshot with no revision and empty collections.
        """
        return cls(current_branch=current_branch)

    def changed_fields(self, other: "Snapshot | None") -> tuple[str, ...]:  # noqa: UP037
        """List the fields that differ from another snapshot.

        Args:
            other: The snapshot to compare against. None means every field
                differs.

        Returns:
            Names from SNAPSHOT_FIELDS whose values are not equal.
        """
        if other is None:
            return SNAPSHOT_FIELDS
        return tuple(
            name
            for name in SNAPSHOT_FIELDS
            if getattr(self, name) != getattr(other, name)
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-compatible dictionary.

        Returns:
            Dictionary with sorted branch heads and list-valued collections.
        """
        return {
            "current_branch": self.current_branch,
            "current_revision": self.current_revision,
            "state": self.state.value,
            "branches": {
                name: sorted(heads) for name, heads in sorted(self.branches.items())
            },
            "bookmarks": [{"name": b.name, "hash": b.hash} for b in self.bookmarks],
            "current_bookmark": self.current_bookmark,
            "tags": [{"name": t.name, "hash": t.hash} for t in self.tags],
            "local_tags": [{"name": t.name, "hash": t.hash} for t in self.local_tags],
        }


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    """Remote paths configured for a repository.

    Attributes:
        paths: Path alias to URL or filesystem location.
        default_path: Location used for pull, if configured.
        default_push_path: Location used for push, if configured.
    """

    paths: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    default_path: str | None = None
    default_push_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", MappingProxyType(dict(self.paths)))

    def __hash__(self) -> int:
        return hash(
            (frozenset(self.paths.items()), self.default_path, self.default_push_path)
        )
