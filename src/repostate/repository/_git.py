"""Git working-copy metadata reader.

This module builds a Snapshot from a .git/ directory using dulwich. Git has
no bookmarks or local tags, so those Snapshot fields stay empty.
"""

import contextlib
from typing import Final

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from repostate.exceptions import MetadataUnreadableError
from repostate.repository._freshness import FreshnessTracker
from repostate.repository._models import (
    NameWithHash,
    RepositoryConfig,
    RepositoryRoot,
    RepositoryState,
    Snapshot,
)
from repostate.utils import decode_bytes

DEFAULT_BRANCH: Final = "master"

# Branch name reported when HEAD does not point at a branch
DETACHED_HEAD: Final = "HEAD"

_BRANCH_PREFIX: Final = b"refs/heads/"
_TAG_PREFIX: Final = b"refs/tags/"
_DEFAULT_REMOTE: Final = "origin"


class GitMetadataReader:
    """Reads repository facts from a Git .git/ directory.

    Example:
        >>> reader = GitMetadataReader(root)
        >>> reader.read().current_branch
        'master'
    """

    __slots__ = ("_freshness", "_git_dir", "_root")

    def __init__(self, root: RepositoryRoot) -> None:
        """Initialize the reader.

        Args:
            root: The repository root; root.metadata_dir must be the .git directory.
        """
        self._root: RepositoryRoot = root
        self._git_dir = root.metadata_dir
        self._freshness: FreshnessTracker = FreshnessTracker(
            [
                self._git_dir / "HEAD",
                self._git_dir / "packed-refs",
                self._git_dir / "refs" / "heads",
                self._git_dir / "refs" / "tags",
                self._git_dir / "MERGE_HEAD",
                self._git_dir / "CHERRY_PICK_HEAD",
                self._git_dir / "rebase-merge",
                self._git_dir / "rebase-apply",
            ]
        )

    @property
    def root(self) -> RepositoryRoot:
        """Return the repository being read."""
        return self._root

    @property
    def default_branch(self) -> str:
        """Return the branch a newly initialized repository starts on."""
        return DEFAULT_BRANCH

    def is_fresh(self) -> bool:
        """Check whether no ref or state file changed since the last read().

        Returns:
            False once any change has been observed during this reader's lifetime.
        """
        return self._freshness.is_fresh()

    def _open(self) -> Repo:
        try:
            return Repo(str(self._root.path))
        except (NotGitRepository, OSError) as e:
            msg = f"Git metadata directory not readable: {self._git_dir}"
            raise MetadataUnreadableError(msg, path=self._git_dir) from e

    def read(self) -> Snapshot:
        """Read a full snapshot through dulwich.

        Returns:
            Snapshot of the repository's current state.

        Raises:
            MetadataUnreadableError: If .git/ is missing or its refs cannot be read.
        """
        if not self._git_dir.is_dir():
            msg = f"Git metadata directory not found: {self._git_dir}"
            raise MetadataUnreadableError(msg, path=self._git_dir)

        self._freshness.record()

        repo = self._open()
        try:
            refs = repo.refs
            head_ref = refs.get_symrefs().get(b"HEAD")
            try:
                current_revision: str | None = decode_bytes(repo.head())
            except KeyError:
                current_revision = None

            branches: dict[str, frozenset[str]] = {}
            tags: list[NameWithHash] = []
            for ref_name in sorted(refs.allkeys()):
                if ref_name.startswith(_BRANCH_PREFIX):
                    name = decode_bytes(ref_name[len(_BRANCH_PREFIX) :])
                    branches[name] = frozenset({decode_bytes(refs[ref_name])})
                elif ref_name.startswith(_TAG_PREFIX):
                    tags.append(
                        NameWithHash(
                            name=decode_bytes(ref_name[len(_TAG_PREFIX) :]),
                            hash=decode_bytes(repo.get_peeled(ref_name)),
                        )
                    )
        except (KeyError, OSError, ValueError) as e:
            msg = f"Cannot read Git refs in {self._git_dir}: {e}"
            raise MetadataUnreadableError(msg, path=self._git_dir) from e
        finally:
            repo.close()

        current_branch = DETACHED_HEAD
        detached = True
        if head_ref is not None and head_ref.startswith(_BRANCH_PREFIX):
            current_branch = decode_bytes(head_ref[len(_BRANCH_PREFIX) :])
            detached = False

        return Snapshot(
            current_branch=current_branch,
            current_revision=current_revision,
            state=self._read_state(detached=detached),
            branches=branches,
            tags=tuple(tags),
        )

    def _read_state(self, *, detached: bool) -> RepositoryState:
        """Derive the lifecycle state from Git's in-progress markers.

        A rebase detaches HEAD, so rebase markers are checked before the
        detached check.
        """
        git_dir = self._git_dir
        if (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists():
            return RepositoryState.REBASING
        if (git_dir / "CHERRY_PICK_HEAD").exists():
            return RepositoryState.GRAFTING
        if (git_dir / "MERGE_HEAD").exists():
            return RepositoryState.MERGING
        if detached:
            return RepositoryState.DETACHED
        return RepositoryState.NORMAL

    def read_config(self) -> RepositoryConfig:
        """Read remote URLs from the repository's Git config.

        Returns:
            RepositoryConfig mapping remote names to fetch URLs. The default
            paths come from the "origin" remote; pushurl wins for pushing.

        Raises:
            MetadataUnreadableError: If the config cannot be read.
        """
        repo = self._open()
        try:
            config = repo.get_config()
            paths: dict[str, str] = {}
            push_urls: dict[str, str] = {}
            for section in config.sections():
                if len(section) != 2 or section[0] != b"remote":  # noqa: PLR2004
                    continue
                name = decode_bytes(section[1])
                try:
                    paths[name] = decode_bytes(config.get(section, b"url"))
                except KeyError:
                    continue
                with contextlib.suppress(KeyError):
                    push_urls[name] = decode_bytes(config.get(section, b"pushurl"))
        except (OSError, ValueError) as e:
            msg = f"Cannot read Git config in {self._git_dir}: {e}"
            raise MetadataUnreadableError(msg, path=self._git_dir / "config") from e
        finally:
            repo.close()

        default = paths.get(_DEFAULT_REMOTE)
        return RepositoryConfig(
            paths=paths,
            default_path=default,
            default_push_path=push_urls.get(_DEFAULT_REMOTE, default),
        )
