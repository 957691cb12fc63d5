"""Mercurial working-copy metadata reader.

This module reads the subset of the .hg/ directory needed to build a
Snapshot: the dirstate parents, the branch file, the branch and tag caches,
bookmarks, and local tags. It reads files directly and never runs the hg
binary, so a read costs a few small file reads.
"""

import configparser
import re
from pathlib import Path
from typing import Final

from repostate.exceptions import MetadataUnreadableError
from repostate.repository._freshness import FreshnessTracker
from repostate.repository._models import (
    NameWithHash,
    RepositoryConfig,
    RepositoryRoot,
    RepositoryState,
    Snapshot,
)

DEFAULT_BRANCH: Final = "default"

NULL_NODE: Final = "0" * 40

_NODE_BYTES: Final = 20
_DIRSTATE_V2_MARKER: Final = b"dirstate-v2\n"
# dirstate-v2 pads each parent to a 32-byte slot
_DIRSTATE_V2_SLOT: Final = 32
_NODE_PATTERN: Final = re.compile(r"^[0-9a-f]{40}$")

# Newest format first; the first file that exists wins.
_BRANCH_CACHE_FILES: Final = (
    "cache/branch2-served",
    "cache/branch2-visible",
    "cache/branch2",
    "cache/branchheads-served",
    "cache/branchheads",
)
_TAG_CACHE_FILES: Final = (
    "cache/tags2-served",
    "cache/tags2",
    "cache/tags",
)
_MERGE_STATE_FILES: Final = ("merge/state", "merge/state2")
_OPEN_HEAD_MARKERS: Final = frozenset({"o", "c"})


class MercurialMetadataReader:
    """Reads repository facts from a Mercurial .hg/ directory.

    Attributes:
        root: The repository being read.
        default_branch: Branch used when .hg/branch is absent ("default").

    Example:
        >>> reader = MercurialMetadataReader(root)
        >>> snapshot = reader.read()
        >>> snapshot.current_branch
        'default'
    """

    __slots__ = ("_freshness", "_hg_dir", "_root")

    def __init__(self, root: RepositoryRoot) -> None:
        """Initialize the reader.

        Args:
            root: The repository root; root.metadata_dir must be the .hg directory.
        """
        self._root: RepositoryRoot = root
        self._hg_dir: Path = root.metadata_dir
        watched = [
            self._hg_dir / "dirstate",
            self._hg_dir / "branch",
            self._hg_dir / "bookmarks",
            self._hg_dir / "bookmarks.current",
            self._hg_dir / "bookmarks.active",
            self._hg_dir / "localtags",
            self._hg_dir / "rebasestate",
            self._hg_dir / "graftstate",
            *(self._hg_dir / name for name in _MERGE_STATE_FILES),
            *(self._hg_dir / name for name in _BRANCH_CACHE_FILES),
            *(self._hg_dir / name for name in _TAG_CACHE_FILES),
            root.path / ".hgtags",
        ]
        self._freshness: FreshnessTracker = FreshnessTracker(watched)

    @property
    def root(self) -> RepositoryRoot:
        """Return the repository being read."""
        return self._root

    @property
    def default_branch(self) -> str:
        """Return the branch name of a repository without a branch file."""
        return DEFAULT_BRANCH

    # =========================================================================
    # MetadataReaderProtocol
    # =========================================================================

    def is_fresh(self) -> bool:
        """Check whether no metadata file changed since the last read().

        Returns:
            False once any change has been observed during this reader's lifetime.
        """
        return self._freshness.is_fresh()

    def read(self) -> Snapshot:
        """Read a full snapshot from the .hg/ directory.

        Returns:
            Snapshot of the repository's current state.

        Raises:
            MetadataUnreadableError: If .hg/ is missing or a file is malformed
                or cannot be read.
        """
        if not self._hg_dir.is_dir():
            msg = f"Mercurial metadata directory not found: {self._hg_dir}"
            raise MetadataUnreadableError(msg, path=self._hg_dir)

        # Record before reading so a concurrent write shows up as stale next time
        self._freshness.record()

        first_parent, second_parent = self._read_parents()
        return Snapshot(
            current_branch=self._read_current_branch(),
            current_revision=first_parent,
            state=self._read_state(second_parent),
            branches=self._read_branches(),
            bookmarks=self._read_bookmarks(),
            current_bookmark=self._read_current_bookmark(),
            tags=self._read_tags(),
            local_tags=self._read_local_tags(),
        )

    def read_config(self) -> RepositoryConfig:
        """Read the [paths] section of .hg/hgrc.

        Returns:
            RepositoryConfig with all configured paths. default-push falls
            back to default when it is not set.

        Raises:
            MetadataUnreadableError: If hgrc cannot be read or parsed.
        """
        hgrc = self._hg_dir / "hgrc"
        text = _read_text(hgrc)
        if text is None:
            return RepositoryConfig()

        parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            allow_no_value=True,
            delimiters=("=",),
        )
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        try:
            parser.read_string(text, source=str(hgrc))
        except configparser.Error as e:
            msg = f"Malformed Mercurial config {hgrc}: {e}"
            raise MetadataUnreadableError(msg, path=hgrc) from e

        paths: dict[str, str] = {}
        if parser.has_section("paths"):
            for alias, location in parser.items("paths"):
                if location:
                    paths[alias] = location.strip()

        default = paths.get("default")
        default_push = paths.get("default-push") or paths.get("default:pushurl")
        return RepositoryConfig(
            paths=paths,
            default_path=default,
            default_push_path=default_push or default,
        )

    # =========================================================================
    # Individual Facts
    # =========================================================================

    def _read_parents(self) -> tuple[str | None, str | None]:
        """Read both working-copy parents from the dirstate header.

        Returns:
            (first parent, second parent) as hex, None for the null revision.
        """
        dirstate = self._hg_dir / "dirstate"
        data = _read_bytes(
            dirstate, size=len(_DIRSTATE_V2_MARKER) + 2 * _DIRSTATE_V2_SLOT
        )
        if not data:
            return None, None

        slot = _NODE_BYTES
        if data.startswith(_DIRSTATE_V2_MARKER):
            data = data[len(_DIRSTATE_V2_MARKER) :]
            slot = _DIRSTATE_V2_SLOT
        if len(data) < slot + _NODE_BYTES:
            msg = f"Truncated dirstate header in {dirstate}"
            raise MetadataUnreadableError(msg, path=dirstate)

        first = data[:_NODE_BYTES].hex()
        second = data[slot : slot + _NODE_BYTES].hex()
        return _none_if_null(first), _none_if_null(second)

    def _read_current_branch(self) -> str:
        text = _read_text(self._hg_dir / "branch")
        if text is None:
            return DEFAULT_BRANCH
        name = text.strip()
        return name or DEFAULT_BRANCH

    def _read_state(self, second_parent: str | None) -> RepositoryState:
        """Derive the lifecycle state from in-progress operation markers.

        Rebase and graft keep their own state files and may also leave a
        merge/ directory behind on conflicts, so they are checked first.
        """
        if (self._hg_dir / "rebasestate").exists():
            return RepositoryState.REBASING
        if (self._hg_dir / "graftstate").exists():
            return RepositoryState.GRAFTING
        merge_marker = any((self._hg_dir / f).exists() for f in _MERGE_STATE_FILES)
        if merge_marker or second_parent is not None:
            return RepositoryState.MERGING
        return RepositoryState.NORMAL

    def _read_branches(self) -> dict[str, frozenset[str]]:
        """Read branch heads from the newest available branch cache.

        Returns:
            Branch name to head revision ids. Empty if no cache exists yet.
        """
        for name in _BRANCH_CACHE_FILES:
            path = self._hg_dir / name
            text = _read_text(path)
            if text is None:
                continue
            has_state_column = Path(name).name.startswith("branch2")
            return _parse_branch_cache(text, path, has_state_column=has_state_column)
        return {}

    def _read_bookmarks(self) -> tuple[NameWithHash, ...]:
        path = self._hg_dir / "bookmarks"
        text = _read_text(path)
        if text is None:
            return ()
        return tuple(_parse_name_lines(text, path))

    def _read_current_bookmark(self) -> str | None:
        for name in ("bookmarks.current", "bookmarks.active"):
            text = _read_text(self._hg_dir / name)
            if text is not None:
                return text.strip() or None
        return None

    def _read_tags(self) -> tuple[NameWithHash, ...]:
        """Read tags from the tag cache, falling back to .hgtags.

        Both sources list older nodes of a re-tagged name before the newer
        one, so the last entry per name wins.
        """
        for name in _TAG_CACHE_FILES:
            path = self._hg_dir / name
            text = _read_text(path)
            if text is not None:
                entries = _parse_name_lines(text, path, skip_header=True)
                return _resolve_tag_entries(entries)

        hgtags = self._root.path / ".hgtags"
        text = _read_text(hgtags)
        if text is None:
            return ()
        return _resolve_tag_entries(_parse_name_lines(text, hgtags))

    def _read_local_tags(self) -> tuple[NameWithHash, ...]:
        path = self._hg_dir / "localtags"
        text = _read_text(path)
        if text is None:
            return ()
        return _resolve_tag_entries(_parse_name_lines(text, path))


# =============================================================================
# Parsing Helpers
# =============================================================================


def _read_text(path: Path) -> str | None:
    """Read a UTF-8 metadata file.

    Returns:
        File contents, or None if the file does not exist.

    Raises:
        MetadataUnreadableError: On I/O or decoding errors.
    """
    try:
        return path.read_text(encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError):
        return None
    except UnicodeDecodeError as e:
        msg = f"Metadata file is not valid UTF-8: {path}"
        raise MetadataUnreadableError(msg, path=path) from e
    except OSError as e:
        msg = f"Cannot read metadata file {path}: {e}"
        raise MetadataUnreadableError(msg, path=path) from e


def _read_bytes(path: Path, *, size: int) -> bytes:
    """Read up to size bytes from the start of a binary metadata file.

    Returns:
        The bytes read, empty if the file does not exist.

    Raises:
        MetadataUnreadableError: On I/O errors.
    """
    try:
        with path.open("rb") as f:
            return f.read(size)
    except FileNotFoundError:
        return b""
    except OSError as e:
        msg = f"Cannot read metadata file {path}: {e}"
        raise MetadataUnreadableError(msg, path=path) from e


def _none_if_null(node: str) -> str | None:
    return None if node == NULL_NODE else node


def _content_lines(text: str) -> list[str]:
    return [
        line
        for line in (raw.rstrip("\r") for raw in text.splitlines())
        if line.strip() and not line.lstrip().startswith("#")
    ]


def _check_node(node: str, path: Path, line: str) -> None:
    if not _NODE_PATTERN.match(node):
        msg = f"Malformed line in {path}: {line!r}"
        raise MetadataUnreadableError(msg, path=path)


def _parse_name_lines(
    text: str, path: Path, *, skip_header: bool = False
) -> list[NameWithHash]:
    """Parse "<node> <name>" lines.

    Args:
        text: File contents.
        path: Source file, for error reporting.
        skip_header: Drop the first content line (cache file header).

    Returns:
        Entries in file order.

    Raises:
        MetadataUnreadableError: If a line does not have the expected shape.
    """
    lines = _content_lines(text)
    if skip_header:
        lines = lines[1:]

    entries: list[NameWithHash] = []
    for line in lines:
        node, _, name = line.partition(" ")
        _check_node(node, path, line)
        name = name.strip()
        if not name:
            msg = f"Missing name in {path}: {line!r}"
            raise MetadataUnreadableError(msg, path=path)
        entries.append(NameWithHash(name=name, hash=node))
    return entries


def _resolve_tag_entries(entries: list[NameWithHash]) -> tuple[NameWithHash, ...]:
    """Apply last-entry-wins and null-node removal to tag lines.

    A name keeps the position of its first appearance.
    """
    resolved: dict[str, str] = {}
    for entry in entries:
        if entry.hash == NULL_NODE:
            _ = resolved.pop(entry.name, None)
        else:
            resolved[entry.name] = entry.hash
    return tuple(NameWithHash(name=name, hash=node) for name, node in resolved.items())


def _parse_branch_cache(
    text: str, path: Path, *, has_state_column: bool
) -> dict[str, frozenset[str]]:
    """Parse a branch head cache.

    The first line is a header naming the cached tip. branch2 caches list
    "<node> <o|c> <name>" per head; older branchheads caches omit the
    open/closed column.

    Raises:
        MetadataUnreadableError: If a line does not have the expected shape.
    """
    heads: dict[str, set[str]] = {}
    for line in _content_lines(text)[1:]:
        node, _, rest = line.partition(" ")
        _check_node(node, path, line)
        if has_state_column:
            marker, _, rest = rest.partition(" ")
            if marker not in _OPEN_HEAD_MARKERS:
                msg = f"Malformed branch cache line in {path}: {line!r}"
                raise MetadataUnreadableError(msg, path=path)
        name = rest.strip()
        if not name:
            msg = f"Missing branch name in {path}: {line!r}"
            raise MetadataUnreadableError(msg, path=path)
        heads.setdefault(name, set()).add(node)
    return {name: frozenset(nodes) for name, nodes in heads.items()}
