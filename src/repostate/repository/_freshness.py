"""Cheap on-disk change detection for repository metadata.

The freshness tracker records a signature of the metadata files a reader
depends on and later compares it with the files currently on disk. It answers
"might anything have changed since our last full read?" with a handful of
stat() calls instead of a full parse.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path  # noqa: TC003 - Used in runtime signatures

# Per-file (mtime_ns, size), or None when the file does not exist.
type FileSignature = tuple[int, int] | None
type MetadataSignature = tuple[FileSignature, ...]


def compute_signature(paths: Iterable[Path]) -> MetadataSignature:
    """Stat each path and collect its modification signature.

    Missing files contribute None, so creating or deleting a watched file
    changes the signature as well as rewriting one.

    Args:
        paths: Files or directories to stat, in a stable order.

    Returns:
        Tuple of per-path signatures in the same order.
    """
    signature: list[FileSignature] = []
    for path in paths:
        try:
            stat = path.stat()
        except FileNotFoundError:
            signature.append(None)
        else:
            signature.append((stat.st_mtime_ns, stat.st_size))
    return tuple(signature)


class FreshnessTracker:
    """Lifetime latch over a metadata signature.

    The tracker starts fresh. record() stores the signature seen at a full
    read; is_fresh() compares it to the current signature. The first mismatch
    clears the latch for good: later checks keep returning False even if the
    files are restored to their recorded state.

    Example:
        >>> tracker = FreshnessTracker([Path(".hg/dirstate")])
        >>> tracker.is_fresh()
        True
        >>> tracker.record()
    """

    __slots__ = ("_paths", "_recorded", "_stale")

    def __init__(self, paths: Sequence[Path]) -> None:
        """Initialize the tracker.

        Args:
            paths: The metadata files (or directories) whose signature is watched.
        """
        self._paths: tuple[Path, ...] = tuple(paths)
        self._recorded: MetadataSignature | None = None
        self._stale: bool = False

    @property
    def paths(self) -> tuple[Path, ...]:
        """Return the watched paths."""
        return self._paths

    def record(self) -> None:
        """Store the current signature as the baseline for later checks."""
        self._recorded = compute_signature(self._paths)

    def is_fresh(self) -> bool:
        """Check whether the metadata is unchanged since the last record().

        Returns:
            True if nothing was recorded yet or the signature still matches,
            False once any mismatch has been observed.
        """
        if self._stale:
            return False
        if self._recorded is None:
            return True
        if compute_signature(self._paths) != self._recorded:
            self._stale = True
            return False
        return True
