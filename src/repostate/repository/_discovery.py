"""Locating the working copy that contains a path."""

from pathlib import Path

from repostate.exceptions import RepositoryNotFoundError
from repostate.repository._models import RepositoryKind, RepositoryRoot
from repostate.utils import resolve_gitdir_file


def _root_at(directory: Path) -> RepositoryRoot | None:
    hg_dir = directory / ".hg"
    if hg_dir.is_dir():
        return RepositoryRoot(path=directory, metadata_dir=hg_dir, kind=RepositoryKind.HG)

    git_path = directory / ".git"
    if git_path.is_dir():
        return RepositoryRoot(path=directory, metadata_dir=git_path, kind=RepositoryKind.GIT)
    if git_path.is_file():
        git_dir = resolve_gitdir_file(git_path)
        if git_dir is not None:
            return RepositoryRoot(
                path=directory, metadata_dir=git_dir, kind=RepositoryKind.GIT
            )
    return None


def discover_root(path: Path | str) -> RepositoryRoot:
    """Find the innermost Mercurial or Git working copy containing a path.

    A directory holding both .hg and .git is treated as Mercurial.

    Args:
        path: A file or directory inside the working copy.

    Returns:
        The working copy root.

    Raises:
        RepositoryNotFoundError: If no parent directory holds .hg or .git.
    """
    start = Path(path).expanduser().resolve()
    directory = start if start.is_dir() else start.parent

    for candidate in (directory, *directory.parents):
        root = _root_at(candidate)
        if root is not None:
            return root

    msg = f"No Mercurial or Git repository found at or above {start}"
    raise RepositoryNotFoundError(msg, path=start)
