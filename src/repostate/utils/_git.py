"""Git helpers shared by the reader and repository discovery."""

from pathlib import Path

_GITDIR_PREFIX = "gitdir:"


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode()
    return value


def resolve_gitdir_file(git_file: Path) -> Path | None:
    """Resolve a worktree or submodule ``.git`` file to its metadata directory.

    Args:
        git_file: Path to a ``.git`` file containing a ``gitdir:`` pointer.

    Returns:
        The referenced directory, or None if the file has no usable pointer.
    """
    try:
        content = git_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    for line in content.splitlines():
        if line.startswith(_GITDIR_PREFIX):
            target = Path(line[len(_GITDIR_PREFIX) :].strip())
            if not target.is_absolute():
                target = git_file.parent / target
            return target.resolve() if target.is_dir() else None
    return None
