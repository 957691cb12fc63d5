"""Shared test fixtures for repostate tests."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import pytest
from dulwich.porcelain import add, commit
from dulwich.repo import Repo
from rich.console import Console

from repostate.repository import RepositoryKind, RepositoryRoot

NULL = "0" * 40


def node(prefix: str) -> str:
    """Pad a short hex prefix to a full 40-character node id."""
    return prefix.ljust(40, "0")


@dataclass(frozen=True, slots=True)
class HgRepo:
    """An on-disk .hg/ layout written without the hg binary.

    Helpers write exactly the files MercurialMetadataReader reads.
    """

    path: Path
    hg_dir: Path

    @property
    def root(self) -> RepositoryRoot:
        return RepositoryRoot(path=self.path, metadata_dir=self.hg_dir, kind=RepositoryKind.HG)

    def write(self, name: str, content: str | bytes) -> Path:
        target = self.hg_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            _ = target.write_bytes(content)
        else:
            _ = target.write_text(content, encoding="utf-8")
        return target

    def remove(self, name: str) -> None:
        (self.hg_dir / name).unlink()

    def set_parents(self, first: str | None, second: str | None = None) -> None:
        data = bytes.fromhex(first or NULL) + bytes.fromhex(second or NULL)
        _ = self.write("dirstate", data)

    def set_branch(self, name: str) -> None:
        _ = self.write("branch", f"{name}\n")

    def set_branch_heads(
        self,
        heads: Mapping[str, Iterable[str]],
        *,
        closed: Iterable[str] = (),
        tip: str | None = None,
    ) -> None:
        closed_nodes = set(closed)
        lines = [f"{tip or NULL} 0"]
        for name, nodes in heads.items():
            for head in nodes:
                marker = "c" if head in closed_nodes else "o"
                lines.append(f"{head} {marker} {name}")
        _ = self.write("cache/branch2-served", "\n".join(lines) + "\n")

    def set_bookmarks(self, bookmarks: Mapping[str, str], active: str | None = None) -> None:
        lines = [f"{target} {name}" for name, target in bookmarks.items()]
        _ = self.write("bookmarks", "\n".join(lines) + "\n")
        if active is not None:
            _ = self.write("bookmarks.current", active)

    def set_tags(self, tags: Iterable[tuple[str, str]]) -> None:
        lines = [f"0 {NULL}"] + [f"{target} {name}" for name, target in tags]
        _ = self.write("cache/tags2-served", "\n".join(lines) + "\n")

    def set_local_tags(self, tags: Iterable[tuple[str, str]]) -> None:
        lines = [f"{target} {name}" for name, target in tags]
        _ = self.write("localtags", "\n".join(lines) + "\n")


def make_hg_repo(path: Path) -> HgRepo:
    """Create an empty Mercurial layout (no commits) at path."""
    hg_dir = path / ".hg"
    hg_dir.mkdir(parents=True)
    _ = (hg_dir / "requires").write_text("store\nfncache\n", encoding="utf-8")
    return HgRepo(path=path, hg_dir=hg_dir)


@pytest.fixture
def hg_repo(tmp_path: Path) -> HgRepo:
    """Create an empty Mercurial working copy layout."""
    return make_hg_repo(tmp_path / "hg-repo")


@dataclass(frozen=True, slots=True)
class GitRepo:
    """A real Git repository created through dulwich."""

    path: Path

    @property
    def root(self) -> RepositoryRoot:
        return RepositoryRoot(
            path=self.path, metadata_dir=self.path / ".git", kind=RepositoryKind.GIT
        )

    def open(self) -> Repo:
        return Repo(str(self.path))

    def commit_file(self, name: str, content: str, message: str = "Update") -> str:
        _ = (self.path / name).write_text(content, encoding="utf-8")
        add(str(self.path), paths=[str(self.path / name)])
        _ = commit(
            str(self.path),
            message=message.encode(),
            author=b"Test <test@test.com>",
            committer=b"Test <test@test.com>",
            sign=False,
        )
        repo = self.open()
        try:
            return repo.head().decode()
        finally:
            repo.close()

    def head_branch(self) -> str:
        repo = self.open()
        try:
            target = repo.refs.get_symrefs()[b"HEAD"]
        finally:
            repo.close()
        return target.decode().removeprefix("refs/heads/")


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Create an empty Git repository (no commits)."""
    path = tmp_path / "git-repo"
    path.mkdir()
    Repo.init(str(path)).close()
    return GitRepo(path=path)


@pytest.fixture
def committed_git_repo(git_repo: GitRepo) -> GitRepo:
    """Create a Git repository with one commit."""
    _ = git_repo.commit_file("README.md", "# Test\n", message="Initial commit")
    return git_repo


@pytest.fixture
def console() -> Console:
    """Create a Rich console writing to stdout without colors."""
    return Console(force_terminal=False, no_color=True, width=200)
