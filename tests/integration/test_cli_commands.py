import json
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from pytest_mock import MockerFixture
from watchfiles import Change

from repostate.cli._commands._shared import ExitCode
from repostate.repository import CommandBranchEnumerator
from tests.conftest import HgRepo, node


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, mocker: MockerFixture, tmp_path: Path) -> None:
    monkeypatch.delenv("REPOSTATE_STRICT_CONFIG", raising=False)
    _ = mocker.patch(
        "repostate.config._load.get_user_config_path",
        return_value=tmp_path / "user-config.toml",
    )
    _ = mocker.patch.object(
        CommandBranchEnumerator,
        "collect_open_branches",
        return_value=frozenset({"default", "feature"}),
    )


@pytest.fixture
def populated(hg_repo: HgRepo) -> HgRepo:
    hg_repo.set_branch("feature")
    hg_repo.set_parents(node("def456"))
    hg_repo.set_branch_heads(
        {"default": [node("abc123")], "feature": [node("def456")], "old": [node("111111")]},
        tip=node("def456"),
    )
    hg_repo.set_bookmarks({"main": node("abc123")}, active="main")
    hg_repo.set_tags([("v1.0", node("abc123"))])
    _ = hg_repo.write("hgrc", "[paths]\ndefault = https://hg.example.com/repo\n")
    return hg_repo


class TestStatusCommand:
    def test_json_output(
        self,
        populated: HgRepo,
        repostate_cli_with_exit_code: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = repostate_cli_with_exit_code("status", str(populated.path), "--format", "json")

        assert code == ExitCode.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["kind"] == "hg"
        assert data["root"] == str(populated.path.resolve())
        assert data["current_branch"] == "feature"
        assert data["current_revision"] == node("def456")
        assert data["state"] == "normal"
        assert data["branches"]["feature"] == [node("def456")]
        assert data["bookmarks"] == [{"name": "main", "hash": node("abc123")}]
        assert data["current_bookmark"] == "main"
        assert data["tags"] == [{"name": "v1.0", "hash": node("abc123")}]
        assert data["open_branches"] == ["default", "feature"]
        assert data["default_path"] == "https://hg.example.com/repo"

    def test_text_output(
        self,
        populated: HgRepo,
        repostate_cli_with_exit_code: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = repostate_cli_with_exit_code("status", str(populated.path))

        assert code == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "Branch:   feature" in out
        assert f"Revision: {node('def456')}" in out
        assert "Bookmark: main" in out
        assert "* feature" in out
        assert "old (closed)" in out
        assert "v1.0" in out
        assert "Default path: https://hg.example.com/repo" in out

    def test_empty_repository(
        self,
        hg_repo: HgRepo,
        repostate_cli_with_exit_code: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = repostate_cli_with_exit_code("status", str(hg_repo.path))

        assert code == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "Branch:   default" in out
        assert "(no commits)" in out

    def test_not_found(
        self,
        tmp_path: Path,
        mocker: MockerFixture,
        repostate_cli_with_exit_code: Callable[..., int],
    ) -> None:
        _ = mocker.patch("repostate.repository._discovery._root_at", return_value=None)

        code = repostate_cli_with_exit_code("status", str(tmp_path))

        assert code == ExitCode.NOT_FOUND

    def test_unreadable_metadata(
        self,
        hg_repo: HgRepo,
        repostate_cli_with_exit_code: Callable[..., int],
    ) -> None:
        _ = hg_repo.write("dirstate", b"\x00\x01")

        code = repostate_cli_with_exit_code("status", str(hg_repo.path))

        assert code == ExitCode.IO_ERROR


class TestWatchCommand:
    def test_prints_changes(
        self,
        populated: HgRepo,
        mocker: MockerFixture,
        repostate_cli_with_exit_code: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        def _one_switch(*_paths: Path, **_kwargs: object) -> Iterator[set[tuple[Change, str]]]:
            populated.set_branch("stable")
            yield {(Change.modified, str(populated.hg_dir / "branch"))}

        _ = mocker.patch("watchfiles.watch", side_effect=_one_switch)

        code = repostate_cli_with_exit_code("watch", str(populated.path))

        assert code == ExitCode.SUCCESS
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith(f"watching {populated.path.resolve()}: feature")
        assert any(line.startswith("changed: ") and ": stable " in line for line in lines)

    def test_interrupt_exits_cleanly(
        self,
        hg_repo: HgRepo,
        mocker: MockerFixture,
        repostate_cli_with_exit_code: Callable[..., int],
    ) -> None:
        _ = mocker.patch("watchfiles.watch", side_effect=KeyboardInterrupt)

        code = repostate_cli_with_exit_code("watch", str(hg_repo.path))

        assert code == ExitCode.SUCCESS
