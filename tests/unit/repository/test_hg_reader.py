"""Unit tests for the Mercurial metadata reader."""

import pytest

from repostate.exceptions import MetadataUnreadableError
from repostate.repository import (
    MercurialMetadataReader,
    NameWithHash,
    RepositoryState,
)
from tests.conftest import NULL, HgRepo, node


@pytest.fixture
def reader(hg_repo: HgRepo) -> MercurialMetadataReader:
    return MercurialMetadataReader(hg_repo.root)


# =============================================================================
# Empty and missing metadata
# =============================================================================


class TestEmptyRepository:
    def test_reads_typed_empty_values(self, reader: MercurialMetadataReader) -> None:
        snapshot = reader.read()

        assert snapshot.current_branch == "default"
        assert snapshot.current_revision is None
        assert snapshot.state is RepositoryState.NORMAL
        assert dict(snapshot.branches) == {}
        assert snapshot.bookmarks == ()
        assert snapshot.current_bookmark is None
        assert snapshot.tags == ()
        assert snapshot.local_tags == ()

    def test_default_branch(self, reader: MercurialMetadataReader) -> None:
        assert reader.default_branch == "default"

    def test_missing_hg_dir_raises(self, hg_repo: HgRepo) -> None:
        reader = MercurialMetadataReader(hg_repo.root)
        for child in sorted(hg_repo.hg_dir.rglob("*"), reverse=True):
            if child.is_file():
                child.unlink()
            else:
                child.rmdir()
        hg_repo.hg_dir.rmdir()

        with pytest.raises(MetadataUnreadableError) as exc_info:
            _ = reader.read()

        assert exc_info.value.path == hg_repo.hg_dir


# =============================================================================
# Dirstate
# =============================================================================


class TestDirstate:
    def test_reads_first_parent(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        hg_repo.set_parents(node("abc123"))
        assert reader.read().current_revision == node("abc123")

    def test_null_first_parent_is_none(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_parents(None)
        assert reader.read().current_revision is None

    def test_empty_dirstate_means_no_parents(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("dirstate", b"")
        assert reader.read().current_revision is None

    def test_truncated_dirstate_is_malformed(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("dirstate", bytes.fromhex(node("abc123"))[:10])

        with pytest.raises(MetadataUnreadableError, match="Truncated dirstate"):
            _ = reader.read()

    def test_reads_dirstate_v2_parents(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        first = bytes.fromhex(node("abc123")).ljust(32, b"\0")
        second = bytes.fromhex(NULL).ljust(32, b"\0")
        _ = hg_repo.write("dirstate", b"dirstate-v2\n" + first + second + b"docket")

        snapshot = reader.read()

        assert snapshot.current_revision == node("abc123")
        assert snapshot.state is RepositoryState.NORMAL


# =============================================================================
# Branch and state
# =============================================================================


class TestCurrentBranch:
    def test_reads_branch_file(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        hg_repo.set_branch("feature")
        assert reader.read().current_branch == "feature"

    def test_blank_branch_file_means_default(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("branch", "\n")
        assert reader.read().current_branch == "default"

    def test_branch_name_with_spaces(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_branch("release 1.0")
        assert reader.read().current_branch == "release 1.0"

    def test_invalid_utf8_is_unreadable(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("branch", b"\xff\xfe")
        with pytest.raises(MetadataUnreadableError, match="UTF-8"):
            _ = reader.read()


class TestState:
    def test_second_parent_means_merging(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_parents(node("abc123"), node("def456"))
        assert reader.read().state is RepositoryState.MERGING

    def test_merge_state_file_means_merging(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("merge/state", "x")
        assert reader.read().state is RepositoryState.MERGING

    def test_rebasestate_means_rebasing(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("rebasestate", "x")
        assert reader.read().state is RepositoryState.REBASING

    def test_graftstate_means_grafting(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("graftstate", "x")
        assert reader.read().state is RepositoryState.GRAFTING

    def test_rebase_wins_over_merge(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_parents(node("abc123"), node("def456"))
        _ = hg_repo.write("merge/state", "x")
        _ = hg_repo.write("rebasestate", "x")

        assert reader.read().state is RepositoryState.REBASING

    def test_graft_wins_over_merge(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("merge/state2", "x")
        _ = hg_repo.write("graftstate", "x")

        assert reader.read().state is RepositoryState.GRAFTING


# =============================================================================
# Branch heads
# =============================================================================


class TestBranches:
    def test_reads_branch2_cache(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        hg_repo.set_branch_heads(
            {"default": [node("a1"), node("a2")], "stable": [node("b1")]},
            closed=[node("b1")],
        )

        branches = reader.read().branches

        assert dict(branches) == {
            "default": frozenset({node("a1"), node("a2")}),
            "stable": frozenset({node("b1")}),
        }

    def test_reads_legacy_branchheads_cache(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write(
            "cache/branchheads",
            f"{NULL} 0\n{node('a1')} default\n{node('b1')} release 2\n",
        )

        branches = reader.read().branches

        assert dict(branches) == {
            "default": frozenset({node("a1")}),
            "release 2": frozenset({node("b1")}),
        }

    def test_served_cache_preferred_over_base(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("cache/branch2", f"{NULL} 0\n{node('c1')} o old\n")
        hg_repo.set_branch_heads({"new": [node("d1")]})

        assert set(reader.read().branches) == {"new"}

    def test_bad_state_column_is_malformed(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("cache/branch2-served", f"{NULL} 0\n{node('a1')} x default\n")

        with pytest.raises(MetadataUnreadableError, match="Malformed branch cache"):
            _ = reader.read()

    def test_bad_node_is_malformed(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("cache/branch2-served", f"{NULL} 0\nnot-a-node o default\n")

        with pytest.raises(MetadataUnreadableError, match="Malformed line"):
            _ = reader.read()


# =============================================================================
# Bookmarks and tags
# =============================================================================


class TestBookmarks:
    def test_reads_bookmarks_in_file_order(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_bookmarks({"zeta": node("a1"), "alpha": node("b1")})

        assert reader.read().bookmarks == (
            NameWithHash("zeta", node("a1")),
            NameWithHash("alpha", node("b1")),
        )

    def test_reads_current_bookmark(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_bookmarks({"main": node("a1")}, active="main")
        assert reader.read().current_bookmark == "main"

    def test_reads_active_bookmark_file(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("bookmarks.active", "topic\n")
        assert reader.read().current_bookmark == "topic"

    def test_empty_current_bookmark_is_none(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("bookmarks.current", "")
        assert reader.read().current_bookmark is None

    def test_missing_name_is_malformed(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("bookmarks", f"{node('a1')}\n")

        with pytest.raises(MetadataUnreadableError, match="Missing name"):
            _ = reader.read()


class TestTags:
    def test_reads_tag_cache_skipping_header(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_tags([("v1.0", node("a1")), ("v1.1", node("b1"))])

        assert reader.read().tags == (
            NameWithHash("v1.0", node("a1")),
            NameWithHash("v1.1", node("b1")),
        )

    def test_falls_back_to_hgtags(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        _ = (hg_repo.path / ".hgtags").write_text(
            f"{node('a1')} v1.0\n{node('b1')} v2.0\n", encoding="utf-8"
        )

        assert [t.name for t in reader.read().tags] == ["v1.0", "v2.0"]

    def test_later_hgtags_entry_wins(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = (hg_repo.path / ".hgtags").write_text(
            f"{node('a1')} v1.0\n{node('b1')} v1.0\n", encoding="utf-8"
        )

        assert reader.read().tags == (NameWithHash("v1.0", node("b1")),)

    def test_null_node_removes_tag(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = (hg_repo.path / ".hgtags").write_text(
            f"{node('a1')} v1.0\n{node('b1')} v2.0\n{NULL} v1.0\n", encoding="utf-8"
        )

        assert reader.read().tags == (NameWithHash("v2.0", node("b1")),)

    def test_comments_and_blank_lines_are_skipped(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("localtags", f"# local\n\n{node('a1')} wip\n")

        assert reader.read().local_tags == (NameWithHash("wip", node("a1")),)


# =============================================================================
# Repository config
# =============================================================================


class TestReadConfig:
    def test_missing_hgrc_gives_empty_config(self, reader: MercurialMetadataReader) -> None:
        config = reader.read_config()

        assert dict(config.paths) == {}
        assert config.default_path is None

    def test_reads_paths_section(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        _ = hg_repo.write(
            "hgrc",
            "[paths]\n"
            "default = https://hg.example.com/repo\n"
            "default-push = ssh://hg@example.com/repo\n"
            "Upstream = https://hg.example.com/upstream\n",
        )

        config = reader.read_config()

        assert config.default_path == "https://hg.example.com/repo"
        assert config.default_push_path == "ssh://hg@example.com/repo"
        assert config.paths["Upstream"] == "https://hg.example.com/upstream"

    def test_push_path_falls_back_to_default(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("hgrc", "[paths]\ndefault = /srv/repo\n")
        assert reader.read_config().default_push_path == "/srv/repo"

    def test_pushurl_sub_option(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        _ = hg_repo.write(
            "hgrc", "[paths]\ndefault = /srv/repo\ndefault:pushurl = /srv/push\n"
        )
        config = reader.read_config()

        assert config.default_path == "/srv/repo"
        assert config.default_push_path == "/srv/push"
        assert config.paths["default:pushurl"] == "/srv/push"

    def test_percent_signs_are_not_interpolated(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = hg_repo.write("hgrc", "[paths]\ndefault = https://example.com/a%20b\n")
        assert reader.read_config().default_path == "https://example.com/a%20b"

    def test_malformed_hgrc_raises(self, hg_repo: HgRepo, reader: MercurialMetadataReader) -> None:
        _ = hg_repo.write("hgrc", "default = /srv/repo\n")

        with pytest.raises(MetadataUnreadableError, match="Malformed Mercurial config"):
            _ = reader.read_config()


# =============================================================================
# Freshness
# =============================================================================


class TestReaderFreshness:
    def test_fresh_until_metadata_changes(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        hg_repo.set_parents(node("abc123"))
        _ = reader.read()
        assert reader.is_fresh() is True

        hg_repo.set_branch("feature")

        assert reader.is_fresh() is False

    def test_hgtags_edit_is_a_change(
        self, hg_repo: HgRepo, reader: MercurialMetadataReader
    ) -> None:
        _ = reader.read()

        _ = (hg_repo.path / ".hgtags").write_text(f"{node('a1')} v1\n", encoding="utf-8")

        assert reader.is_fresh() is False
