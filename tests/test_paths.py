"""Tests for PathMapper."""

import pytest

from dropbox_git_sync.utils.paths import PathMapper


class TestNormalize:
    """Test path normalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("/notes/a.txt", "notes/a.txt"),
        ("notes\\sub\\a.txt", "notes/sub/a.txt"),
        ("//notes///a.txt", "notes/a.txt"),
        ("\\\\notes\\a.txt", "notes/a.txt"),
        ("a.txt", "a.txt"),
        ("/", ""),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert PathMapper.normalize(raw) == expected

    @pytest.mark.parametrize("raw", [
        "/notes/a.txt", "//x//y/", "\\a\\\\b", "plain", "/", "", "///",
    ])
    def test_normalize_is_idempotent(self, raw):
        once = PathMapper.normalize(raw)
        assert PathMapper.normalize(once) == once


class TestSegments:
    """Test first segment and group stripping."""

    def test_first_segment(self):
        assert PathMapper.first_segment("/foo/bar.txt") == "foo"
        assert PathMapper.first_segment("/foo") == "foo"

    def test_first_segment_without_leading_separator(self):
        assert PathMapper.first_segment("bar.txt") == ""
        assert PathMapper.first_segment("foo/bar.txt") == ""

    def test_first_segment_empty(self):
        assert PathMapper.first_segment("") == ""
        assert PathMapper.first_segment("/") == ""

    def test_strip_group(self):
        assert PathMapper.strip_group("/notes/sub/a.txt") == "sub/a.txt"
        assert PathMapper.strip_group("/notes/a.txt") == "a.txt"
        assert PathMapper.strip_group("/notes") == ""
        assert PathMapper.strip_group("") == ""


class TestBranchMapping:
    """Test group <-> branch mapping."""

    def test_group_to_branch(self):
        assert PathMapper.group_to_branch("/notes") == "notes"
        assert PathMapper.group_to_branch("notes") == "notes"

    def test_branch_to_group(self):
        assert PathMapper.branch_to_group("notes") == "/notes"
        assert PathMapper.branch_to_group("/notes") == "/notes"

    @pytest.mark.parametrize("branch", ["notes", "feature/x", "a.b-c", ""])
    def test_round_trip_on_normalized_branches(self, branch):
        assert PathMapper.group_to_branch(PathMapper.branch_to_group(branch)) == branch


class TestIsUnder:
    """Test subtree filtering."""

    def test_path_under_prefix(self):
        assert PathMapper.is_under("review/x.txt", "review")
        assert PathMapper.is_under("/review/sub/x.txt", "review/")
        assert PathMapper.is_under("review\\x.txt", "/review")

    def test_sibling_with_common_prefix_is_not_under(self):
        assert not PathMapper.is_under("reviewed/x.txt", "review")
        assert not PathMapper.is_under("other/y.txt", "review")

    def test_prefix_itself_is_not_under(self):
        assert not PathMapper.is_under("review", "review")

    def test_empty_prefix_matches_everything(self):
        assert PathMapper.is_under("any/file.txt", "")
        assert not PathMapper.is_under("", "")

    def test_relative_to(self):
        assert PathMapper.relative_to("review/sub/x.txt", "review") == "sub/x.txt"
        assert PathMapper.relative_to("x.txt", "") == "x.txt"


class TestComposeRemotePath:
    """Test upload target composition."""

    def test_compose(self):
        assert PathMapper.compose_remote_path("notes", "x.txt") == "/notes/x.txt"

    def test_compose_normalizes_parts(self):
        assert PathMapper.compose_remote_path("/notes", "sub\\x.txt") == "/notes/sub/x.txt"


def test_matches_extension():
    assert PathMapper.matches_extension("a.txt", [".txt", ".md"])
    assert not PathMapper.matches_extension("a.txt.bak", [".txt"])
    assert not PathMapper.matches_extension("a.txt", [])
