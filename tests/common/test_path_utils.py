"""Tests for path utilities."""

import os
import unicodedata
from pathlib import Path

import pytest

from treepack.common.path_utils import is_within, join_member_name, normalize_path

windows_only = pytest.mark.skipif(os.sep != "\\", reason="backslash is a filename character on this host")
posix_only = pytest.mark.skipif(os.sep == "\\", reason="backslash is a separator on this host")


class TestNormalizePath:
    """Tests for normalize_path function."""

    @windows_only
    def test_host_separators_become_forward_slashes(self):
        assert normalize_path(r"rc\alpha\file-b.txt") == "rc/alpha/file-b.txt"

    @posix_only
    def test_backslash_is_kept_on_posix(self):
        """A backslash is an ordinary filename character here."""
        assert normalize_path(r"rc\alpha\file-b.txt") == r"rc\alpha\file-b.txt"

    def test_decomposed_unicode_is_preserved(self):
        decomposed = unicodedata.normalize('NFD', "café/résumé.txt")

        result = normalize_path(decomposed)

        assert result == decomposed
        assert result != unicodedata.normalize('NFC', decomposed)

    def test_path_input(self):
        assert normalize_path(Path("rc/alpha")) == "rc/alpha"

    def test_already_normalized(self):
        assert normalize_path("rc/file-a.txt") == "rc/file-a.txt"


class TestJoinMemberName:
    """Tests for join_member_name function."""

    def test_file_name(self):
        assert join_member_name("rc", "alpha", "file-b.txt") == "rc/alpha/file-b.txt"

    def test_directory_name_gets_one_trailing_slash(self):
        assert join_member_name("rc", "alpha/", directory=True) == "rc/alpha/"

    def test_empty_and_separator_segments_dropped(self):
        assert join_member_name("rc", "", "/alpha//", "bravo") == "rc/alpha/bravo"

    @windows_only
    def test_backslash_segments(self):
        assert join_member_name("rc\\alpha", "file.txt") == "rc/alpha/file.txt"

    @posix_only
    def test_backslash_stays_in_segment(self):
        assert join_member_name("rc", "a\\b.txt") == "rc/a\\b.txt"

    def test_single_segment(self):
        assert join_member_name("file-e.txt") == "file-e.txt"
        assert join_member_name("rc", directory=True) == "rc/"


class TestIsWithin:
    """Tests for is_within function."""

    def test_root_itself(self, tmp_path):
        assert is_within(tmp_path, tmp_path)

    def test_descendant(self, tmp_path):
        assert is_within(tmp_path, tmp_path / "a" / "b.txt")

    def test_sibling_with_common_prefix(self, tmp_path):
        assert not is_within(tmp_path / "out", tmp_path / "out2" / "file.txt")

    def test_parent(self, tmp_path):
        assert not is_within(tmp_path / "out", tmp_path)
