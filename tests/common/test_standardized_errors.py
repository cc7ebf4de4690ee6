"""Tests for standardized error handling."""

import pytest

from treepack.archiver.errors import (
    ArchiveError, ArchiveIOError, FormatError, NotFoundError,
    PathTraversalError, UnsupportedOperationError
)
from treepack.common import ConfigurationError, TreepackError


class TestStandardizedErrors:
    """Test standardized error types."""

    def test_base_error(self):
        """Base error carries message and context."""
        error = TreepackError("Test error", path="/test/path")

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {"path": "/test/path"}

    def test_context_is_optional(self):
        assert TreepackError("plain").context == {}

    def test_configuration_error(self):
        error = ConfigurationError("Bad config", path="config.toml")

        assert isinstance(error, TreepackError)
        assert error.context == {"path": "config.toml"}

    @pytest.mark.parametrize("error_class", [
        NotFoundError, ArchiveIOError, FormatError, PathTraversalError, UnsupportedOperationError
    ])
    def test_archive_error_hierarchy(self, error_class):
        error = error_class("Failed", member="rc/file-a.txt")

        assert isinstance(error, ArchiveError)
        assert isinstance(error, TreepackError)
        assert error.context == {"member": "rc/file-a.txt"}

    def test_errors_are_catchable_by_base(self):
        with pytest.raises(TreepackError):
            raise PathTraversalError("escape", member="../evil.txt")

    def test_chained_cause(self):
        try:
            try:
                raise OSError("disk full")
            except OSError as e:
                raise ArchiveIOError("Failed to write") from e
        except ArchiveIOError as error:
            assert isinstance(error.__cause__, OSError)
