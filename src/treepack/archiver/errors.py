"""Archive-specific errors."""

from treepack.common import TreepackError


class ArchiveError(TreepackError):
    """Archive processing failed."""
    pass


class NotFoundError(ArchiveError):
    """Source path is neither a regular file nor a directory."""
    pass


class ArchiveIOError(ArchiveError):
    """Underlying filesystem or stream read/write failed."""
    pass


class FormatError(ArchiveError):
    """Archive header or structure is invalid."""
    pass


class PathTraversalError(ArchiveError):
    """Extraction target would escape the output directory."""
    pass


class UnsupportedOperationError(ArchiveError):
    """Format or feature combination is not supported."""
    pass
