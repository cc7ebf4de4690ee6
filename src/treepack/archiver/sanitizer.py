"""Containment checks for archive member paths during extraction."""

import logging
import posixpath
from pathlib import Path, PurePosixPath, PureWindowsPath

from treepack.common import is_within

from .errors import FormatError, PathTraversalError

logger = logging.getLogger(__name__)


class PathSanitizer:
    """Maps archive member names to destinations inside a target root.
    
    A name is checked twice. Its portable form, where backslashes count as
    separators, must not be absolute or climb above the root, so a member that
    would escape on a Windows host is rejected on every host. The destination
    built with host path rules is then checked on its canonical (resolved)
    path, so symlinks already present under the root cannot carry a write
    outside of it. On POSIX a backslash stays a filename character in the
    destination.
    """

    def __init__(self, root: Path):
        """Initialize sanitizer.
        
        Args:
            root: Directory that every destination must stay within
        """
        self.root = Path(root).resolve()

    def normalize(self, member_name: str) -> str:
        """Validate a member name and return its portable form.
        
        Args:
            member_name: Raw member name from the archive
            
        Returns:
            Member name with backslashes turned into forward slashes
            
        Raises:
            FormatError: If the name is empty or contains NUL bytes
            PathTraversalError: If the name is absolute or climbs above the root
        """
        if not member_name or '\x00' in member_name:
            raise FormatError(f"Invalid archive member name: {member_name!r}", member=member_name)

        name = member_name.replace('\\', '/')

        # "C:/x", "C:x" and "//server/share" are absolute or drive-relative on Windows
        if PurePosixPath(name).is_absolute() or PureWindowsPath(name).drive:
            raise PathTraversalError(
                f"Absolute path in archive: {member_name}", member=member_name
            )

        if posixpath.normpath(name).split('/')[0] == '..':
            raise PathTraversalError(
                f"Archive member escapes output directory: {member_name}",
                member=member_name,
                root=str(self.root),
            )

        return name

    def resolve(self, member_name: str) -> Path:
        """Compute the canonical destination for an archive member.
        
        Args:
            member_name: Raw member name from the archive
            
        Returns:
            Resolved destination path inside the root
            
        Raises:
            PathTraversalError: If the destination would escape the root
        """
        self.normalize(member_name)
        destination = (self.root / member_name).resolve()

        if not is_within(self.root, destination):
            raise PathTraversalError(
                f"Archive member escapes output directory: {member_name}",
                member=member_name,
                destination=str(destination),
                root=str(self.root),
            )

        logger.debug(f"Resolved {member_name} -> {destination}")
        return destination

    def is_safe(self, member_name: str) -> bool:
        """Check if a member can be extracted under the root."""
        try:
            self.resolve(member_name)
        except PathTraversalError:
            return False
        return True
