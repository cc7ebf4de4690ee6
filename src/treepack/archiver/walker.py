"""Iterative enumeration of a source file or directory tree."""

import logging
from pathlib import Path
from typing import Iterator, List, Literal, NamedTuple

from treepack.common import join_member_name

from .errors import ArchiveIOError, NotFoundError, UnsupportedOperationError
from .models import EntryKind

logger = logging.getLogger(__name__)

SymlinkPolicy = Literal["skip", "error"]


class WalkedPath(NamedTuple):
    """A file or directory discovered under the source root.
    
    Attributes:
        absolute_path: Absolute location on disk
        relative_path: Archive member name, prefixed with the root's own name
        kind: File or directory
    """
    absolute_path: Path
    relative_path: str
    kind: EntryKind


class PathWalker:
    """Enumerates a source tree with an explicit stack of pending directories.
    
    A single file yields one item named by its base name. A directory yields
    itself first, then its files, then its subdirectories depth-first (last
    pushed, first visited). Symlinks below the root are never followed.
    """

    def __init__(
        self,
        root: Path,
        sort_entries: bool = True,
        symlinks: SymlinkPolicy = "skip"
    ):
        """Initialize walker.
        
        Args:
            root: File or directory to enumerate
            sort_entries: Visit children in name order for reproducible output
            symlinks: "skip" logs and ignores symlinks, "error" rejects them
        """
        self.root = Path(root).absolute()
        self.sort_entries = sort_entries
        self.symlinks = symlinks

    def root_name(self) -> str:
        """Name used as the top-level archive path segment."""
        name = self.root.name
        if name in ('', '.', '..'):
            name = self.root.resolve().name
        if not name:
            raise UnsupportedOperationError(
                f"Cannot archive a filesystem root: {self.root}", path=str(self.root)
            )
        return name

    def check_root(self) -> None:
        """Fail early if the root is neither a file nor a directory.
        
        Raises:
            NotFoundError: If the root does not exist or is a special file
        """
        if not (self.root.is_file() or self.root.is_dir()):
            raise NotFoundError(
                f"Source is neither a file nor a directory: {self.root}", path=str(self.root)
            )

    def __iter__(self) -> Iterator[WalkedPath]:
        return self.walk()

    def walk(self) -> Iterator[WalkedPath]:
        """Yield every file and directory reachable from the root.
        
        Raises:
            NotFoundError: If the root is neither a file nor a directory
            ArchiveIOError: If a directory cannot be read during the walk
            UnsupportedOperationError: On a symlink under the "error" policy
        """
        self.check_root()
        if self.root.is_file():
            yield WalkedPath(self.root, join_member_name(self.root_name()), EntryKind.FILE)
            return

        root_name = self.root_name()
        pending: List[Path] = [self.root]

        while pending:
            directory = pending.pop()
            relative = directory.relative_to(self.root)
            yield WalkedPath(
                directory,
                join_member_name(root_name, *relative.parts, directory=True),
                EntryKind.DIRECTORY,
            )

            subdirectories = []
            for child in self._children(directory):
                if child.is_symlink():
                    self._handle_symlink(child)
                    continue

                if child.is_dir():
                    subdirectories.append(child)
                elif child.is_file():
                    yield WalkedPath(
                        child,
                        join_member_name(root_name, *relative.parts, child.name),
                        EntryKind.FILE,
                    )
                else:
                    logger.debug(f"Skipping non-regular file: {child}")

            # Reversed so the first name in order is popped first
            pending.extend(reversed(subdirectories))

    def _children(self, directory: Path) -> List[Path]:
        try:
            children = list(directory.iterdir())
        except OSError as e:
            raise ArchiveIOError(
                f"Cannot read directory {directory}: {e}", path=str(directory)
            ) from e

        if self.sort_entries:
            children.sort(key=lambda p: p.name)
        return children

    def _handle_symlink(self, path: Path) -> None:
        if self.symlinks == "error":
            raise UnsupportedOperationError(
                f"Symlinks are not supported: {path}", path=str(path)
            )
        logger.warning(f"Skipping symlink: {path}")
