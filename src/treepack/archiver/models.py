"""Archive data model: formats, entry kinds, entries and listing summaries."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import BinaryIO, Optional, Tuple, Union

from .errors import UnsupportedOperationError

# Archive location: a filesystem path or an open binary file object owned by the caller
ArchiveHandle = Union[str, os.PathLike, BinaryIO]


class ArchiveFormat(Enum):
    """Supported archive formats."""
    ZIP = "zip"
    TAR = "tar"

    @classmethod
    def coerce(cls, value: "ArchiveFormat | str") -> "ArchiveFormat":
        """Accept an ``ArchiveFormat`` or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedOperationError(
                f"Unsupported archive format: {value}", format=str(value)
            ) from None


class EntryKind(Enum):
    """Kind of an archive entry."""
    FILE = "file"
    DIRECTORY = "directory"


# Map file extensions to archive formats; None marks recognised but unsupported
EXTENSION_MAP = {
    '.tar.gz': None,
    '.tgz': None,
    '.tar.bz2': None,
    '.tbz2': None,
    '.tar.xz': None,
    '.zip': ArchiveFormat.ZIP,
    '.tar': ArchiveFormat.TAR,
}


def detect_format(path: PurePath | str) -> ArchiveFormat:
    """Detect archive format from the file name.
    
    Args:
        path: Archive path or file name
        
    Returns:
        Detected archive format
        
    Raises:
        UnsupportedOperationError: If the extension is compressed tar or unknown
    """
    name = PurePath(path).name.lower()

    # Compound extensions come first in EXTENSION_MAP
    for ext, fmt in EXTENSION_MAP.items():
        if name.endswith(ext):
            if fmt is None:
                raise UnsupportedOperationError(
                    f"Compressed tar archives are not supported: {name}", path=str(path)
                )
            return fmt

    raise UnsupportedOperationError(
        f"Cannot determine archive format from file name: {name}", path=str(path)
    )


@dataclass(frozen=True)
class ArchiveEntry:
    """One named unit within an archive.
    
    Attributes:
        relative_path: Forward-slash joined member name; directories end with '/'
        kind: File or directory
        uncompressed_size: Content size in bytes (0 for directories)
        compressed_size: Stored size, known only for zip file entries
        permission_bits: Unix permission bits, if recorded
        modified_at: POSIX modification timestamp, if known
    """
    relative_path: str
    kind: EntryKind
    uncompressed_size: int = 0
    compressed_size: Optional[int] = None
    permission_bits: Optional[int] = None
    modified_at: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.relative_path.strip('/'):
            raise ValueError("Archive entry path must not be empty")
        if self.is_dir != self.relative_path.endswith('/'):
            raise ValueError(
                f"Directory entries must end with '/' and file entries must not: "
                f"{self.relative_path!r} ({self.kind.value})"
            )

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def parts(self) -> Tuple[str, ...]:
        """Ordered path segments."""
        return tuple(part for part in self.relative_path.split('/') if part)


@dataclass(frozen=True)
class EntrySummary:
    """Listing line for one archive entry.
    
    ``str()`` renders the human-readable form. A zero-byte file and a directory
    marker render identically (just the name); use ``kind`` to tell them apart.
    """
    name: str
    kind: EntryKind
    size: int
    compressed_size: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: ArchiveEntry) -> "EntrySummary":
        return cls(
            name=entry.relative_path,
            kind=entry.kind,
            size=entry.uncompressed_size,
            compressed_size=entry.compressed_size,
        )

    def __str__(self) -> str:
        if self.size <= 0:
            return self.name
        if self.compressed_size is None:
            return f"{self.name} ({self.size} bytes)"
        return f"{self.name} ({self.size} bytes, {self.compressed_size} compressed)"
