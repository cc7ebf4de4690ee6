"""Packaging of files and directory trees into zip/tar archives, listing and safe extraction."""

from .config import ArchiveConfig, ExtractionConfig, TreepackConfig
from .errors import (
    ArchiveError, NotFoundError, ArchiveIOError, FormatError,
    PathTraversalError, UnsupportedOperationError
)
from .extractor import Extractor, ExtractionResult, extract
from .models import ArchiveEntry, ArchiveFormat, EntryKind, EntrySummary, detect_format
from .reader import ArchiveReader, ZipArchiveReader, TarArchiveReader, list_contents, open_reader
from .sanitizer import PathSanitizer
from .walker import PathWalker, WalkedPath
from .writer import ArchiveWriter, ZipArchiveWriter, TarArchiveWriter, create_archive, open_writer

__all__ = [
    'ArchiveConfig',
    'ExtractionConfig',
    'TreepackConfig',
    'ArchiveError',
    'NotFoundError',
    'ArchiveIOError',
    'FormatError',
    'PathTraversalError',
    'UnsupportedOperationError',
    'Extractor',
    'ExtractionResult',
    'extract',
    'ArchiveEntry',
    'ArchiveFormat',
    'EntryKind',
    'EntrySummary',
    'detect_format',
    'ArchiveReader',
    'ZipArchiveReader',
    'TarArchiveReader',
    'list_contents',
    'open_reader',
    'PathSanitizer',
    'PathWalker',
    'WalkedPath',
    'ArchiveWriter',
    'ZipArchiveWriter',
    'TarArchiveWriter',
    'create_archive',
    'open_writer',
]
