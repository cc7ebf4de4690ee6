"""Archive extraction into a directory tree with path containment checks."""

import logging
import shutil
import tarfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Literal, Optional

from treepack.common import LogContext

from .config import ArchiveConfig, DEFAULT_CHUNK_SIZE, ExtractionConfig
from .errors import ArchiveIOError, FormatError, PathTraversalError
from .models import ArchiveEntry, ArchiveFormat, ArchiveHandle
from .reader import ArchiveReader, open_reader
from .sanitizer import PathSanitizer

logger = logging.getLogger(__name__)

TraversalPolicy = Literal["abort", "skip"]


@dataclass
class ExtractionResult:
    """Outcome of one extraction.

    Attributes:
        out_dir: Resolved output directory
        directories: Directories created or confirmed, in archive order
        files: Files written, in archive order
        skipped: Member name -> reason, for entries that were not extracted
    """
    out_dir: Path
    directories: List[Path] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def total_entries(self) -> int:
        return len(self.directories) + len(self.files) + len(self.skipped)


class Extractor:
    """Materializes archive entries under an output directory.

    Each destination is resolved through :class:`PathSanitizer` before anything
    is written. Files already written stay in place when a later entry fails.
    """

    def __init__(
        self,
        out_dir: Path,
        on_traversal: TraversalPolicy = "abort",
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        """Initialize extractor.

        Args:
            out_dir: Directory to extract into; created if missing
            on_traversal: "abort" raises on an escaping member, "skip" records it and continues
            chunk_size: Buffer size for streaming file content
        """
        self.out_dir = Path(out_dir)
        self.on_traversal = on_traversal
        self.chunk_size = chunk_size

    def extract(self, reader: ArchiveReader) -> ExtractionResult:
        """Extract every entry of an open reader.

        Args:
            reader: Opened archive reader

        Returns:
            Record of what was written and skipped

        Raises:
            PathTraversalError: If a member escapes the output directory (abort policy)
            ArchiveIOError: If writing to the filesystem fails
            FormatError: If entry content is corrupt
        """
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(
                f"Cannot create output directory {self.out_dir}: {e}", path=str(self.out_dir)
            ) from e

        sanitizer = PathSanitizer(self.out_dir)
        result = ExtractionResult(out_dir=sanitizer.root)

        for entry in reader.entries():
            try:
                destination = sanitizer.resolve(entry.relative_path)
            except PathTraversalError as e:
                if self.on_traversal == "abort":
                    logger.error(f"Aborting extraction: {e}")
                    raise
                logger.warning(f"Skipping unsafe path: {entry.relative_path}")
                result.skipped[entry.relative_path] = e.message
                continue

            if entry.is_dir:
                self._make_directory(destination)
                result.directories.append(destination)
            else:
                self._write_file(reader, entry, destination)
                result.files.append(destination)

        if result.skipped:
            logger.warning(f"Skipped {len(result.skipped)} unsafe entries")

        return result

    def _make_directory(self, destination: Path) -> None:
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(
                f"Cannot create directory {destination}: {e}", path=str(destination)
            ) from e
        logger.debug(f"Created directory {destination}")

    def _write_file(self, reader: ArchiveReader, entry: ArchiveEntry, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with reader.open_entry(entry) as source, open(destination, 'wb') as target:
                shutil.copyfileobj(source, target, self.chunk_size)
        except (zipfile.BadZipFile, tarfile.TarError) as e:
            # Raised mid-stream on CRC mismatch or truncated data
            raise FormatError(
                f"Corrupt content for {entry.relative_path}: {e}", entry=entry.relative_path
            ) from e
        except OSError as e:
            raise ArchiveIOError(
                f"Failed to extract {entry.relative_path} to {destination}: {e}",
                entry=entry.relative_path,
                path=str(destination),
            ) from e

        logger.debug(f"Extracted {entry.relative_path} ({entry.uncompressed_size} bytes)")


def extract(
    archive_handle: ArchiveHandle,
    out_dir: Path | str,
    archive_format: ArchiveFormat | str,
    config: Optional[ExtractionConfig] = None,
    archive_config: Optional[ArchiveConfig] = None
) -> ExtractionResult:
    """Extract an archive into ``out_dir``.

    No entry is ever written outside ``out_dir``. Extraction is not atomic:
    callers that need all-or-nothing behaviour should extract into a fresh
    temporary directory and move it into place on success.

    Args:
        archive_handle: Archive path or readable binary file object
        out_dir: Output directory; created if missing
        archive_format: ``ArchiveFormat`` or its string value
        config: Optional extraction settings (traversal policy)
        archive_config: Optional archive settings (buffer size, symlink policy)

    Returns:
        Record of directories and files written and entries skipped
    """
    extraction = config or ExtractionConfig()
    settings = archive_config or ArchiveConfig()
    reader = open_reader(archive_handle, archive_format, settings)
    extractor = Extractor(
        Path(out_dir),
        on_traversal=extraction.on_traversal,
        chunk_size=settings.chunk_size,
    )

    with LogContext(logger, out_dir=str(out_dir), format=reader.format.value):
        logger.info(f"Extracting {reader.format.value} archive to {out_dir}")
        with reader:
            result = extractor.extract(reader)
        logger.info(
            f"Extraction complete: {len(result.files)} files, "
            f"{len(result.directories)} directories, {len(result.skipped)} skipped"
        )

    return result
