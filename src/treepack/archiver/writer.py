"""Archive creation: zip and tar writers fed by the source tree walker."""

import logging
import os
import stat
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from treepack.common import LogContext

from .config import ArchiveConfig, DEFAULT_CHUNK_SIZE
from .errors import ArchiveIOError, UnsupportedOperationError
from .models import ArchiveEntry, ArchiveFormat, ArchiveHandle, EntryKind
from .walker import PathWalker, WalkedPath

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_MODE = 0o755
DEFAULT_FILE_MODE = 0o644

# Earliest timestamp a zip header can store
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _zip_timestamp(modified_at: Optional[float]) -> Tuple[int, int, int, int, int, int]:
    date_time = time.localtime(time.time() if modified_at is None else modified_at)[:6]
    return max(date_time, ZIP_EPOCH)


def _copy_exact(source: BinaryIO, dest: BinaryIO, size: int, chunk_size: int) -> None:
    """Copy exactly ``size`` bytes, matching the size recorded in the entry header.

    Content appended to the source after it was stat'ed is not copied.

    Raises:
        OSError: If the source ends early
    """
    remaining = size
    while remaining > 0:
        chunk = source.read(min(chunk_size, remaining))
        if not chunk:
            raise OSError(f"unexpected end of data: {remaining} of {size} bytes missing")
        dest.write(chunk)
        remaining -= len(chunk)


class ArchiveWriter(ABC):
    """Writes entries into an archive container, one at a time.

    Call :meth:`begin`, then :meth:`add_entry` per entry, then :meth:`finish`,
    or use the writer as a context manager. An archive whose writer was never
    finished is truncated and unreadable.
    """

    format: ArchiveFormat
    writes_directories = True

    def __init__(self, archive_handle: ArchiveHandle, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Initialize writer.

        Args:
            archive_handle: Destination path or writable binary file object
            chunk_size: Buffer size for streaming file content
        """
        self.archive_handle = archive_handle
        self.chunk_size = chunk_size
        self.entries_written = 0
        self._is_open = False

    def begin(self) -> None:
        """Open the archive container for writing."""
        if self._is_open:
            raise UnsupportedOperationError("Archive writer already started")
        try:
            self._open_container()
        except OSError as e:
            raise ArchiveIOError(f"Cannot open archive for writing: {e}") from e
        self._is_open = True

    def add_entry(self, entry: ArchiveEntry, content_reader: Optional[BinaryIO] = None) -> None:
        """Append one entry to the archive.

        Args:
            entry: Entry metadata; file entries must carry their size
            content_reader: Binary stream with the file content (file entries only)

        Raises:
            UnsupportedOperationError: If the writer is not open
            ArchiveIOError: If reading the content or writing the archive fails
        """
        if not self._is_open:
            raise UnsupportedOperationError(
                f"Archive writer is not open: cannot add {entry.relative_path}",
                entry=entry.relative_path,
            )
        if not entry.is_dir and content_reader is None:
            raise ValueError(f"File entry requires a content reader: {entry.relative_path}")

        if entry.is_dir and not self.writes_directories:
            logger.debug(f"Omitting directory entry {entry.relative_path}")
            return

        try:
            if entry.is_dir:
                self._write_directory(entry)
            else:
                self._write_file(entry, content_reader)
        except OSError as e:
            raise ArchiveIOError(
                f"Failed to write {entry.relative_path}: {e}", entry=entry.relative_path
            ) from e

        self.entries_written += 1
        logger.debug(f"Added {entry.kind.value} entry {entry.relative_path}")

    def finish(self) -> None:
        """Flush and close the archive container.

        A file object passed in by the caller stays open.
        """
        if not self._is_open:
            return
        self._is_open = False
        try:
            self._close_container()
        except OSError as e:
            raise ArchiveIOError(f"Failed to finalize archive: {e}") from e

    def __enter__(self) -> "ArchiveWriter":
        self.begin()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.finish()

    @abstractmethod
    def _open_container(self) -> None:
        ...

    @abstractmethod
    def _write_directory(self, entry: ArchiveEntry) -> None:
        ...

    @abstractmethod
    def _write_file(self, entry: ArchiveEntry, content_reader: BinaryIO) -> None:
        ...

    @abstractmethod
    def _close_container(self) -> None:
        ...


class ZipArchiveWriter(ArchiveWriter):
    """Zip writer: deflate-compressed files, directory markers, unix permissions."""

    format = ArchiveFormat.ZIP

    def _open_container(self) -> None:
        self._zip = zipfile.ZipFile(self.archive_handle, mode='w', compression=zipfile.ZIP_DEFLATED)

    def _write_directory(self, entry: ArchiveEntry) -> None:
        info = zipfile.ZipInfo(entry.relative_path, date_time=_zip_timestamp(entry.modified_at))
        mode = entry.permission_bits if entry.permission_bits is not None else DEFAULT_DIRECTORY_MODE
        # High word holds st_mode; 0x10 is the MS-DOS directory flag
        info.external_attr = ((stat.S_IFDIR | mode) & 0xFFFF) << 16 | 0x10
        # ZipFile.mkdir only fills these in when given a name, not a ZipInfo
        info.CRC = 0
        info.compress_size = 0
        info.file_size = 0
        self._zip.mkdir(info)

    def _write_file(self, entry: ArchiveEntry, content_reader: BinaryIO) -> None:
        info = zipfile.ZipInfo(entry.relative_path, date_time=_zip_timestamp(entry.modified_at))
        info.compress_type = zipfile.ZIP_DEFLATED
        mode = entry.permission_bits if entry.permission_bits is not None else DEFAULT_FILE_MODE
        info.external_attr = ((stat.S_IFREG | mode) & 0xFFFF) << 16
        # Lets zipfile decide up front whether the entry needs zip64 headers
        info.file_size = entry.uncompressed_size

        with self._zip.open(info, mode='w') as dest:
            _copy_exact(content_reader, dest, entry.uncompressed_size, self.chunk_size)

    def _close_container(self) -> None:
        self._zip.close()


class TarArchiveWriter(ArchiveWriter):
    """Uncompressed POSIX ustar writer."""

    format = ArchiveFormat.TAR

    def __init__(
        self,
        archive_handle: ArchiveHandle,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        directory_entries: bool = True
    ):
        """Initialize writer.

        Args:
            archive_handle: Destination path or writable binary file object
            chunk_size: Buffer size for streaming file content
            directory_entries: Write directory headers; False writes files only
        """
        super().__init__(archive_handle, chunk_size)
        self.writes_directories = directory_entries

    def _open_container(self) -> None:
        if isinstance(self.archive_handle, (str, os.PathLike)):
            self._tar = tarfile.open(
                name=self.archive_handle, mode='w', format=tarfile.USTAR_FORMAT
            )
        else:
            self._tar = tarfile.open(
                fileobj=self.archive_handle, mode='w', format=tarfile.USTAR_FORMAT
            )
        self._tar.copybufsize = self.chunk_size

    def _header(self, entry: ArchiveEntry, default_mode: int) -> tarfile.TarInfo:
        info = tarfile.TarInfo(entry.relative_path)
        info.mode = entry.permission_bits if entry.permission_bits is not None else default_mode
        info.mtime = int(time.time() if entry.modified_at is None else entry.modified_at)
        return info

    def _add(self, info: tarfile.TarInfo, content_reader: Optional[BinaryIO] = None) -> None:
        try:
            self._tar.addfile(info, content_reader)
        except ValueError as e:
            # ustar caps names at 100 bytes (+155 byte prefix)
            raise UnsupportedOperationError(
                f"Cannot store {info.name} in a ustar header: {e}", entry=info.name
            ) from e

    def _write_directory(self, entry: ArchiveEntry) -> None:
        info = self._header(entry, DEFAULT_DIRECTORY_MODE)
        info.type = tarfile.DIRTYPE
        self._add(info)

    def _write_file(self, entry: ArchiveEntry, content_reader: BinaryIO) -> None:
        info = self._header(entry, DEFAULT_FILE_MODE)
        info.type = tarfile.REGTYPE
        info.size = entry.uncompressed_size
        self._add(info, content_reader)

    def _close_container(self) -> None:
        self._tar.close()


def open_writer(
    archive_handle: ArchiveHandle,
    archive_format: ArchiveFormat | str,
    config: Optional[ArchiveConfig] = None
) -> ArchiveWriter:
    """Create an unopened writer for the given format."""
    settings = config or ArchiveConfig()
    archive_format = ArchiveFormat.coerce(archive_format)

    if archive_format is ArchiveFormat.ZIP:
        return ZipArchiveWriter(archive_handle, chunk_size=settings.chunk_size)
    return TarArchiveWriter(
        archive_handle,
        chunk_size=settings.chunk_size,
        directory_entries=settings.tar_directory_entries,
    )


def entry_for(walked: WalkedPath) -> ArchiveEntry:
    """Build archive entry metadata for a walked source path.

    Raises:
        ArchiveIOError: If the path vanished or cannot be stat'ed
    """
    try:
        st = walked.absolute_path.stat()
    except OSError as e:
        raise ArchiveIOError(
            f"Cannot stat {walked.absolute_path}: {e}", path=str(walked.absolute_path)
        ) from e

    return ArchiveEntry(
        relative_path=walked.relative_path,
        kind=walked.kind,
        uncompressed_size=st.st_size if walked.kind is EntryKind.FILE else 0,
        permission_bits=stat.S_IMODE(st.st_mode),
        modified_at=st.st_mtime,
    )


def _archive_path(archive_handle: ArchiveHandle) -> Optional[Path]:
    """Resolved destination path, or None for caller-supplied file objects."""
    if isinstance(archive_handle, (str, os.PathLike)):
        return Path(os.fspath(archive_handle)).resolve()
    return None


def create_archive(
    source_path: Path | str,
    archive_handle: ArchiveHandle,
    archive_format: ArchiveFormat | str,
    config: Optional[ArchiveConfig] = None
) -> None:
    """Package a file or directory tree into an archive.

    A single file becomes one entry named by its base name. A directory becomes
    one directory entry per directory (the root included) plus one file entry
    per regular file, every name prefixed by the root directory's own name.
    An archive path inside the source tree is left out of the archive.

    Args:
        source_path: File or directory to archive
        archive_handle: Destination path or writable binary file object
        archive_format: ``ArchiveFormat`` or its string value
        config: Optional archive settings

    Raises:
        NotFoundError: If the source is neither a file nor a directory
        ArchiveIOError: On read/write failures; the archive must be discarded
        UnsupportedOperationError: On unsupported formats, symlink policy violations
            or when the source file is the archive itself
    """
    settings = config or ArchiveConfig()
    source_path = Path(source_path)
    walker = PathWalker(source_path, sort_entries=settings.sort_entries, symlinks=settings.symlinks)
    walker.check_root()

    archive_path = _archive_path(archive_handle)
    if archive_path is not None and walker.root.is_file() and walker.root.resolve() == archive_path:
        raise UnsupportedOperationError(
            f"Source file is the archive being written: {source_path}", path=str(source_path)
        )

    writer = open_writer(archive_handle, archive_format, settings)

    with LogContext(logger, source=str(source_path), format=writer.format.value):
        logger.info(f"Creating {writer.format.value} archive from {source_path}")
        files = 0

        with writer:
            for walked in walker:
                if walked.kind is EntryKind.DIRECTORY:
                    writer.add_entry(entry_for(walked))
                    continue

                if archive_path is not None and walked.absolute_path.resolve() == archive_path:
                    logger.warning(f"Skipping the archive being written: {walked.absolute_path}")
                    continue

                entry = entry_for(walked)
                try:
                    with open(walked.absolute_path, "rb") as content:
                        writer.add_entry(entry, content)
                except OSError as e:
                    raise ArchiveIOError(
                        f"Cannot read {walked.absolute_path}: {e}", path=str(walked.absolute_path)
                    ) from e
                files += 1

        logger.info(
            f"Archive created: {writer.entries_written} entries ({files} files) from {source_path}"
        )
