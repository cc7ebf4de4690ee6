"""Archive reading: open, enumerate and stream entries of zip and tar archives."""

import logging
import os
import stat
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, Iterator, List, Optional

from treepack.common import LogContext, normalize_path

from .config import ArchiveConfig
from .errors import ArchiveIOError, FormatError, UnsupportedOperationError
from .models import ArchiveEntry, ArchiveFormat, ArchiveHandle, EntryKind, EntrySummary
from .walker import SymlinkPolicy

logger = logging.getLogger(__name__)


class ArchiveReader(ABC):
    """Read-only view of an existing archive.

    Entries come back in on-disk order. Only regular files and directories are
    surfaced; links and special members are skipped or rejected according to
    the symlink policy.
    """

    format: ArchiveFormat

    def __init__(self, archive_handle: ArchiveHandle, symlinks: SymlinkPolicy = "skip"):
        """Initialize reader.

        Args:
            archive_handle: Archive path or readable, seekable binary file object
            symlinks: "skip" logs and ignores link members, "error" rejects them
        """
        self.archive_handle = archive_handle
        self.symlinks = symlinks
        self._members: Dict[str, Any] = {}
        self._entries: List[ArchiveEntry] = []
        self._is_open = False

    def open(self) -> "ArchiveReader":
        """Open the archive and validate its structure.

        Raises:
            FormatError: If the container is not a well-formed archive or repeats a member name
            ArchiveIOError: If the archive cannot be read
            UnsupportedOperationError: On a link member under the "error" policy
        """
        if self._is_open:
            return self
        self._open_container()
        self._is_open = True
        try:
            for member in self._iter_members():
                entry = self._entry_for(member)
                if entry is None:
                    continue
                if entry.relative_path in self._members:
                    raise FormatError(
                        f"Duplicate archive member: {entry.relative_path}",
                        member=entry.relative_path,
                    )
                self._members[entry.relative_path] = member
                self._entries.append(entry)
        except Exception:
            self.close()
            raise
        logger.debug(f"Opened {self.format.value} archive with {len(self._entries)} entries")
        return self

    def close(self) -> None:
        if not self._is_open:
            return
        self._is_open = False
        self._close_container()

    def __enter__(self) -> "ArchiveReader":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield archive entries in on-disk order."""
        self._require_open()
        yield from self._entries

    def open_entry(self, entry: ArchiveEntry) -> BinaryIO:
        """Open a file entry's content as a binary stream.

        Raises:
            ValueError: If the entry is a directory
            KeyError: If the entry does not belong to this archive
        """
        self._require_open()
        if entry.is_dir:
            raise ValueError(f"Directory entries have no content: {entry.relative_path}")
        return self._open_member(self._members[entry.relative_path])

    def list(self) -> List[EntrySummary]:
        """Summaries of all entries, in on-disk order."""
        return [EntrySummary.from_entry(entry) for entry in self.entries()]

    def _require_open(self) -> None:
        if not self._is_open:
            raise UnsupportedOperationError("Archive reader is not open")

    def _make_entry(self, raw_name: str, is_dir: bool, **fields: Any) -> ArchiveEntry:
        name = normalize_path(raw_name).rstrip('/')
        if is_dir:
            name += '/'
        try:
            return ArchiveEntry(
                relative_path=name,
                kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
                **fields,
            )
        except ValueError as e:
            raise FormatError(f"Invalid archive member {raw_name!r}: {e}", member=raw_name) from e

    def _reject_link(self, name: str, description: str) -> None:
        if self.symlinks == "error":
            raise UnsupportedOperationError(
                f"Unsupported {description} member in archive: {name}", member=name
            )
        logger.warning(f"Skipping {description} member: {name}")

    @abstractmethod
    def _open_container(self) -> None:
        ...

    @abstractmethod
    def _iter_members(self) -> Iterator[Any]:
        ...

    @abstractmethod
    def _entry_for(self, member: Any) -> Optional[ArchiveEntry]:
        ...

    @abstractmethod
    def _open_member(self, member: Any) -> BinaryIO:
        ...

    @abstractmethod
    def _close_container(self) -> None:
        ...


class ZipArchiveReader(ArchiveReader):
    """Zip reader reporting uncompressed and compressed sizes."""

    format = ArchiveFormat.ZIP

    def _open_container(self) -> None:
        try:
            self._zip = zipfile.ZipFile(self.archive_handle, mode='r')
        except zipfile.BadZipFile as e:
            raise FormatError(f"Not a valid zip archive: {e}") from e
        except OSError as e:
            raise ArchiveIOError(f"Cannot open zip archive: {e}") from e

    def _iter_members(self) -> Iterator[zipfile.ZipInfo]:
        return iter(self._zip.infolist())

    def _entry_for(self, member: zipfile.ZipInfo) -> Optional[ArchiveEntry]:
        st_mode = member.external_attr >> 16
        if stat.S_ISLNK(st_mode):
            self._reject_link(member.filename, "symlink")
            return None

        is_dir = normalize_path(member.filename).endswith('/')
        return self._make_entry(
            member.filename,
            is_dir,
            uncompressed_size=0 if is_dir else member.file_size,
            compressed_size=None if is_dir else member.compress_size,
            permission_bits=stat.S_IMODE(st_mode) if st_mode else None,
            modified_at=time.mktime(member.date_time + (0, 0, -1)),
        )

    def _open_member(self, member: zipfile.ZipInfo) -> BinaryIO:
        return self._zip.open(member, mode='r')

    def _close_container(self) -> None:
        self._zip.close()


class TarArchiveReader(ArchiveReader):
    """Uncompressed tar reader."""

    format = ArchiveFormat.TAR

    def _open_container(self) -> None:
        try:
            if isinstance(self.archive_handle, (str, os.PathLike)):
                self._tar = tarfile.open(name=self.archive_handle, mode='r:')
            else:
                self._tar = tarfile.open(fileobj=self.archive_handle, mode='r:')
        except tarfile.TarError as e:
            raise FormatError(f"Not a valid tar archive: {e}") from e
        except OSError as e:
            raise ArchiveIOError(f"Cannot open tar archive: {e}") from e

    def _iter_members(self) -> Iterator[tarfile.TarInfo]:
        # getmembers() walks every header, which validates the whole container
        try:
            members = self._tar.getmembers()
        except tarfile.TarError as e:
            raise FormatError(f"Corrupted tar archive: {e}") from e
        return iter(members)

    def _entry_for(self, member: tarfile.TarInfo) -> Optional[ArchiveEntry]:
        if member.issym() or member.islnk():
            self._reject_link(member.name, "link")
            return None
        if not (member.isdir() or member.isreg()):
            self._reject_link(member.name, "special file")
            return None

        return self._make_entry(
            member.name,
            member.isdir(),
            uncompressed_size=0 if member.isdir() else member.size,
            permission_bits=member.mode,
            modified_at=float(member.mtime),
        )

    def _open_member(self, member: tarfile.TarInfo) -> BinaryIO:
        stream = self._tar.extractfile(member)
        if stream is None:
            raise FormatError(f"Tar member has no content stream: {member.name}", member=member.name)
        return stream

    def _close_container(self) -> None:
        self._tar.close()


def open_reader(
    archive_handle: ArchiveHandle,
    archive_format: ArchiveFormat | str,
    config: Optional[ArchiveConfig] = None
) -> ArchiveReader:
    """Create an unopened reader for the given format."""
    settings = config or ArchiveConfig()
    archive_format = ArchiveFormat.coerce(archive_format)

    if archive_format is ArchiveFormat.ZIP:
        return ZipArchiveReader(archive_handle, symlinks=settings.symlinks)
    return TarArchiveReader(archive_handle, symlinks=settings.symlinks)


def list_contents(
    archive_handle: ArchiveHandle,
    archive_format: ArchiveFormat | str,
    config: Optional[ArchiveConfig] = None
) -> List[EntrySummary]:
    """List an archive's entries with size metadata.

    ``str()`` of each summary gives the listing line:
    ``"name (N bytes, M compressed)"`` for zip files, ``"name (N bytes)"`` for
    tar files and just ``"name"`` for zero-size entries.

    Args:
        archive_handle: Archive path or readable binary file object
        archive_format: ``ArchiveFormat`` or its string value
        config: Optional archive settings

    Returns:
        Entry summaries in on-disk order

    Raises:
        FormatError: If the archive is malformed
    """
    reader = open_reader(archive_handle, archive_format, config)

    with LogContext(logger, format=reader.format.value):
        with reader:
            summaries = reader.list()
        logger.info(f"Listed {len(summaries)} entries from {reader.format.value} archive")

    return summaries
