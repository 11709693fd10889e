"""Zip and rar archive scanning.

Archives are thumbnailed by their first image-like member. Only the first
few entries are examined, by name alone: archives used as image collections
(comic books) keep their pages at the start, and opening every member of a
large archive just to classify it would be wasteful.

An archive whose image-like entries make up at least the comic threshold of
all its entries is reclassified as a comic book archive. The fraction is
taken against the total entry count of the archive, not just the scanned
window, so a large archive with a few images at the front stays a plain
archive.

The selected member is extracted through a length-limited copy into a
temporary file. The limit bounds the damage a decompression bomb can do:
random-access formats allow a multiple of the container size, streamed
formats a fixed ceiling.
"""

from __future__ import annotations

import itertools
import logging
import zipfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, BinaryIO, Protocol

import rarfile

from mediathumb.mime.types import MIME_CBR, MIME_CBZ, MIME_RAR, MIME_ZIP
from mediathumb.tempfiles import spooled_copy

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp", ".gif")

# Comic book variant (MIME, extension) of each archive MIME type
COMIC_TYPES = {
    MIME_ZIP: (MIME_CBZ, "cbz"),
    MIME_RAR: (MIME_CBR, "cbr"),
}

# Errors raised by the archive libraries for corrupt or unreadable input
ARCHIVE_LIBRARY_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, rarfile.Error)


def could_be_image(name: str) -> bool:
    """Check by file name suffix whether an entry is likely an image."""
    return name.lower().endswith(IMAGE_SUFFIXES)


@dataclass(frozen=True)
class ArchiveEntry:
    """A member of an archive.

    Attributes:
        name: Member path inside the archive.
        open: Returns a readable stream of the decompressed member.
        compressed_size: Stored size in bytes, if known.
    """

    name: str
    open: Callable[[], IO[bytes]]
    compressed_size: int = 0


class EntrySource(Protocol):
    """Read access to the entries of one opened archive."""

    @property
    def total_entries(self) -> int:
        """Number of entries in the whole archive."""
        ...

    @property
    def extraction_limit(self) -> int:
        """Maximum number of bytes extracted from a single member."""
        ...

    def entries(self) -> Iterator[ArchiveEntry]:
        """Iterate over entries in archive order."""
        ...


class ZipEntrySource:
    """Entries of a zip archive read from a seekable stream."""

    def __init__(self, zf: zipfile.ZipFile, container_size: int, size_multiplier: int):
        self._zf = zf
        self._infos = zf.infolist()
        self._limit = container_size * size_multiplier

    @property
    def total_entries(self) -> int:
        return len(self._infos)

    @property
    def extraction_limit(self) -> int:
        return self._limit

    def entries(self) -> Iterator[ArchiveEntry]:
        for info in self._infos:
            yield ArchiveEntry(
                name=info.filename,
                open=lambda info=info: self._zf.open(info),
                compressed_size=info.compress_size,
            )


class RarEntrySource:
    """Entries of a rar archive.

    Rar members can only be read as a stream, so the extraction limit is a
    fixed ceiling rather than a multiple of the container size.
    """

    def __init__(self, rf: rarfile.RarFile, stream_limit: int):
        self._rf = rf
        self._infos = rf.infolist()
        self._limit = stream_limit

    @property
    def total_entries(self) -> int:
        return len(self._infos)

    @property
    def extraction_limit(self) -> int:
        return self._limit

    def entries(self) -> Iterator[ArchiveEntry]:
        for info in self._infos:
            yield ArchiveEntry(
                name=info.filename,
                open=lambda info=info: self._rf.open(info),
                compressed_size=info.compress_size,
            )


@contextmanager
def open_zip(stream: BinaryIO, size_multiplier: int) -> Iterator[ZipEntrySource]:
    """Open a zip archive from a seekable stream.

    Raises:
        zipfile.BadZipFile: If the stream is not a readable zip archive.
    """
    container_size = stream.seek(0, 2)
    stream.seek(0)
    with zipfile.ZipFile(stream) as zf:
        yield ZipEntrySource(zf, container_size, size_multiplier)


@contextmanager
def open_rar(path: Path, stream_limit: int) -> Iterator[RarEntrySource]:
    """Open a rar archive from a file on disk.

    Raises:
        rarfile.Error: If the file is not a readable rar archive.
    """
    with rarfile.RarFile(str(path)) as rf:
        yield RarEntrySource(rf, stream_limit)


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning an archive's leading entries."""

    scanned: int
    image_count: int
    total_entries: int
    candidate: ArchiveEntry | None
    is_comic: bool


class ArchiveScanner:
    """Classifies archives and selects the member to thumbnail.

    Args:
        scan_limit: Number of leading entries examined.
        comic_threshold: Fraction of image entries, relative to the total
            entry count, from which an archive counts as a comic book.
    """

    def __init__(self, scan_limit: int = 10, comic_threshold: float = 0.9) -> None:
        if scan_limit < 1:
            raise ValueError(f"scan_limit must be at least 1, got {scan_limit}")
        self.scan_limit = scan_limit
        self.comic_threshold = comic_threshold

    def scan(self, source: EntrySource) -> ScanResult:
        """Examine the leading entries of an archive by name."""
        scanned = 0
        image_count = 0
        candidate: ArchiveEntry | None = None
        for entry in itertools.islice(source.entries(), self.scan_limit):
            scanned += 1
            if could_be_image(entry.name):
                image_count += 1
                if candidate is None:
                    candidate = entry

        total = source.total_entries
        is_comic = total > 0 and image_count / total >= self.comic_threshold
        logger.debug(
            "Scanned %d of %d entries: %d image-like, comic=%s",
            scanned,
            total,
            image_count,
            is_comic,
        )
        return ScanResult(
            scanned=scanned,
            image_count=image_count,
            total_entries=total,
            candidate=candidate,
            is_comic=is_comic,
        )

    @staticmethod
    @contextmanager
    def extract(entry: ArchiveEntry, limit: int) -> Iterator[BinaryIO]:
        """Extract a member into a temporary file, truncated at limit bytes.

        The temporary file is removed when the block exits.
        """
        with entry.open() as member, spooled_copy(member, limit) as tmp:
            yield tmp
