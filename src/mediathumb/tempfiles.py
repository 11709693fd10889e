"""Temporary on-disk artifacts.

Some stages need random access to an on-disk file (ffmpeg reading an MP4
whose index sits at the end, the rar reader) while the caller may only have
an in-memory stream. Every helper here removes what it created on all exit
paths, including exceptions.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import BinaryIO

from mediathumb.buffers import READ_CHUNK_SIZE

logger = logging.getLogger(__name__)

TEMP_PREFIX = "mediathumb-"


def _temp_dir() -> str | None:
    from mediathumb.config import get_temp_directory

    directory = get_temp_directory()
    return str(directory) if directory else None


def file_path_of(stream: BinaryIO) -> Path | None:
    """Return the path of a stream backed by a regular file, or None."""
    name = getattr(stream, "name", None)
    if not isinstance(name, (str, os.PathLike)):
        return None
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    path = Path(name)
    return path if path.is_file() else None


def copy_limited(src: BinaryIO, dst: BinaryIO, limit: int | None = None) -> int:
    """Copy src to dst, stopping after limit bytes.

    Returns:
        Number of bytes copied.
    """
    copied = 0
    while limit is None or copied < limit:
        want = READ_CHUNK_SIZE
        if limit is not None:
            want = min(want, limit - copied)
        chunk = src.read(want)
        if not chunk:
            break
        dst.write(chunk)
        copied += len(chunk)
    return copied


@contextmanager
def materialize(stream: BinaryIO) -> Iterator[Path]:
    """Yield an on-disk path holding the whole content of stream.

    A stream backed by a regular file yields that file's path. Anything else
    is copied into a temporary file, which is deleted when the block exits.
    """
    path = file_path_of(stream)
    if path is not None:
        yield path
        return

    fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=_temp_dir())
    try:
        with os.fdopen(fd, "wb") as tmp:
            stream.seek(0)
            shutil.copyfileobj(stream, tmp, READ_CHUNK_SIZE)
        logger.debug("Materialized stream to %s", name)
        yield Path(name)
    finally:
        with suppress(FileNotFoundError):
            os.unlink(name)


@contextmanager
def spooled_copy(src: BinaryIO, limit: int | None = None) -> Iterator[BinaryIO]:
    """Copy at most limit bytes of src into an anonymous temporary file.

    The yielded file is rewound and closed (and thereby removed) on exit.
    """
    with tempfile.TemporaryFile(prefix=TEMP_PREFIX, dir=_temp_dir()) as tmp:
        copied = copy_limited(src, tmp, limit)
        if limit is not None and copied >= limit:
            logger.warning("Extracted data truncated at %d bytes", limit)
        tmp.seek(0)
        yield tmp
