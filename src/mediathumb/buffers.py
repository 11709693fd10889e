"""Process-wide pool of reusable byte buffers.

Pipelines borrow buffers from the pool to hold intermediate stage output and
return them when done, so repeated thumbnailing does not allocate a fresh
buffer for every stage boundary.

Contract:
- A borrowed PooledBuffer has exactly one holder until release().
- release() may be called at most once; any access afterwards raises
  BufferReleasedError.
- The pool is safe for concurrent borrow/release from many threads.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from mediathumb.errors import BufferReleasedError

logger = logging.getLogger(__name__)

# Initial capacity of newly allocated buffers
MIN_BUFFER_SIZE = 64 << 10

# Buffers that grew beyond this are dropped instead of pooled
MAX_POOLED_SIZE = 64 << 20

# Chunk size used when filling a buffer from a stream
READ_CHUNK_SIZE = 64 << 10


class PooledBuffer:
    """A growable byte buffer borrowed from a BufferPool."""

    __slots__ = ("_data", "_pool", "_released", "_length")

    def __init__(self, pool: BufferPool, data: bytearray) -> None:
        self._pool = pool
        self._data = data
        self._length = 0
        self._released = False

    def _check(self) -> bytearray:
        if self._released:
            raise BufferReleasedError("buffer used after release")
        return self._data

    def __len__(self) -> int:
        self._check()
        return self._length

    @property
    def capacity(self) -> int:
        """Allocated size of the underlying storage."""
        return len(self._check())

    @property
    def released(self) -> bool:
        """True once the buffer has been returned to the pool."""
        return self._released

    def reserve(self, capacity: int) -> None:
        """Grow the underlying storage to hold at least capacity bytes."""
        data = self._check()
        if len(data) < capacity:
            data.extend(bytes(max(capacity, len(data) * 2) - len(data)))

    def write(self, chunk: bytes | bytearray | memoryview) -> int:
        """Append bytes to the buffer."""
        size = len(chunk)
        self.reserve(self._length + size)
        self._data[self._length : self._length + size] = chunk
        self._length += size
        return size

    def read_from(self, stream: BinaryIO, limit: int | None = None) -> int:
        """Append everything read from stream until EOF or limit bytes.

        Returns:
            Number of bytes read.
        """
        total = 0
        while limit is None or total < limit:
            want = READ_CHUNK_SIZE
            if limit is not None:
                want = min(want, limit - total)
            self.reserve(self._length + want)
            view = memoryview(self._data)[self._length : self._length + want]
            try:
                n = stream.readinto(view)  # type: ignore[attr-defined]
            finally:
                view.release()
            if not n:
                break
            self._length += n
            total += n
        return total

    def view(self) -> memoryview:
        """Return a read-only view of the filled part of the buffer.

        The view must not be used after release().
        """
        data = self._check()
        return memoryview(data)[: self._length].toreadonly()

    def getvalue(self) -> bytes:
        """Return a copy of the buffer contents."""
        data = self._check()
        return bytes(data[: self._length])

    def clear(self) -> None:
        """Discard contents but keep the allocated storage."""
        self._check()
        self._length = 0

    def release(self) -> None:
        """Return the buffer to its pool. The buffer must not be used after."""
        if self._released:
            raise BufferReleasedError("buffer released twice")
        self._released = True
        data = self._data
        self._data = bytearray()
        self._length = 0
        self._pool._put(data)


class BufferPool:
    """Thread-safe free list of byte buffers.

    Args:
        max_buffers: Maximum number of idle buffers kept for reuse.
        buffer_size: Initial capacity of newly allocated buffers.
    """

    def __init__(
        self, max_buffers: int = 8, buffer_size: int = MIN_BUFFER_SIZE
    ) -> None:
        if max_buffers < 0:
            raise ValueError(f"max_buffers must be non-negative, got {max_buffers}")
        self._max_buffers = max_buffers
        self._buffer_size = max(buffer_size, 1)
        self._free: list[bytearray] = []
        self._lock = threading.Lock()
        self.allocations = 0

    def get(self, capacity: int = 0) -> PooledBuffer:
        """Borrow a buffer with at least the given capacity."""
        with self._lock:
            data = self._free.pop() if self._free else None
            if data is None:
                self.allocations += 1
        if data is None:
            data = bytearray(max(capacity, self._buffer_size))
        buf = PooledBuffer(self, data)
        if capacity:
            buf.reserve(capacity)
        return buf

    @contextmanager
    def borrow(self, capacity: int = 0) -> Iterator[PooledBuffer]:
        """Borrow a buffer for the duration of a with block."""
        buf = self.get(capacity)
        try:
            yield buf
        finally:
            if not buf.released:
                buf.release()

    def _put(self, data: bytearray) -> None:
        if len(data) > MAX_POOLED_SIZE:
            logger.debug("Dropping oversized buffer of %d bytes", len(data))
            return
        with self._lock:
            if len(self._free) < self._max_buffers:
                self._free.append(data)

    @property
    def idle(self) -> int:
        """Number of buffers currently waiting for reuse."""
        with self._lock:
            return len(self._free)


_default_pool: BufferPool | None = None
_default_pool_lock = threading.Lock()


def get_buffer_pool() -> BufferPool:
    """Get the process-wide buffer pool (thread-safe lazy initialization)."""
    global _default_pool

    if _default_pool is not None:
        return _default_pool

    with _default_pool_lock:
        if _default_pool is None:
            from mediathumb.config import get_config

            pipeline = get_config().pipeline
            _default_pool = BufferPool(
                max_buffers=pipeline.pool_size, buffer_size=pipeline.buffer_size
            )
    return _default_pool
