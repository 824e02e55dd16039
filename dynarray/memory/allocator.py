"""
Memory allocation for container buffers.

Buffers are raw ctypes byte arrays. All allocation goes through an
allocator object so containers never call ctypes directly:

- `CtypesAllocator` is the system allocator.
- `CountingAllocator` wraps another allocator and records how many
  allocations happened and how many bytes reallocation had to move. The
  workload benchmarks use it to measure planner cost.

Contract shared by every allocator:
- A failing allocation returns ``None`` (the absent buffer), it never
  raises.
- A request for zero bytes returns ``None``; this is not a failure.
- ``realloc`` keeps the first ``min(old_nbytes, new_nbytes)`` bytes and may
  move the buffer. On failure the old buffer is left untouched.
"""

from __future__ import annotations

import ctypes
import logging
from typing import Optional

logger = logging.getLogger(__name__)

Buffer = ctypes.Array


class CtypesAllocator:
    """Allocate zero-filled ``c_char`` arrays."""

    __slots__ = ()

    def alloc(self, nbytes: int) -> Optional[Buffer]:
        if nbytes == 0:
            return None
        try:
            return ctypes.create_string_buffer(nbytes)
        except (MemoryError, OverflowError, ValueError) as e:
            logger.debug("allocation of %d bytes failed: %s", nbytes, e)
            return None

    def realloc(self, buf: Optional[Buffer], old_nbytes: int, new_nbytes: int) -> Optional[Buffer]:
        if new_nbytes == 0:
            self.release(buf)
            return None

        new_buf = self.alloc(new_nbytes)
        if new_buf is None:
            return None

        if buf is not None:
            ctypes.memmove(new_buf, buf, min(old_nbytes, new_nbytes))
        return new_buf

    def release(self, buf: Optional[Buffer]) -> None:
        # ctypes owns the memory; dropping the last reference frees it.
        pass


class CountingAllocator:
    """Allocator wrapper that keeps allocation statistics.

    Attributes:
        allocs: Fresh allocations (no previous buffer).
        reallocs: Reallocations of an existing buffer to a new size.
        releases: Buffers handed back, including shrinks to zero bytes.
        bytes_moved: Bytes copied from old to new buffers by ``realloc``.
        peak_bytes: Largest single buffer handed out.
    """

    __slots__ = ("_inner", "allocs", "reallocs", "releases", "bytes_moved", "peak_bytes")

    def __init__(self, inner=None) -> None:
        self._inner = inner if inner is not None else CtypesAllocator()
        self.reset()

    def reset(self) -> None:
        self.allocs = 0
        self.reallocs = 0
        self.releases = 0
        self.bytes_moved = 0
        self.peak_bytes = 0

    def alloc(self, nbytes: int) -> Optional[Buffer]:
        buf = self._inner.alloc(nbytes)
        if buf is not None:
            self.allocs += 1
            self.peak_bytes = max(self.peak_bytes, nbytes)
        return buf

    def realloc(self, buf: Optional[Buffer], old_nbytes: int, new_nbytes: int) -> Optional[Buffer]:
        new_buf = self._inner.realloc(buf, old_nbytes, new_nbytes)
        if new_nbytes == 0:
            self.releases += 1 if buf is not None else 0
        elif new_buf is not None:
            if buf is None:
                self.allocs += 1
            else:
                self.reallocs += 1
                self.bytes_moved += min(old_nbytes, new_nbytes)
            self.peak_bytes = max(self.peak_bytes, new_nbytes)
        return new_buf

    def release(self, buf: Optional[Buffer]) -> None:
        if buf is not None:
            self.releases += 1
        self._inner.release(buf)

    def as_dict(self) -> dict:
        """Return the counters as a plain dict (for reports)."""
        return {
            "allocs": self.allocs,
            "reallocs": self.reallocs,
            "releases": self.releases,
            "bytes_moved": self.bytes_moved,
            "peak_bytes": self.peak_bytes,
        }


DEFAULT_ALLOCATOR = CtypesAllocator()
