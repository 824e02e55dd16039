from __future__ import annotations

import ctypes
import logging
from typing import Iterator, Optional, Tuple

from ..errors import InvalidArgument, OutOfMemory, SizeOverflow
from ..memory.allocator import DEFAULT_ALLOCATOR
from ..planning.guards import can_add_signed, is_valid_index
from .dyn_array import element_bytes

logger = logging.getLogger(__name__)

# compact() skips arrays with fewer holes than this (percent), unless forced.
COMPACT_MIN_HOLE_PCT = 10


class SparseArray:
    """A slot array where each slot is either used or free.

    Unlike ``DynArray``, removing an element does not move anything: the
    slot is marked free and its index stays reserved until ``compact``.
    This keeps indices stable, so they can be handed out as handles.

    • ``add`` fills the first free slot, or grows the array by one slot.
    • ``compact`` packs used slots to the front (order preserved) and cuts
      the array down, never below ``min_len``.
    • ``truncate`` resizes to an exact slot count; new slots are free.
    """

    __slots__ = ("_buf", "_used", "_len", "_used_count", "_min_len", "_element_size", "_allocator")

    def __init__(self, element_size: int, *, allocator=None) -> None:
        if element_size <= 0 or not is_valid_index(1, element_size):
            raise InvalidArgument(f"invalid element size {element_size!r}")
        self._element_size = element_size
        self._allocator = allocator if allocator is not None else DEFAULT_ALLOCATOR
        self._buf = None
        self._used = bytearray()
        self._len = 0
        self._used_count = 0
        self._min_len = 0

    # -----------------------------
    # Internal helpers
    # -----------------------------
    def _address(self, index: int) -> int:
        return ctypes.addressof(self._buf) + index * self._element_size

    def _set_slot(self, index: int, data: bytes) -> None:
        ctypes.memmove(self._address(index), data, self._element_size)
        self._used[index] = 1
        self._used_count += 1

    def _encode(self, obj) -> bytes:
        return element_bytes(obj, self._element_size)

    def _realloc(self, new_len: int) -> None:
        es = self._element_size
        buf = self._allocator.realloc(self._buf, self._len * es, new_len * es)
        if buf is None and new_len != 0:
            raise OutOfMemory(f"cannot allocate {new_len * es} bytes")
        self._buf = buf

    def _find_free(self) -> int:
        return self._used.find(0)

    # -----------------------------
    # Public API
    # -----------------------------
    @property
    def element_size(self) -> int:
        return self._element_size

    @property
    def used_count(self) -> int:
        return self._used_count

    @property
    def min_len(self) -> int:
        return self._min_len

    def add(self, obj=None) -> int:
        """Store ``obj`` in a free slot (growing if none) and return its index.

        With ``obj=None`` nothing is stored: a free slot is located, or one
        free slot is appended, and its index returned.

        Raises:
            SizeOverflow: the array cannot grow by another slot.
            OutOfMemory: the buffer could not grow.
        """
        data = self._encode(obj) if obj is not None else None

        if self._used_count < self._len:
            index = self._find_free()
            if index < 0:
                raise RuntimeError(f"{self._used_count} of {self._len} slots used but none free")
        else:
            if not can_add_signed(self._len, 1) or not is_valid_index(self._len + 1, self._element_size):
                raise SizeOverflow("sparse array is at its maximum length")
            index = self._len
            self.truncate(self._len + 1)

        if data is not None:
            self._set_slot(index, data)
        return index

    def remove(self, index: int) -> None:
        """Mark slot ``index`` free. Removing a free slot is not an error.

        Raises:
            InvalidArgument: ``index`` is negative or past the end.
        """
        if index < 0 or index >= self._len:
            raise InvalidArgument(f"index {index} out of range for length {self._len}")
        if self._used[index]:
            self._used[index] = 0
            self._used_count -= 1

    def get(self, index: int) -> Optional[bytes]:
        """Return the bytes stored at ``index``, or None if the slot is free."""
        if index < 0 or index >= self._len:
            raise InvalidArgument(f"index {index} out of range for length {self._len}")
        if not self._used[index]:
            return None
        return ctypes.string_at(self._address(index), self._element_size)

    def is_used(self, index: int) -> bool:
        return 0 <= index < self._len and bool(self._used[index])

    def set_min_len(self, min_len: int) -> None:
        """Pin a floor on the length; grows the array if it is shorter.

        Raises:
            InvalidArgument: ``min_len`` is negative.
        """
        if min_len < 0:
            raise InvalidArgument(f"negative minimum length {min_len}")
        if min_len > self._len:
            self.truncate(min_len)
        self._min_len = min_len

    def compact(self, force: bool = False) -> None:
        """Move used slots to the front (keeping their order) and drop the holes.

        Arrays with fewer than ``COMPACT_MIN_HOLE_PCT`` percent holes are left
        alone unless ``force`` is set. The result is never shorter than
        ``min_len``.
        """
        if self._len == 0:
            return

        hole_count = self._len - self._used_count
        hole_pct = hole_count * 100 // self._len

        if hole_pct < COMPACT_MIN_HOLE_PCT and (not force or hole_count == 0):
            return

        if self._used_count == 0:
            self.truncate(self._min_len)
            return

        es = self._element_size
        used = self._used
        first_hole = self._len
        for i in range(self._len):
            if not used[i]:
                first_hole = min(first_hole, i)
            elif first_hole < i:
                # Only holes lie between first_hole and i.
                ctypes.memmove(self._address(first_hole), self._address(i), es)
                used[first_hole] = 1
                used[i] = 0
                first_hole += 1

        if first_hole != self._used_count:
            raise RuntimeError(f"compaction packed {first_hole} slots, expected {self._used_count}")
        new_len = max(first_hole, self._min_len)
        if new_len != self._len:
            self.truncate(new_len)
        logger.debug("compacted sparse array: %d holes removed", hole_count)

    def truncate(self, length: int) -> None:
        """Resize to exactly ``length`` slots.

        Extra slots are free; slots cut off are lost, used or not.

        Raises:
            InvalidArgument: ``length`` is negative or below ``min_len``.
            SizeOverflow: ``length`` is not a valid index.
            OutOfMemory: the buffer could not grow.
        """
        if length < 0 or length < self._min_len:
            raise InvalidArgument(f"cannot truncate to {length} (minimum {self._min_len})")
        if not is_valid_index(length, self._element_size):
            raise SizeOverflow(f"length {length} is too large")
        if length == self._len:
            return

        self._realloc(length)
        if length > self._len:
            self._used.extend(bytes(length - self._len))
        else:
            del self._used[length:]
            self._used_count = self._used.count(1)
        self._len = length

    def free(self) -> None:
        self._allocator.release(self._buf)
        self._buf = None
        self._used = bytearray()
        self._len = 0
        self._used_count = 0
        self._min_len = 0

    def __enter__(self) -> "SparseArray":
        return self

    def __exit__(self, *exc) -> None:
        self.free()

    def __len__(self) -> int:
        """Number of slots, used or free."""
        return self._len

    def __iter__(self) -> Iterator[Tuple[int, bytes]]:
        """Yield ``(index, bytes)`` for each used slot, in index order."""
        for i in range(self._len):
            if self._used[i]:
                yield i, ctypes.string_at(self._address(i), self._element_size)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return (f"SparseArray(element_size={self._element_size}, len={self._len}, "
                f"used={self._used_count}, min_len={self._min_len})")
