from __future__ import annotations

import ctypes
import logging
from typing import Any, Callable, Optional

from ..errors import ArrayErrno, InvalidArgument, NoEntry, OutOfMemory, SizeOverflow
from ..memory.allocator import DEFAULT_ALLOCATOR
from ..planning.capacity import DefaultPlanner, HintedPlanner
from ..planning.guards import MAX_INDEX, can_add_within, is_valid_index

logger = logging.getLogger(__name__)

Comparator = Callable[[bytes, bytes, Any], int]


def buffer_view(obj) -> memoryview:
    """Return a memoryview over ``obj``, which must support the buffer protocol."""
    try:
        return memoryview(obj)
    except TypeError:
        raise InvalidArgument(f"expected a bytes-like object, got {type(obj).__name__}") from None


def element_bytes(element, element_size: int) -> bytes:
    """Return the raw bytes of one element, checking it is ``element_size`` long."""
    view = buffer_view(element)
    if view.nbytes != element_size:
        raise InvalidArgument(f"element is {view.nbytes} bytes, expected {element_size}")
    return view.tobytes()


class DynArray:
    """A contiguous, resizable array of fixed-size raw elements.

    Implementation notes
    --------------------
    • Storage is a ctypes ``c_char`` array owned by the container (allocated
      through an allocator, see ``dynarray.memory``).
    • Every element is exactly ``element_size`` bytes; the array never looks
      inside them. Typed access lives in ``TypedArray``.
    • Capacity is chosen by a planner (``DefaultPlanner`` or, when a length
      hint is given, ``HintedPlanner``); every size is validated against the
      platform index and byte limits before the buffer is touched.
    • A failed operation leaves length, capacity and buffer as they were.
      The one exception is ``remove``: if shrinking fails, the element is
      still removed and the old (larger) buffer is kept.
    • Indexes handed out by ``min``/``max`` and views of ``buffer`` are
      invalidated by any later call that may resize.
    """

    __slots__ = (
        "_buf", "_length", "_capacity", "_element_size",
        "_planner", "_allocator", "_released",
    )

    def __init__(self, element_size: int, *, allocator=None) -> None:
        """Create an empty array of ``element_size``-byte elements.

        Raises:
            InvalidArgument: if ``element_size`` is not positive or too large
                to address even a single element.
        """
        if element_size <= 0 or not is_valid_index(1, element_size):
            raise InvalidArgument(f"invalid element size {element_size!r}")

        self._element_size = element_size
        self._allocator = allocator if allocator is not None else DEFAULT_ALLOCATOR
        self._planner = DefaultPlanner()
        self._buf = None
        self._length = 0
        self._capacity = 0
        self._released = False

    # ------------------------------ constructors ------------------------------

    @classmethod
    def with_hint(cls, element_size: int, hint: int, *, allocator=None) -> "DynArray":
        """Create an empty array that plans its capacity around ``hint``.

        The initial buffer is sized for the lower tail of the expected length.

        Raises:
            InvalidArgument: if ``hint`` is not a valid index.
            OutOfMemory: if the initial buffer cannot be allocated.
        """
        arr = cls(element_size, allocator=allocator)
        if not is_valid_index(hint, element_size):
            raise InvalidArgument(f"invalid length hint {hint!r}")
        arr._planner = HintedPlanner(hint)

        try:
            arr._resize(0)
        except OutOfMemory:
            arr.free()
            raise
        return arr

    @classmethod
    def from_raw(cls, src, src_len: int, element_size: int, *, allocator=None) -> "DynArray":
        """Create an array holding a copy of ``src_len`` elements from ``src``.

        ``src`` is any bytes-like object (bytes, bytearray, memoryview, ctypes
        array...). When ``src_len`` is zero it is not read and may be None.
        The source must not share memory with the new array.

        Raises:
            InvalidArgument: ``src`` is None (or too short) while ``src_len > 0``.
            SizeOverflow: ``src_len`` is not a valid index.
            OutOfMemory: the buffer cannot be allocated.
        """
        if src_len < 0 or not is_valid_index(src_len, element_size):
            raise SizeOverflow(f"cannot hold {src_len} elements of {element_size} bytes")

        arr = cls(element_size, allocator=allocator)
        if src_len == 0:
            return arr

        if src is None:
            raise InvalidArgument("source buffer is absent but length is non-zero")
        view = buffer_view(src)

        nbytes = src_len * element_size
        if view.nbytes < nbytes:
            raise InvalidArgument(f"source holds {view.nbytes} bytes, need {nbytes}")
        # Copies only the leading nbytes of the source.
        data = (ctypes.c_char * nbytes).from_buffer_copy(view)

        arr._resize(src_len)
        ctypes.memmove(arr._buf, data, nbytes)
        return arr

    def copy(self) -> "DynArray":
        """Return an independent copy (same elements, new buffer)."""
        self._check_live()
        return self._new_from_range(0, self._length)

    def slice(self, start: int, stop: int, step: int = 1) -> "DynArray":
        """Return a new array with the elements of a half-open slice.

        Works like Python slicing with explicit, non-negative bounds:
        ``step`` may be negative to walk backwards, a ``stop`` past the end is
        clamped, and a backward ``start`` at or past the end begins at the
        last element and walks the whole span, so ``slice(len, 0, -1)``
        reverses the entire array. A slice whose direction contradicts
        ``step`` is empty.

        Raises:
            InvalidArgument: ``step`` is zero or a bound is negative.
        """
        self._check_live()
        if step == 0:
            raise InvalidArgument("slice step cannot be zero")
        if start < 0 or stop < 0:
            raise InvalidArgument("slice bounds must be non-negative")

        length = self._length
        lo = min(start, stop)
        hi = min(max(start, stop), length)

        # Shortcircuit empty cases.
        if start == stop or (start < stop) != (step > 0) or lo >= length:
            return type(self)(self._element_size, allocator=self._allocator)

        if step == 1:
            return self._new_from_range(lo, hi - lo)

        slice_len = 1 + (hi - lo - 1) // abs(step)
        out = type(self)(self._element_size, allocator=self._allocator)
        out._resize(slice_len)

        # Going backwards, the caller may start beyond the end.
        real_start = min(start, length - 1)
        es = self._element_size
        for i in range(slice_len):
            ctypes.memmove(out._item_address(i), self._item_address(real_start + i * step), es)
        return out

    # ------------------------------- internals --------------------------------

    def _check_live(self) -> None:
        if self._released:
            raise InvalidArgument("array has been freed")

    def _new_from_range(self, first: int, count: int) -> "DynArray":
        out = type(self)(self._element_size, allocator=self._allocator)
        if count:
            out._resize(count)
            out._set_items(0, self._item_address(first), count)
        return out

    def _item_address(self, index: int) -> int:
        """Address of element ``index`` (no bounds check)."""
        return ctypes.addressof(self._buf) + index * self._element_size

    def _set_items(self, index: int, src_address: int, count: int) -> None:
        """Copy ``count`` elements from ``src_address`` into ``[index, index+count)``.

        The caller guarantees bounds and that the source does not overlap the
        destination.
        """
        ctypes.memmove(self._item_address(index), src_address, count * self._element_size)

    def _resize(self, new_length: int) -> None:
        """Set the length, reallocating when the planner asks for a new capacity.

        ``new_length`` must already be a valid index.

        Raises:
            OutOfMemory: the allocator failed; nothing was changed.
        """
        es = self._element_size
        old_capacity = self._capacity
        new_capacity = self._planner.plan(es, old_capacity, new_length)
        if not new_length <= new_capacity <= MAX_INDEX:
            raise ValueError(f"planner returned capacity {new_capacity} for length {new_length}")

        if new_capacity != old_capacity:
            new_buf = self._allocator.realloc(self._buf, old_capacity * es, new_capacity * es)
            if new_buf is None and new_capacity != 0:
                raise OutOfMemory(f"cannot allocate {new_capacity * es} bytes")
            logger.debug("resize: length %d -> %d, capacity %d -> %d",
                         self._length, new_length, old_capacity, new_capacity)
            self._buf = new_buf
            self._capacity = new_capacity

        self._length = new_length

    def _normalize_index(self, index: int) -> int:
        if index < 0:
            index += self._length
        if index < 0 or index >= self._length:
            raise NoEntry("array index out of range")
        return index

    def _scan(self, cmp: Comparator, ctx: Any, direction: int) -> Optional[int]:
        if self._length == 0:
            return None

        candidate = 0
        best = self.item(0)
        for i in range(1, self._length):
            current = self.item(i)
            # Replace only on a strict match so the earliest tie wins.
            if cmp(current, best, ctx) * direction > 0:
                candidate, best = i, current
        return candidate

    # ---------------------------------- API -----------------------------------

    @property
    def element_size(self) -> int:
        return self._element_size

    @property
    def length(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def hint(self) -> Optional[int]:
        """The length hint the capacity is planned around, if any."""
        return self._planner.hint

    @property
    def buffer(self):
        """The backing ctypes buffer, or None while capacity is zero."""
        return self._buf

    def append(self, element) -> ArrayErrno:
        """Append one element (``element_size`` bytes). Amortized O(1).

        Raises:
            InvalidArgument: ``element`` is not exactly ``element_size`` bytes.
            SizeOverflow: one more element would not be a valid index.
            OutOfMemory: the buffer could not grow.
        """
        self._check_live()
        data = element_bytes(element, self._element_size)

        old_length = self._length
        if not can_add_within(old_length, 1, MAX_INDEX) or not is_valid_index(old_length + 1, self._element_size):
            raise SizeOverflow("array is at its maximum length")

        self._resize(old_length + 1)
        ctypes.memmove(self._item_address(old_length), data, self._element_size)
        return ArrayErrno.OK

    def extend(self, src: "DynArray") -> ArrayErrno:
        """Append a copy of every element of ``src``; ``src`` is not changed.

        ``src`` may be this very array, in which case its contents are
        doubled in order.

        Raises:
            InvalidArgument: element sizes differ.
            SizeOverflow: the combined length is not a valid index.
            OutOfMemory: the buffer could not grow.
        """
        self._check_live()
        src._check_live()
        if src._element_size != self._element_size:
            raise InvalidArgument(
                f"element size mismatch: {self._element_size} != {src._element_size}")

        dest_len = self._length
        src_len = src._length
        if (not can_add_within(dest_len, src_len, MAX_INDEX)
                or not is_valid_index(dest_len + src_len, self._element_size)):
            raise SizeOverflow("combined length is too large")
        if src_len == 0:
            return ArrayErrno.OK

        self._resize(dest_len + src_len)
        # Read src's buffer only now: if src is self, the resize may have moved it.
        self._set_items(dest_len, ctypes.addressof(src._buf), src_len)
        return ArrayErrno.OK

    def remove(self, index: int) -> ArrayErrno:
        """Remove the element at ``index``, keeping the order of the rest.

        Complexity: O(n - index) due to the left shift of trailing elements.

        Raises:
            InvalidArgument: ``index`` is negative.
            NoEntry: ``index`` is at or past the end.
        """
        self._check_live()
        if index < 0:
            raise InvalidArgument(f"negative index {index}")
        old_length = self._length
        if index >= old_length:
            raise NoEntry(f"index {index} out of range for length {old_length}")

        if index < old_length - 1:
            # There's data to the right; move it one slot left.
            nbytes = (old_length - index - 1) * self._element_size
            ctypes.memmove(self._item_address(index), self._item_address(index + 1), nbytes)

        try:
            self._resize(old_length - 1)
        except OutOfMemory:
            # The element is gone either way; keep the larger buffer.
            logger.warning("shrink after remove failed; keeping capacity %d", self._capacity)
            self._length = old_length - 1
        return ArrayErrno.OK

    def truncate(self, length: int) -> ArrayErrno:
        """Set the length to ``length``, dropping or adding elements at the end.

        New trailing elements have unspecified contents.

        Raises:
            InvalidArgument: ``length`` is negative.
            SizeOverflow: ``length`` is not a valid index.
            OutOfMemory: the buffer could not grow.
        """
        self._check_live()
        if length < 0:
            raise InvalidArgument(f"negative length {length}")
        if not is_valid_index(length, self._element_size):
            raise SizeOverflow(f"length {length} is too large")
        if length != self._length:
            self._resize(length)
        return ArrayErrno.OK

    def min(self, cmp: Comparator, ctx: Any = None) -> Optional[int]:
        """Return the index of the smallest element per ``cmp``, or None if empty.

        ``cmp(a, b, ctx)`` receives element bytes and returns a negative,
        zero or positive number. On ties the earliest element wins.
        """
        self._check_live()
        return self._scan(cmp, ctx, -1)

    def max(self, cmp: Comparator, ctx: Any = None) -> Optional[int]:
        """Return the index of the largest element per ``cmp``, or None if empty."""
        self._check_live()
        return self._scan(cmp, ctx, 1)

    def item(self, index: int) -> bytes:
        """Return a copy of the bytes of element ``index`` (negative counts from the end)."""
        i = self._normalize_index(index)
        return ctypes.string_at(self._item_address(i), self._element_size)

    def set_item(self, index: int, element) -> None:
        """Overwrite element ``index`` with ``element_size`` bytes."""
        i = self._normalize_index(index)
        data = element_bytes(element, self._element_size)
        ctypes.memmove(self._item_address(i), data, self._element_size)

    def to_bytes(self) -> bytes:
        """Return the live region ``[0, length)`` as bytes."""
        if self._length == 0:
            return b""
        return ctypes.string_at(self._buf, self._length * self._element_size)

    def free(self) -> None:
        """Release the buffer. The array must not be used afterwards."""
        if self._released:
            return
        self._allocator.release(self._buf)
        self._buf = None
        self._length = 0
        self._capacity = 0
        self._released = True

    def __enter__(self) -> "DynArray":
        return self

    def __exit__(self, *exc) -> None:
        self.free()

    def __len__(self) -> int:
        """Number of stored elements. O(1)."""
        return self._length

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return (f"DynArray(element_size={self._element_size}, length={self._length}, "
                f"capacity={self._capacity}, planner={self._planner!r})")
