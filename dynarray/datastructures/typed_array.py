from __future__ import annotations

import ctypes
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from ..errors import ArrayErrno, InvalidArgument
from .dyn_array import DynArray

T = TypeVar("T")


def _natural_cmp(a: Any, b: Any, ctx: Any = None) -> int:
    return (a > b) - (a < b)


class TypedArray(Generic[T]):
    """A typed view over a ``DynArray`` whose elements are one ctypes type.

    The element type fixes ``element_size`` (``ctypes.sizeof``) for the
    lifetime of the array, so values go in and come out as Python objects
    while the storage stays a contiguous C array:

        arr = TypedArray(ctypes.c_int)
        arr.append(50)
        arr.items[0]    # -> 50, read straight from the buffer

    ``IntArray``, ``LongArray`` and ``DoubleArray`` fix the type up front.
    Structures work too; ``items[i]`` then returns a structure that shares
    memory with the buffer until the next resizing call.
    """

    __slots__ = ("_array", "_ctype")

    # Element type for subclasses that fix one.
    default_type: Optional[type] = None

    def __init__(self, element_type: Optional[type] = None, *, hint: Optional[int] = None,
                 allocator=None) -> None:
        ctype = element_type if element_type is not None else self.default_type
        if ctype is None:
            raise InvalidArgument("an element type is required")

        self._ctype = ctype
        size = ctypes.sizeof(ctype)
        if hint is None:
            self._array = DynArray(size, allocator=allocator)
        else:
            self._array = DynArray.with_hint(size, hint, allocator=allocator)

    # ------------------------------- internals --------------------------------

    def _wrap(self, array: DynArray) -> "TypedArray[T]":
        """Return a view of the same class and type over ``array``."""
        out = object.__new__(type(self))
        out._array = array
        out._ctype = self._ctype
        return out

    def _encode(self, value: Any) -> bytes:
        if not isinstance(value, self._ctype):
            value = self._ctype(value)
        return bytes(value)

    def _decode(self, data: bytes) -> T:
        obj = self._ctype.from_buffer_copy(data)
        # Simple types unwrap to Python values; structures stay as they are.
        if isinstance(obj, (ctypes.Structure, ctypes.Union, ctypes.Array)):
            return obj
        return getattr(obj, "value", obj)

    # ------------------------------ constructors ------------------------------

    @classmethod
    def from_values(cls, values: Iterable[Any], element_type: Optional[type] = None,
                    *, allocator=None) -> "TypedArray":
        """Build an array from Python values in one allocation."""
        ctype = element_type if element_type is not None else cls.default_type
        if ctype is None:
            raise InvalidArgument("an element type is required")
        vals = list(values)
        raw = (ctype * len(vals))(*vals) if vals else None
        return cls.from_raw(raw, len(vals), element_type, allocator=allocator)

    @classmethod
    def from_raw(cls, src, src_len: int, element_type: Optional[type] = None,
                 *, allocator=None) -> "TypedArray":
        """Build an array from ``src_len`` elements of a C buffer (see ``DynArray.from_raw``)."""
        ctype = element_type if element_type is not None else cls.default_type
        if ctype is None:
            raise InvalidArgument("an element type is required")
        out = object.__new__(cls)
        out._ctype = ctype
        out._array = DynArray.from_raw(src, src_len, ctypes.sizeof(ctype), allocator=allocator)
        return out

    def copy(self) -> "TypedArray[T]":
        return self._wrap(self._array.copy())

    def slice(self, start: int, stop: int, step: int = 1) -> "TypedArray[T]":
        """Slice with Python semantics on non-negative bounds (see ``DynArray.slice``)."""
        return self._wrap(self._array.slice(start, stop, step))

    # ---------------------------------- API -----------------------------------

    @property
    def array(self) -> DynArray:
        """The untyped container underneath."""
        return self._array

    @property
    def element_type(self) -> type:
        return self._ctype

    @property
    def length(self) -> int:
        return self._array.length

    @property
    def capacity(self) -> int:
        return self._array.capacity

    @property
    def items(self):
        """ctypes array over the live elements. Invalid after any resize."""
        n = self._array.length
        if n == 0:
            return (self._ctype * 0)()
        return (self._ctype * n).from_buffer(self._array.buffer)

    def append(self, value: T) -> ArrayErrno:
        return self._array.append(self._encode(value))

    def extend(self, other: "TypedArray[T]") -> ArrayErrno:
        """Append a copy of ``other`` (which may be this array)."""
        if other._ctype is not self._ctype:
            raise InvalidArgument(
                f"element type mismatch: {self._ctype.__name__} != {other._ctype.__name__}")
        return self._array.extend(other._array)

    def remove(self, index: int) -> ArrayErrno:
        return self._array.remove(index)

    def truncate(self, length: int) -> ArrayErrno:
        return self._array.truncate(length)

    def min(self, cmp: Optional[Callable[[T, T, Any], int]] = None, ctx: Any = None) -> Optional[int]:
        """Index of the smallest element (earliest on ties), or None if empty.

        ``cmp(a, b, ctx)`` compares decoded values; natural ordering by default.
        """
        cmp = cmp or _natural_cmp
        return self._array.min(lambda a, b, c: cmp(self._decode(a), self._decode(b), c), ctx)

    def max(self, cmp: Optional[Callable[[T, T, Any], int]] = None, ctx: Any = None) -> Optional[int]:
        """Index of the largest element (earliest on ties), or None if empty."""
        cmp = cmp or _natural_cmp
        return self._array.max(lambda a, b, c: cmp(self._decode(a), self._decode(b), c), ctx)

    def to_list(self) -> list:
        """Convert to a plain Python ``list`` of decoded values."""
        return [self._decode(self._array.item(i)) for i in range(self._array.length)]

    def free(self) -> None:
        self._array.free()

    def __enter__(self) -> "TypedArray[T]":
        return self

    def __exit__(self, *exc) -> None:
        self.free()

    def __len__(self) -> int:
        return self._array.length

    def __iter__(self) -> Iterator[T]:
        """Yield decoded items from left to right."""
        for i in range(self._array.length):
            yield self._decode(self._array.item(i))

    def __getitem__(self, idx: int) -> T:
        """Return the element at ``idx`` (supports negative indices)."""
        return self._decode(self._array.item(idx))

    def __setitem__(self, idx: int, value: T) -> None:
        self._array.set_item(idx, self._encode(value))

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{type(self).__name__}({self.to_list()!r})"


class IntArray(TypedArray[int]):
    __slots__ = ()
    default_type = ctypes.c_int


class LongArray(TypedArray[int]):
    __slots__ = ()
    default_type = ctypes.c_long


class DoubleArray(TypedArray[float]):
    __slots__ = ()
    default_type = ctypes.c_double
