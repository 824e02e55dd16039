"""dynarray - type-safe contiguous dynamic arrays backed by ctypes buffers."""

from .datastructures import DoubleArray, DynArray, IntArray, LongArray, SparseArray, TypedArray
from .errors import (
    ArrayErrno,
    DynArrayError,
    InvalidArgument,
    NoEntry,
    OutOfMemory,
    SizeOverflow,
)

__version__ = "1.0.0"

__all__ = [
    "ArrayErrno",
    "DoubleArray",
    "DynArray",
    "DynArrayError",
    "IntArray",
    "InvalidArgument",
    "LongArray",
    "NoEntry",
    "OutOfMemory",
    "SizeOverflow",
    "SparseArray",
    "TypedArray",
]
