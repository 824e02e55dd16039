from .dyn_array import DynArray
from .typed_array import TypedArray, IntArray, LongArray, DoubleArray
from .sparse_array import SparseArray

__all__ = [
    "DynArray",
    "TypedArray",
    "IntArray",
    "LongArray",
    "DoubleArray",
    "SparseArray",
]
