import ctypes

import pytest

from dynarray.datastructures import DynArray, IntArray
from dynarray.memory.allocator import CtypesAllocator

INT_SIZE = ctypes.sizeof(ctypes.c_int)


def enc(value: int) -> bytes:
    """Encode a Python int as one C int element."""
    return bytes(ctypes.c_int(value))


def dec(data: bytes) -> int:
    return ctypes.c_int.from_buffer_copy(data).value


def int_cmp(a: bytes, b: bytes, ctx=None) -> int:
    x, y = dec(a), dec(b)
    return (x > y) - (x < y)


class FailingAllocator(CtypesAllocator):
    """Allocator that starts failing once ``fail`` is set."""

    __slots__ = ("fail",)

    def __init__(self) -> None:
        self.fail = False

    def alloc(self, nbytes):
        if self.fail and nbytes:
            return None
        return super().alloc(nbytes)


@pytest.fixture
def a1():
    """An empty int array, freed after the test."""
    arr = DynArray(INT_SIZE)
    yield arr
    arr.free()


@pytest.fixture
def ints():
    arr = IntArray()
    yield arr
    arr.free()


def append_seq(arr: DynArray, start: int, stop: int) -> None:
    for v in range(start, stop):
        arr.append(enc(v))
