"""
Error codes and exceptions raised by the dynarray containers.

Every failure carries one of the signed codes in `ArrayErrno`. The codes
are surfaced as exceptions whose ``errno`` attribute holds the code, so
callers can either catch a specific class or switch on the number:

    try:
        arr.append(value)
    except DynArrayError as e:
        if e.errno == ArrayErrno.EOVERFLOW:
            ...

Each exception class also derives from the closest builtin exception, so
code written against ``list`` (``IndexError``, ``ValueError``...) keeps
working.
"""

from __future__ import annotations

from enum import IntEnum


class ArrayErrno(IntEnum):
    """Signed result codes. Zero on success, negative on failure."""

    OK = 0
    EINVAL = -1     # Invalid argument
    ENOENT = -2     # No such entry
    ENOMEM = -3     # Out of memory
    EOVERFLOW = -4  # Operation would overflow


class DynArrayError(Exception):
    """Base class for every container failure."""

    errno = ArrayErrno.EINVAL

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.errno.name)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{type(self).__name__}({self.errno.name}: {self.args[0]!r})"


class InvalidArgument(DynArrayError, ValueError):
    errno = ArrayErrno.EINVAL


class NoEntry(DynArrayError, IndexError):
    errno = ArrayErrno.ENOENT


class OutOfMemory(DynArrayError, MemoryError):
    errno = ArrayErrno.ENOMEM


class SizeOverflow(DynArrayError, OverflowError):
    errno = ArrayErrno.EOVERFLOW


__all__ = [
    "ArrayErrno",
    "DynArrayError",
    "InvalidArgument",
    "NoEntry",
    "OutOfMemory",
    "SizeOverflow",
]
