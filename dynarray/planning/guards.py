"""
Overflow-safe size arithmetic.

Python integers never wrap, so these guards do not protect the interpreter;
they protect the *model*. Every container size is kept within what a C
``ssize_t`` index and a ``size_t`` byte count could represent on this
platform, and every size computation in the package goes through one of the
predicates below before its result is trusted.

All functions are pure: they return a boolean or a saturated value, never
allocate and never raise.
"""

from __future__ import annotations

import ctypes

# Platform limits (signed index type and byte-address space).
MAX_INDEX = (1 << (ctypes.sizeof(ctypes.c_ssize_t) * 8 - 1)) - 1
MIN_INDEX = -MAX_INDEX - 1
MAX_BYTES = (1 << (ctypes.sizeof(ctypes.c_size_t) * 8)) - 1


def can_add_signed(x: int, y: int) -> bool:
    """Return True if ``x + y`` is representable as a signed index."""
    return (y <= 0 or x <= MAX_INDEX - y) and (y >= 0 or x >= MIN_INDEX - y)


def can_add_unsigned(x: int, y: int) -> bool:
    """Return True if ``x + y`` fits in the unsigned byte-count type."""
    return x <= MAX_BYTES - y


def _div_toward_zero(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def can_mul_signed(x: int, y: int) -> bool:
    """Return True if ``x * y`` is representable as a signed index."""
    if y == 0:
        return True
    # MIN_INDEX / -1 is not representable in two's complement
    if y == -1:
        return x >= -MAX_INDEX
    hi = _div_toward_zero(MAX_INDEX, y)
    lo = _div_toward_zero(MIN_INDEX, y)
    if y > 0:
        return lo <= x <= hi
    return hi <= x <= lo


def can_mul_bytes(count: int, element_size: int) -> bool:
    """Return True if ``count * element_size`` fits the byte-address space."""
    return element_size <= 1 or count <= MAX_BYTES // element_size


def can_add_within(x: int, y: int, cap: int) -> bool:
    """Return True if ``x + y <= cap`` without exceeding ``cap`` on the way."""
    return x <= cap and y <= cap - x


def add_capped(x: int, y: int, cap: int) -> int:
    """Return ``min(x + y, cap)``."""
    return x + y if can_add_within(x, y, cap) else cap


def fits_as_signed_index(x: int) -> bool:
    """Return True if the unsigned value ``x`` fits the signed index type."""
    return x <= MAX_INDEX


def to_signed_capped(x: int) -> int:
    """Convert an unsigned value to a signed index, saturating at MAX_INDEX."""
    return MAX_INDEX if x > MAX_INDEX else x


def is_valid_index(n: int, element_size: int) -> bool:
    """Return True if ``n`` can be used as a length/capacity for the element size.

    A valid index is non-negative, fits the signed index type, and ``n``
    elements of ``element_size`` bytes (the last one included) fit the
    byte-address space.
    """
    return 0 <= n and fits_as_signed_index(n) and can_mul_bytes(n, element_size)
