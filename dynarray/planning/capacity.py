"""
Capacity planning for the dynamic array.

A planner answers one question: given the element size, the capacity
currently backing a container and the length it is about to have, which
capacity should back it afterwards? The container reallocates only when
the answer differs from the current capacity.

Two planners are provided:

- `DefaultPlanner` grows with a proportional margin and shrinks only when
  usage drops below ``1 / MIN_USAGE_RATIO`` (hysteresis).
- `HintedPlanner` is used when the client knows the length it most
  expects. It models the final length as a normal distribution centred on
  the hint with a standard deviation of ``hint / HINT_STDDEV_RATIO`` and
  avoids reallocating anywhere inside the expected band.

Both planners always return a valid index no smaller than the requested
length.
"""

from __future__ import annotations

from typing import Optional

from .guards import (
    MAX_INDEX,
    add_capped,
    can_add_within,
    can_mul_bytes,
    is_valid_index,
)

# Growth margin: capacity = length * (1 + 1/MARGIN_RATIO) + MIN_MARGIN
MARGIN_RATIO = 8
MIN_MARGIN = 4

# Shrink once length drops below capacity / MIN_USAGE_RATIO.
MIN_USAGE_RATIO = 2

# Estimated standard deviation of the final length is hint / HINT_STDDEV_RATIO.
HINT_STDDEV_RATIO = 3

if MIN_MARGIN > MAX_INDEX - MAX_INDEX // MARGIN_RATIO:
    raise ImportError("MIN_MARGIN does not fit below MAX_INDEX on this platform")


class DefaultPlanner:
    """Proportional growth with shrink hysteresis."""

    __slots__ = ()

    hint: Optional[int] = None

    def plan(self, element_size: int, old_capacity: int, new_length: int) -> int:
        """Return the capacity that should back ``new_length`` elements.

        Args:
            element_size: Bytes per element (> 0).
            old_capacity: Capacity currently allocated.
            new_length: Requested length; must already be a valid index.
        """
        # Inside the hysteresis range: neither full nor badly under-used.
        if old_capacity // MIN_USAGE_RATIO <= new_length <= old_capacity:
            return old_capacity

        margin = new_length // MARGIN_RATIO + MIN_MARGIN
        if (not can_add_within(new_length, margin, MAX_INDEX)
                or not can_mul_bytes(new_length + margin, element_size)):
            margin = 0

        return new_length + margin

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "DefaultPlanner()"


class HintedPlanner:
    """Three-sigma planning around an expected length.

    With ``s = hint / 3``:

    ============================  ==========================================
    new length                    capacity
    ============================  ==========================================
    below ``hint - 2s``           ``hint - 2s`` (never shrink below the tail)
    ``[hint - 2s, hint - s)``     linear ramp from ``hint - 2s`` to ``hint``
    ``[hint - s, hint)``          ``hint``
    ``hint`` and above            length plus ``MIN_MARGIN``
    ============================  ==========================================

    The current capacity is kept whenever it already holds the new length,
    covers the lower tail, and is either within one sigma above the hint or
    wastes at most one sigma.
    """

    __slots__ = ("hint", "stddev", "one_sigma_low", "one_sigma_high", "two_sigma_low")

    def __init__(self, hint: int) -> None:
        if hint < 0:
            raise ValueError(f"length hint must be non-negative, got {hint}")
        stddev = hint // HINT_STDDEV_RATIO
        if 2 * stddev > hint:
            raise ValueError(f"length hint {hint} leaves no room for two sigmas")

        self.hint = hint
        self.stddev = stddev
        self.one_sigma_low = hint - stddev
        self.one_sigma_high = add_capped(hint, stddev, MAX_INDEX)
        self.two_sigma_low = hint - 2 * stddev

    def plan(self, element_size: int, old_capacity: int, new_length: int) -> int:
        """Return the capacity that should back ``new_length`` elements.

        ``hint`` must be a valid index for ``element_size`` (checked by the
        container when the hint is set), so every value at or below it is
        addressable.
        """
        if (old_capacity >= new_length
                and old_capacity >= self.two_sigma_low
                and (old_capacity <= self.one_sigma_high
                     or old_capacity - new_length <= self.stddev)):
            return old_capacity

        if new_length < self.two_sigma_low:
            return self.two_sigma_low

        if new_length < self.one_sigma_low:
            return 2 * new_length - self.two_sigma_low

        if new_length < self.hint:
            return self.hint

        capacity = add_capped(new_length, MIN_MARGIN, MAX_INDEX)
        if not is_valid_index(capacity, element_size):
            return new_length
        return capacity

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"HintedPlanner(hint={self.hint})"


def make_planner(hint: Optional[int] = None):
    """Return the planner for a container with an optional length hint."""
    if hint is None:
        return DefaultPlanner()
    return HintedPlanner(hint)
