"""Planner cost measurement.

Runs a few representative workloads against a `CountingAllocator` and
reports how much work the capacity planner caused: number of
reallocations, bytes moved by them, peak capacity, and wall time. Results
are averaged over several iterations and written to CSV, one row per
(workload, input size) pair.
"""

from __future__ import annotations

import csv
import ctypes
import logging
import statistics
import time
from typing import Callable, Dict, Optional

from ..datastructures.dyn_array import DynArray
from ..errors import InvalidArgument
from ..memory.allocator import CountingAllocator

logger = logging.getLogger(__name__)

ELEMENT = ctypes.c_int
ELEMENT_SIZE = ctypes.sizeof(ELEMENT)

Workload = Callable[[DynArray, int], None]


def _encode(value: int) -> bytes:
    return bytes(ELEMENT(value))


# -----------------------------------------------------------
# Workloads
# -----------------------------------------------------------

def workload_append(arr: DynArray, n: int) -> None:
    """Append ``n`` elements one at a time."""
    for i in range(n):
        arr.append(_encode(i))


def workload_churn(arr: DynArray, n: int) -> None:
    """Fill to ``n``, then alternate append/remove at the tail ``n`` times."""
    workload_append(arr, n)
    x = _encode(-1)
    for _ in range(n):
        arr.append(x)
        arr.remove(arr.length - 1)


def workload_extend_self(arr: DynArray, n: int) -> None:
    """Fill to ``n`` and double the contents with ``extend(self)``."""
    workload_append(arr, n)
    arr.extend(arr)


def workload_mass_remove(arr: DynArray, n: int) -> None:
    """Fill to ``n`` then remove everything from the tail."""
    workload_append(arr, n)
    while arr.length:
        arr.remove(arr.length - 1)


WORKLOADS: Dict[str, Workload] = {
    "append": workload_append,
    "churn": workload_churn,
    "extend_self": workload_extend_self,
    "mass_remove": workload_mass_remove,
}


# -----------------------------------------------------------
# Measurement
# -----------------------------------------------------------

def run_workload(workload: Workload, input_size: int, hint: Optional[int] = None) -> dict:
    """Run ``workload`` once on a fresh array and return its counters."""
    allocator = CountingAllocator()
    if hint is None:
        arr = DynArray(ELEMENT_SIZE, allocator=allocator)
    else:
        arr = DynArray.with_hint(ELEMENT_SIZE, hint, allocator=allocator)

    start = time.perf_counter()
    with arr:
        workload(arr, input_size)
        peak_capacity = allocator.peak_bytes // ELEMENT_SIZE
        final_capacity = arr.capacity
    elapsed_ms = (time.perf_counter() - start) * 1000

    stats = allocator.as_dict()
    stats.update(
        time_ms=elapsed_ms,
        peak_capacity=peak_capacity,
        final_capacity=final_capacity,
    )
    return stats


def measure_workload(workload: Workload, input_size: int, iterations: int = 5,
                     hint: Optional[int] = None) -> dict:
    """Run the workload several times; return averages and time std deviation."""
    if iterations < 1:
        raise InvalidArgument(f"iterations must be at least 1, got {iterations}")
    runs = [run_workload(workload, input_size, hint) for _ in range(iterations)]
    times = [r["time_ms"] for r in runs]
    last = runs[-1]
    return {
        "avg_time_ms": statistics.mean(times),
        "std_time_ms": statistics.stdev(times) if len(times) > 1 else 0.0,
        # Allocation counts are deterministic; any run will do.
        "reallocs": last["reallocs"],
        "bytes_moved": last["bytes_moved"],
        "bytes_moved_per_element": last["bytes_moved"] / max(input_size, 1) / ELEMENT_SIZE,
        "peak_capacity": last["peak_capacity"],
        "final_capacity": last["final_capacity"],
    }


def run_benchmarks(output_file: str, base_input: int = 100, steps: int = 8,
                   iterations: int = 5, hint: Optional[int] = None,
                   workloads: Optional[Dict[str, Workload]] = None) -> int:
    """Run every workload over doubling input sizes and write a CSV report.

    Returns the number of rows written.
    """
    workloads = workloads or WORKLOADS
    input_sizes = [base_input * (2 ** i) for i in range(steps)]
    rows = 0

    with open(output_file, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow([
            "Input Size",
            "Workload",
            "Average Time (ms)",
            "Std Dev Time (ms)",
            "Reallocations",
            "Bytes Moved",
            "Bytes Moved / Element",
            "Peak Capacity",
            "Final Capacity",
        ])

        for name, workload in workloads.items():
            for size in input_sizes:
                m = measure_workload(workload, size, iterations, hint)
                writer.writerow([
                    size,
                    name,
                    f"{m['avg_time_ms']:.3f}",
                    f"{m['std_time_ms']:.3f}",
                    m["reallocs"],
                    m["bytes_moved"],
                    f"{m['bytes_moved_per_element']:.2f}",
                    m["peak_capacity"],
                    m["final_capacity"],
                ])
                rows += 1
                logger.info("%-12s | size %-8d | %8.3f ms | %d reallocs | %d bytes moved",
                            name, size, m["avg_time_ms"], m["reallocs"], m["bytes_moved"])

    return rows


def capacity_steps(target_length: int, element_size: int = ELEMENT_SIZE,
                   hint: Optional[int] = None) -> list:
    """Grow an array one element at a time and record each capacity change.

    Returns ``(length, capacity)`` pairs for every length at which the
    planner picked a new capacity.
    """
    if hint is None:
        arr = DynArray(element_size)
    else:
        arr = DynArray.with_hint(element_size, hint)

    steps = []
    if arr.capacity:
        steps.append((0, arr.capacity))
    zero = bytes(element_size)
    with arr:
        for _ in range(target_length):
            before = arr.capacity
            arr.append(zero)
            if arr.capacity != before:
                steps.append((arr.length, arr.capacity))
    return steps
