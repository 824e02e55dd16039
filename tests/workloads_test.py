import csv

import pytest

from dynarray.analysis import workloads
from dynarray.errors import InvalidArgument


def test_append_workload_counters():
    stats = workloads.run_workload(workloads.workload_append, 1000)
    assert stats["allocs"] == 1
    assert 0 < stats["reallocs"] < 60
    assert stats["final_capacity"] >= 1000
    # Growth moves a bounded multiple of the data.
    assert stats["bytes_moved"] <= 12 * 1000 * workloads.ELEMENT_SIZE


def test_churn_at_boundary_does_not_thrash():
    quiet = workloads.run_workload(workloads.workload_churn, 500)
    fill_only = workloads.run_workload(workloads.workload_append, 500)
    assert quiet["reallocs"] - fill_only["reallocs"] <= 1


def test_mass_remove_shrinks():
    stats = workloads.run_workload(workloads.workload_mass_remove, 2000)
    assert stats["final_capacity"] < stats["peak_capacity"]


def test_hinted_workload_allocates_less():
    plain = workloads.run_workload(workloads.workload_append, 3000)
    hinted = workloads.run_workload(workloads.workload_append, 3000, hint=3000)
    assert hinted["reallocs"] < plain["reallocs"]


def test_measure_workload_shape():
    m = workloads.measure_workload(workloads.workload_extend_self, 64, iterations=2)
    assert m["final_capacity"] >= 128
    assert m["std_time_ms"] >= 0.0
    assert set(m) >= {"avg_time_ms", "reallocs", "bytes_moved", "peak_capacity"}


def test_run_benchmarks_writes_csv(tmp_path):
    out = tmp_path / "bench.csv"
    rows = workloads.run_benchmarks(str(out), base_input=10, steps=2, iterations=1)
    assert rows == 2 * len(workloads.WORKLOADS)
    with open(out, newline="") as f:
        lines = list(csv.reader(f))
    assert lines[0][:2] == ["Input Size", "Workload"]
    assert len(lines) == rows + 1
    assert {line[1] for line in lines[1:]} == set(workloads.WORKLOADS)


def test_capacity_steps():
    steps = workloads.capacity_steps(30)
    assert steps[0] == (1, 5)
    assert all(cap >= length for length, cap in steps)
    hinted = workloads.capacity_steps(10, hint=30)
    assert hinted == [(0, 10)]


def test_measure_workload_needs_an_iteration():
    with pytest.raises(InvalidArgument):
        workloads.measure_workload(workloads.workload_append, 10, iterations=0)
