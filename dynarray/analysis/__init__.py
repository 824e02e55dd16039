from .workloads import WORKLOADS, capacity_steps, measure_workload, run_benchmarks, run_workload

__all__ = ["WORKLOADS", "capacity_steps", "measure_workload", "run_benchmarks", "run_workload"]
