"""
dynarray Command-Line Interface (CLI)

Small tools for looking at what the capacity planner does:
- Workload benchmarks (reallocations, bytes moved, timings) written to CSV
- Capacity progression of a growing array, with or without a length hint

Usage examples:
    python -m dynarray.cli bench --path planner.csv --base-input 100 --steps 6
    python -m dynarray.cli bench --path hinted.csv --hint 5000
    python -m dynarray.cli plan --length 200
    python -m dynarray.cli plan --length 200 --hint 150 --element-size 8
"""

import argparse
import logging
import os
import sys

from .analysis import workloads
from .errors import DynArrayError

logger = logging.getLogger("dynarray")

# Environment override for the default log level (e.g. DEBUG, WARNING).
LOG_LEVEL_ENV = "DYNARRAY_LOG_LEVEL"


def setup_logging(verbose: bool = False) -> None:
    """Configure application-wide logging."""
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.environ.get(LOG_LEVEL_ENV, "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# -------------------------------------------------------------------
# Command handlers
# -------------------------------------------------------------------
def cmd_bench(args):
    """Run the planner workloads and write a CSV report."""
    selected = workloads.WORKLOADS
    if args.workload:
        selected = {name: workloads.WORKLOADS[name] for name in args.workload}

    rows = workloads.run_benchmarks(
        args.path,
        base_input=args.base_input,
        steps=args.steps,
        iterations=args.iterations,
        hint=args.hint,
        workloads=selected,
    )
    print(f"Benchmark completed. {rows} rows written to {args.path}")


def cmd_plan(args):
    """Print each capacity the planner picks while growing to --length."""
    steps = workloads.capacity_steps(args.length, element_size=args.element_size, hint=args.hint)
    if not steps:
        print("No allocations.")
        return

    print("length  capacity")
    for length, capacity in steps:
        print(f"{length:>6}  {capacity:>8}")
    print(f"{len(steps)} capacity changes for {args.length} appends")


# -------------------------------------------------------------------
# CLI parser setup
# -------------------------------------------------------------------
def positive_int(text):
    """argparse type for counts that must be at least 1."""
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def build_parser():
    """Build the argparse command-line parser with subcommands."""
    p = argparse.ArgumentParser(prog="python -m dynarray.cli", description="dynarray planner tools")
    p.add_argument("-v", "--verbose", action="store_true", help="Log resizes (DEBUG level)")
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- benchmarks ---
    s = sub.add_parser("bench", help="Measure planner cost over workloads")
    s.add_argument("--path", required=True)
    s.add_argument("--base-input", type=positive_int, default=100)
    s.add_argument("--steps", type=positive_int, default=8)
    s.add_argument("--iterations", type=positive_int, default=5)
    s.add_argument("--hint", type=int, default=None)
    s.add_argument("--workload", action="append", choices=sorted(workloads.WORKLOADS))
    s.set_defaults(func=cmd_bench)

    # --- capacity progression ---
    s = sub.add_parser("plan", help="Show capacity changes while appending")
    s.add_argument("--length", type=int, required=True)
    s.add_argument("--element-size", type=int, default=workloads.ELEMENT_SIZE)
    s.add_argument("--hint", type=int, default=None)
    s.set_defaults(func=cmd_plan)

    return p


# -------------------------------------------------------------------
# Entry point
# -------------------------------------------------------------------
def main(argv=None):
    """CLI entry point when invoked via `python -m dynarray.cli`."""
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        args.func(args)
    except DynArrayError as e:
        logger.error("%s failed: %s", args.cmd, e)
        print(f"error: {e.errno.name}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
