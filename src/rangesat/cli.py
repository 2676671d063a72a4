"""
rangesat command line launcher for solving and checking problem files
"""
import argparse
import os
import sys

from .config import SolverConfig
from .exceptions import FormatError
from .logging_utils import StructuredLogger, configure_logging
from .problem import Problem
from .solver import solve_problem

EXIT_SOLVED = 0
EXIT_UNSOLVED = 1
EXIT_FORMAT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rangesat", description="Noise-adaptive WalkSAT for range constraints"
    )
    subparsers = parser.add_subparsers(dest="command")

    solve_parser = subparsers.add_parser("solve", help="Search for a satisfying assignment")
    solve_parser.add_argument("path", type=str)
    solve_parser.add_argument("--dimacs", action="store_true", help="Input is DIMACS CNF")
    solve_parser.add_argument("--config", type=str, default=None)
    solve_parser.add_argument("--seed", type=int, default=None)
    solve_parser.add_argument("--noise", type=int, default=None)
    solve_parser.add_argument("--no-adapt", action="store_true")
    solve_parser.add_argument("--max-steps", type=int, default=None)
    solve_parser.add_argument("--max-tries", type=int, default=None)
    solve_parser.add_argument("--timeout", type=float, default=None)
    solve_parser.add_argument("--check", action="store_true")
    solve_parser.add_argument("--trace-dir", type=str, default=None)
    solve_parser.add_argument("--log-level", type=str, default=None)

    check_parser = subparsers.add_parser("check", help="Parse a problem file")
    check_parser.add_argument("path", type=str)
    check_parser.add_argument("--dimacs", action="store_true")

    return parser


def _load(path: str, dimacs: bool, **kwargs) -> Problem:
    if dimacs:
        return Problem.from_cnf_file(path, **kwargs)
    return Problem.from_file(path, **kwargs)


def _apply_overrides(config, args) -> None:
    overrides = {
        "solver.seed": args.seed,
        "solver.noise_level": args.noise,
        "solver.max_steps": args.max_steps,
        "solver.max_tries": args.max_tries,
        "solver.timeout": args.timeout,
        "logging.level": args.log_level,
        "logging.trace_dir": args.trace_dir,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.no_adapt:
        config.set("solver.adaptive_noise", False)
    if args.check:
        config.set("solver.check_consistency", True)


def run_solve(args) -> int:
    config = SolverConfig(args.config)
    _apply_overrides(config, args)
    configure_logging(config.get("logging.level", "WARNING"), config.get("logging.format"))

    problem = _load(args.path, args.dimacs, rng=config.get("solver.seed"))

    trace_logger = None
    trace_dir = config.get("logging.trace_dir")
    if trace_dir:
        run_name = os.path.splitext(os.path.basename(args.path))[0]
        trace_logger = StructuredLogger(trace_dir, run_name)

    try:
        result = solve_problem(problem, config, trace_logger=trace_logger)
    finally:
        if trace_logger is not None:
            trace_logger.finalize()

    print(result)
    if result.model is not None:
        for name, value in result.model.items():
            print(f"{name}={'true' if value else 'false'}")
    return EXIT_SOLVED if result.is_sat else EXIT_UNSOLVED


def run_check(args) -> int:
    problem = _load(args.path, args.dimacs)
    plain = sum(1 for c in problem.constraints if c.is_plain_clause)
    print(f"propositions: {problem.proposition_count}")
    print(f"constraints: {len(problem.constraints)} ({plain} plain clauses)")
    return EXIT_SOLVED


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "solve":
            return run_solve(args)
        elif args.command == "check":
            return run_check(args)
    except FormatError as e:
        print(f"Format error: {e}", file=sys.stderr)
        return EXIT_FORMAT_ERROR
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FORMAT_ERROR
    parser.print_help()
    return EXIT_UNSOLVED


if __name__ == "__main__":
    sys.exit(main())
