"""
rangesat: noise-adaptive WalkSAT over cardinality-range constraints.
"""

from .config import SolverConfig, get_config, load_config
from .exceptions import (
    FormatError,
    InternalConsistencyError,
    RangeSATError,
    SolverTimeoutError,
)
from .model import Constraint, Literal, Proposition, TruthAssignment
from .parser import format_constraint, parse_constraint, parse_dimacs, parse_lines
from .problem import Problem, SearchState
from .registry import PropositionRegistry
from .search import StepRecord, step_one
from .solver import SolverResult, SolverStatus, WalkSATSolver, solve_problem

__version__ = "0.1.0"

__all__ = [
    "Constraint",
    "FormatError",
    "InternalConsistencyError",
    "Literal",
    "Problem",
    "Proposition",
    "PropositionRegistry",
    "RangeSATError",
    "SearchState",
    "SolverConfig",
    "SolverResult",
    "SolverStatus",
    "SolverTimeoutError",
    "StepRecord",
    "TruthAssignment",
    "WalkSATSolver",
    "format_constraint",
    "get_config",
    "load_config",
    "parse_constraint",
    "parse_dimacs",
    "parse_lines",
    "solve_problem",
    "step_one",
]
