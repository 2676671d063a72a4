"""
Bounded solve loop around ``Problem.step_one``.

The search itself has no stopping rule besides "all constraints satisfied";
this module supplies the step budget, restarts and the wall-clock limit.
"""

import logging
import time
from enum import Enum
from typing import Any

from .config import SolverConfig, get_config
from .exceptions import SolverTimeoutError
from .logging_utils import StructuredLogger
from .problem import Problem

logger = logging.getLogger(__name__)


class SolverStatus(Enum):
    """Enum representing the status of a solver run."""

    UNKNOWN = "unknown"
    SATISFIABLE = "satisfiable"
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"


class SolverResult:
    """
    Result of a solve run.
    """

    def __init__(
        self,
        status: SolverStatus = SolverStatus.UNKNOWN,
        model: dict[str, bool] | None = None,
        steps: int = 0,
        runtime: float = 0.0,
        satisfied_constraints: int = 0,
        total_constraints: int = 0,
        noise_level: int = 0,
        statistics: dict[str, Any] | None = None,
    ):
        self.status = status
        self.model = model
        self.steps = steps
        self.runtime = runtime
        self.satisfied_constraints = satisfied_constraints
        self.total_constraints = total_constraints
        self.noise_level = noise_level
        self.statistics = statistics or {}

    @property
    def is_sat(self) -> bool:
        """Returns True if a satisfying assignment was found."""
        return self.status == SolverStatus.SATISFIABLE

    @property
    def satisfaction_ratio(self) -> float:
        if self.total_constraints == 0:
            return 1.0
        return self.satisfied_constraints / self.total_constraints

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "steps": self.steps,
            "runtime": self.runtime,
            "satisfied_constraints": self.satisfied_constraints,
            "total_constraints": self.total_constraints,
            "noise_level": self.noise_level,
            "statistics": self.statistics,
        }

    def __str__(self) -> str:
        status_str = str(self.status.value).upper()
        return (
            f"SAT Result: {status_str} ({self.satisfied_constraints}/"
            f"{self.total_constraints} constraints, {self.steps} steps, "
            f"{self.runtime:.4f}s)"
        )


class WalkSATSolver:
    """
    Runs noise-adaptive WalkSAT steps on a problem until it is solved or a
    budget runs out.
    """

    def __init__(
        self,
        problem: Problem,
        max_steps: int | None = None,
        max_tries: int | None = None,
        timeout: float | None = None,
        check_consistency: bool | None = None,
        trace_logger: StructuredLogger | None = None,
        raise_on_timeout: bool = False,
    ):
        """
        Initialize the solver.

        Args:
            problem: Problem to solve; its state is advanced in place
            max_steps: Step budget per try
            max_tries: Number of tries; every try after the first restarts
                from a fresh random assignment
            timeout: Wall-clock limit in seconds for the whole run
            check_consistency: Recompute tracker state after every step and compare
            trace_logger: Optional structured logger receiving every step
            raise_on_timeout: Raise SolverTimeoutError instead of returning
                a TIMEOUT result
        """
        config = get_config()

        self.problem = problem
        self.max_steps = (
            max_steps if max_steps is not None else config.get("solver.max_steps", 100000)
        )
        self.max_tries = (
            max_tries if max_tries is not None else config.get("solver.max_tries", 1)
        )
        self.timeout = (
            timeout if timeout is not None else config.get("solver.timeout", 30.0)
        )
        self.check_consistency = (
            check_consistency
            if check_consistency is not None
            else config.get("solver.check_consistency", False)
        )
        self.trace_logger = trace_logger
        self.raise_on_timeout = raise_on_timeout

        self.interrupted = False
        self.best_model = None
        self.best_unsatisfied = None
        self.stats = {
            "steps": 0,
            "tries": 0,
            "random_moves": 0,
            "greedy_moves": 0,
        }

    def _record_best(self) -> None:
        unsatisfied = self.problem.unsatisfied_count
        if self.best_unsatisfied is None or unsatisfied < self.best_unsatisfied:
            self.best_unsatisfied = unsatisfied
            self.best_model = self.problem.model()

    def _trace(self) -> None:
        record = self.problem.last_step
        if self.trace_logger is None or record is None:
            return
        self.trace_logger.log_step(
            step=record.step,
            constraint=record.constraint,
            proposition=self.problem.registry[record.literal.proposition].name,
            value=self.problem.value(record.literal.proposition),
            delta=record.delta,
            random_move=record.random_move,
            noise_level=record.noise_level,
            unsatisfied=self.problem.unsatisfied_count,
        )

    def solve(self) -> SolverResult:
        """
        Run the search.

        Returns:
            SolverResult with the best assignment found

        Raises:
            SolverTimeoutError: If the time limit expires and
                ``raise_on_timeout`` is set
            InternalConsistencyError: If consistency checking is enabled and
                the tracker state is corrupt
        """
        start_time = time.time()
        self.interrupted = False
        timed_out = False
        self._record_best()

        for _ in range(self.max_tries):
            if self.problem.is_solved or self.interrupted or timed_out:
                break

            if self.stats["tries"] > 0:
                logger.debug("Restarting from a fresh random assignment")
                self.problem.restart()
                self._record_best()
            self.stats["tries"] += 1

            for _ in range(self.max_steps):
                if self.problem.is_solved or self.interrupted:
                    break
                if time.time() - start_time > self.timeout:
                    timed_out = True
                    break

                solved = self.problem.step_one()
                self.stats["steps"] += 1
                if self.problem.last_step.random_move:
                    self.stats["random_moves"] += 1
                else:
                    self.stats["greedy_moves"] += 1

                if self.check_consistency:
                    self.problem.check_consistency()
                self._trace()
                self._record_best()

                if solved:
                    break

        runtime = time.time() - start_time
        total = len(self.problem.constraints)

        if self.problem.is_solved:
            status = SolverStatus.SATISFIABLE
            model = self.problem.model()
            unsatisfied = 0
        else:
            status = (
                SolverStatus.INTERRUPTED
                if self.interrupted
                else SolverStatus.TIMEOUT if timed_out else SolverStatus.UNKNOWN
            )
            model = self.best_model
            unsatisfied = self.best_unsatisfied

        result = SolverResult(
            status=status,
            model=model,
            steps=self.stats["steps"],
            runtime=runtime,
            satisfied_constraints=total - unsatisfied,
            total_constraints=total,
            noise_level=self.problem.noise_level,
            statistics=dict(self.stats),
        )
        logger.info(str(result))

        if self.trace_logger is not None:
            self.trace_logger.log_result(result.to_dict())

        if timed_out and self.raise_on_timeout:
            raise SolverTimeoutError(
                time_spent=runtime,
                steps=self.stats["steps"],
                unsatisfied_constraints=self.problem.unsatisfied_count,
            )
        return result

    def interrupt(self) -> None:
        """
        Interrupt the solving process.
        """
        logger.debug("Interrupting WalkSAT solver")
        self.interrupted = True

    def configure(self, config: dict[str, Any]) -> None:
        """
        Configure the solver with the given parameters.

        Args:
            config: Dictionary of configuration parameters
        """
        for key, value in config.items():
            if key == "noise_level":
                self.problem.noise_level = value
            elif key == "adaptive_noise":
                self.problem.adaptive_noise = bool(value)
            elif hasattr(self, key):
                setattr(self, key, value)
            else:
                logger.warning(f"Unknown configuration parameter: {key}")
                continue
            logger.debug(f"Set {key}={value} for WalkSAT solver")


def solve_problem(
    problem: Problem,
    config: SolverConfig | None = None,
    trace_logger: StructuredLogger | None = None,
) -> SolverResult:
    """
    Solve a problem with settings taken from a configuration.

    Args:
        problem: Problem to solve
        config: Configuration to use; the global one when omitted
        trace_logger: Optional structured logger receiving every step

    Returns:
        SolverResult
    """
    config = config or get_config()
    problem.noise_level = config.get("solver.noise_level", problem.noise_level)
    problem.adaptive_noise = bool(config.get("solver.adaptive_noise", True))

    solver = WalkSATSolver(
        problem,
        max_steps=config.get("solver.max_steps", 100000),
        max_tries=config.get("solver.max_tries", 1),
        timeout=config.get("solver.timeout", 30.0),
        check_consistency=config.get("solver.check_consistency", False),
        trace_logger=trace_logger,
    )
    return solver.solve()
