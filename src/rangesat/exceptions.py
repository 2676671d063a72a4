"""
Custom exceptions for the rangesat solver.

This module defines the error taxonomy used by the parser, the constraint
tracker and the solver loop.
"""

from typing import Any, Optional


class RangeSATError(Exception):
    """Base class for all rangesat specific exceptions."""

    def __init__(self, message: str = None):
        """
        Initialize the exception.

        Args:
            message: Optional error message
        """
        self.message = message
        super().__init__(message)


class FormatError(RangeSATError):
    """
    Exception raised when a constraint expression cannot be parsed.

    This covers empty clauses, dangling operators and malformed range prefixes.
    """

    def __init__(
        self,
        message: str = "Malformed constraint expression",
        expression: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            expression: The offending expression text
            line_number: 1-based line number in the source, if known
        """
        self.reason = message
        self.expression = expression
        self.line_number = line_number

        if line_number is not None:
            message = f"line {line_number}: {message}"
        if expression is not None:
            message = f"{message}: {expression!r}"

        super().__init__(message)


class InternalConsistencyError(RangeSATError):
    """
    Exception raised when the cached counts or the unsatisfied set disagree
    with a from-scratch recomputation.

    This always indicates a bug in the flip or delta bookkeeping.
    """

    def __init__(
        self,
        message: str = "Internal consistency check failed",
        constraint_index: Optional[int] = None,
        last_flip: Any = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            constraint_index: Index of the first offending constraint
            last_flip: The literal flipped most recently, if any
        """
        self.constraint_index = constraint_index
        self.last_flip = last_flip

        details = []
        if constraint_index is not None:
            details.append(f"constraint={constraint_index}")
        details.append(f"last_flip={last_flip}")
        message = f"{message} ({', '.join(details)})"

        super().__init__(message)


class SolverTimeoutError(RangeSATError):
    """
    Exception raised when a solve run exceeds its time limit and the caller
    asked for an exception instead of a TIMEOUT result.
    """

    def __init__(
        self,
        message: str = "Solver exceeded time limit",
        time_spent: float = None,
        steps: int = None,
        unsatisfied_constraints: int = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            time_spent: Time spent before timeout (seconds)
            steps: Number of steps taken before timeout
            unsatisfied_constraints: Number of constraints still unsatisfied
        """
        self.time_spent = time_spent
        self.steps = steps
        self.unsatisfied_constraints = unsatisfied_constraints

        details = []
        if time_spent is not None:
            details.append(f"time_spent={time_spent:.2f}s")
        if steps is not None:
            details.append(f"steps={steps}")
        if unsatisfied_constraints is not None:
            details.append(f"unsatisfied_constraints={unsatisfied_constraints}")
        if details:
            message = f"{message} ({', '.join(details)})"

        super().__init__(message)
