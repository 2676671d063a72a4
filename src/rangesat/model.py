"""
Core data model for generalized SAT problems.

Propositions are interned to dense integer indices, literals pair an index
with a polarity, and constraints require the number of true literals to fall
inside an inclusive [min_true, max_true] range. A plain disjunctive clause is
the special case min_true=1, max_true=len(literals).
"""

from dataclasses import dataclass
from typing import Iterable, NamedTuple

import numpy as np

from .exceptions import FormatError


class Literal(NamedTuple):
    """A proposition index together with its polarity."""

    proposition: int
    positive: bool = True

    def negated(self) -> "Literal":
        """Return the literal with the opposite polarity."""
        return Literal(self.proposition, not self.positive)

    def evaluate(self, assignment: "TruthAssignment") -> bool:
        """Truth value of the literal under an assignment."""
        return bool(assignment[self.proposition]) == self.positive

    def __str__(self) -> str:
        return f"{'' if self.positive else '!'}{self.proposition}"


@dataclass(frozen=True)
class Constraint:
    """
    An immutable generalized clause.

    Attributes:
        literals: Ordered literals; order only matters for tie-breaks and display
        min_true: Minimum number of literals that must be true (inclusive)
        max_true: Maximum number of literals that may be true (inclusive)
        index: Position of the constraint in its problem's constraint list
    """

    literals: tuple[Literal, ...]
    min_true: int
    max_true: int
    index: int

    def __post_init__(self):
        if not self.literals:
            raise FormatError("Constraint has no literals")
        if not 0 <= self.min_true <= self.max_true <= len(self.literals):
            raise FormatError(
                f"Invalid range [{self.min_true},{self.max_true}] for "
                f"{len(self.literals)} literal(s)"
            )

    @classmethod
    def clause(cls, literals: Iterable[Literal], index: int) -> "Constraint":
        """Build a plain disjunctive clause: at least one literal true."""
        literals = tuple(literals)
        return cls(literals, 1, len(literals), index)

    def __len__(self) -> int:
        return len(self.literals)

    @property
    def is_plain_clause(self) -> bool:
        return self.min_true == 1 and self.max_true == len(self.literals)

    def accepts(self, true_count: int) -> bool:
        """True if a true-literal count lies inside the satisfaction range."""
        return self.min_true <= true_count <= self.max_true

    def true_literal_count(self, assignment: "TruthAssignment") -> int:
        """Count the literals that are true under an assignment, from scratch."""
        return sum(1 for lit in self.literals if lit.evaluate(assignment))


class Proposition:
    """
    A boolean variable of the problem.

    The back-reference tuples hold constraint indices, one entry per literal
    occurrence, and are filled once when the owning problem is built.
    """

    def __init__(self, name: str, index: int):
        self.name = name
        self.index = index
        self._positive_constraints: tuple[int, ...] = ()
        self._negative_constraints: tuple[int, ...] = ()

    @property
    def positive_constraints(self) -> tuple[int, ...]:
        """Indices of constraints in which the proposition appears un-negated."""
        return self._positive_constraints

    @property
    def negative_constraints(self) -> tuple[int, ...]:
        """Indices of constraints in which the proposition appears negated."""
        return self._negative_constraints

    def __repr__(self) -> str:
        return f"Proposition({self.name!r}, {self.index})"

    def __str__(self) -> str:
        return self.name


class TruthAssignment:
    """Total mapping from proposition index to a boolean value."""

    def __init__(self, values: Iterable[bool]):
        self._values = np.array(list(values), dtype=bool)

    @classmethod
    def random(cls, size: int, rng: np.random.Generator) -> "TruthAssignment":
        """Draw a uniformly random assignment over ``size`` propositions."""
        return cls(rng.random(size) < 0.5)

    def flip(self, proposition: int) -> bool:
        """
        Toggle one proposition's value.

        Args:
            proposition: Index of the proposition to flip

        Returns:
            The new value of the proposition
        """
        self._values[proposition] = not self._values[proposition]
        return bool(self._values[proposition])

    def __getitem__(self, proposition: int) -> bool:
        return bool(self._values[proposition])

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TruthAssignment):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def as_array(self) -> np.ndarray:
        """Return a copy of the underlying boolean vector."""
        return self._values.copy()

    def as_dict(self, propositions: Iterable[Proposition]) -> dict[str, bool]:
        """Map proposition names to their current values."""
        return {p.name: bool(self._values[p.index]) for p in propositions}

    def copy(self) -> "TruthAssignment":
        return TruthAssignment(self._values)

    def __repr__(self) -> str:
        return f"TruthAssignment({self._values.astype(int).tolist()})"
