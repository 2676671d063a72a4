"""
SAT problem state and the constraint satisfaction tracker.

The Problem keeps, for every constraint, the number of its literals that are
currently true, and the set of constraints whose count lies outside their
[min_true, max_true] range. Flipping a proposition updates both in time
proportional to the number of constraints the proposition appears in.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from .exceptions import InternalConsistencyError
from .model import Constraint, Literal, Proposition, TruthAssignment
from .parser import (
    format_constraint,
    load_cnf_file,
    load_problem_file,
    parse_dimacs,
    parse_lines,
)
from .registry import PropositionRegistry
from .search import StepRecord, step_one

logger = logging.getLogger(__name__)

DEFAULT_NOISE_LEVEL = 10
MIN_NOISE_LEVEL = 0
MAX_NOISE_LEVEL = 100


def clamp_noise(value: int) -> int:
    return int(min(MAX_NOISE_LEVEL, max(MIN_NOISE_LEVEL, value)))


class IndexedSet:
    """Set of constraint indices with O(1) add, remove and uniform choice."""

    def __init__(self, items: Iterable[int] = ()):
        self._items: list[int] = []
        self._positions: dict[int, int] = {}
        for item in items:
            self.add(item)

    def add(self, item: int) -> None:
        if item not in self._positions:
            self._positions[item] = len(self._items)
            self._items.append(item)

    def discard(self, item: int) -> None:
        position = self._positions.pop(item, None)
        if position is None:
            return
        last = self._items.pop()
        if position < len(self._items):
            self._items[position] = last
            self._positions[last] = position

    def choice(self, rng: np.random.Generator) -> int:
        """Pick one member uniformly at random."""
        if not self._items:
            raise IndexError("Cannot choose from an empty set")
        return self._items[rng.integers(len(self._items))]

    def __contains__(self, item: int) -> bool:
        return item in self._positions

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._items))

    def __eq__(self, other) -> bool:
        if isinstance(other, IndexedSet):
            return set(self._positions) == set(other._positions)
        return NotImplemented

    def copy(self) -> "IndexedSet":
        return IndexedSet(self._items)


@dataclass
class SearchState:
    """
    All mutable solver state of one problem instance.

    Attributes:
        assignment: Current truth assignment
        true_literal_counts: Per-constraint count of true literals
        unsatisfied: Indices of constraints outside their range
        noise_level: Percent chance of a random-walk move (0-100)
        last_flip: Literal of the last flipped proposition, with its new value
        flips: Number of flips performed so far
        last_step: Record of the most recent search step
    """

    assignment: TruthAssignment
    true_literal_counts: np.ndarray
    unsatisfied: IndexedSet
    noise_level: int = DEFAULT_NOISE_LEVEL
    last_flip: Literal | None = None
    flips: int = 0
    last_step: StepRecord | None = field(default=None, repr=False)


class Problem:
    """
    A generalized SAT problem together with its search state.

    Constraints and propositions are fixed at construction; only the
    assignment and the derived counts/unsatisfied set change afterwards.
    """

    def __init__(
        self,
        constraints: Sequence[Constraint],
        registry: PropositionRegistry,
        assignment: TruthAssignment | Sequence[bool] | None = None,
        noise_level: int = DEFAULT_NOISE_LEVEL,
        rng: np.random.Generator | int | None = None,
        adaptive_noise: bool = True,
    ):
        """
        Build the problem and initialize counts and the unsatisfied set.

        Args:
            constraints: Constraints whose ``index`` equals their position
            registry: Registry holding every proposition the constraints use
            assignment: Initial assignment; drawn at random when omitted
            noise_level: Initial random-walk percentage, clamped to [0, 100]
            rng: Seed or numpy Generator used for every random choice
            adaptive_noise: Whether greedy steps adjust the noise level

        Raises:
            ValueError: If a constraint index does not match its position, the
                registry is already attached to other constraints, or the
                assignment has the wrong length
        """
        for position, constraint in enumerate(constraints):
            if constraint.index != position:
                raise ValueError(
                    f"Constraint at position {position} has index {constraint.index}"
                )

        self._constraints = tuple(constraints)
        self._registry = registry
        if not registry.attached:
            registry.attach(self._constraints)
        elif registry.constraints != self._constraints:
            raise ValueError(
                "Registry back-references belong to a different constraint list"
            )
        self._rng = np.random.default_rng(rng)
        self.adaptive_noise = adaptive_noise

        self._min_true = np.array([c.min_true for c in self._constraints], dtype=np.int64)
        self._max_true = np.array([c.max_true for c in self._constraints], dtype=np.int64)
        self._adjacency = [self._build_adjacency(p) for p in registry]

        self._state = self._initial_state(assignment, clamp_noise(noise_level))
        logger.debug(
            f"Built problem with {len(registry)} propositions, "
            f"{len(self._constraints)} constraints, "
            f"{len(self._state.unsatisfied)} initially unsatisfied"
        )

    @staticmethod
    def _build_adjacency(proposition: Proposition) -> tuple[np.ndarray, np.ndarray]:
        """
        Touched constraint indices and the net count change per constraint when
        the proposition goes from false to true.
        """
        weights = Counter(proposition.positive_constraints)
        weights.subtract(proposition.negative_constraints)
        # net-zero occurrences (A | !A) never change a count
        touched = sorted(index for index, weight in weights.items() if weight)
        return (
            np.array(touched, dtype=np.int64),
            np.array([weights[index] for index in touched], dtype=np.int64),
        )

    def _initial_state(self, assignment, noise_level: int) -> SearchState:
        if assignment is None:
            assignment = TruthAssignment.random(len(self._registry), self._rng)
        elif not isinstance(assignment, TruthAssignment):
            assignment = TruthAssignment(assignment)
        else:
            assignment = assignment.copy()

        if len(assignment) != len(self._registry):
            raise ValueError(
                f"Assignment covers {len(assignment)} propositions, "
                f"problem has {len(self._registry)}"
            )

        counts = np.array(
            [c.true_literal_count(assignment) for c in self._constraints],
            dtype=np.int64,
        )
        unsatisfied = IndexedSet(
            c.index for c in self._constraints if not c.accepts(counts[c.index])
        )
        return SearchState(assignment, counts, unsatisfied, noise_level)

    # Construction helpers

    @classmethod
    def from_expressions(cls, lines: Iterable[str], **kwargs) -> "Problem":
        """
        Build a problem from constraint expression lines.

        Raises:
            FormatError: If a line cannot be parsed
        """
        registry = PropositionRegistry()
        constraints = parse_lines(lines, registry)
        return cls(constraints, registry, **kwargs)

    @classmethod
    def from_file(cls, file_path: str, **kwargs) -> "Problem":
        registry = PropositionRegistry()
        constraints = load_problem_file(file_path, registry)
        return cls(constraints, registry, **kwargs)

    @classmethod
    def from_dimacs(cls, source, **kwargs) -> "Problem":
        registry = PropositionRegistry()
        constraints = parse_dimacs(source, registry)
        return cls(constraints, registry, **kwargs)

    @classmethod
    def from_cnf_file(cls, file_path: str, **kwargs) -> "Problem":
        registry = PropositionRegistry()
        constraints = load_cnf_file(file_path, registry)
        return cls(constraints, registry, **kwargs)

    # Read-only views

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    @property
    def registry(self) -> PropositionRegistry:
        return self._registry

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return self._constraints

    @property
    def propositions(self) -> tuple[Proposition, ...]:
        return tuple(self._registry)

    @property
    def proposition_count(self) -> int:
        return len(self._registry)

    @property
    def assignment(self) -> TruthAssignment:
        """A copy of the current truth assignment."""
        return self._state.assignment.copy()

    @property
    def true_literal_counts(self) -> np.ndarray:
        """A copy of the per-constraint true-literal counts."""
        return self._state.true_literal_counts.copy()

    @property
    def unsatisfied_constraints(self) -> tuple[Constraint, ...]:
        return tuple(self._constraints[i] for i in self._state.unsatisfied)

    @property
    def unsatisfied_count(self) -> int:
        return len(self._state.unsatisfied)

    @property
    def is_solved(self) -> bool:
        """True when every constraint is inside its range."""
        return len(self._state.unsatisfied) == 0

    @property
    def last_flip(self) -> Literal | None:
        return self._state.last_flip

    @property
    def last_step(self) -> StepRecord | None:
        return self._state.last_step

    @property
    def flips(self) -> int:
        return self._state.flips

    @property
    def noise_level(self) -> int:
        return self._state.noise_level

    @noise_level.setter
    def noise_level(self, value: int) -> None:
        self._state.noise_level = clamp_noise(value)

    def _index(self, proposition: int | str | Proposition | Literal) -> int:
        if isinstance(proposition, Literal):
            return proposition.proposition
        if isinstance(proposition, Proposition):
            return proposition.index
        if isinstance(proposition, str):
            return self._registry[proposition].index
        return int(proposition)

    def value(self, proposition: int | str | Proposition) -> bool:
        """Current value of a proposition."""
        return self._state.assignment[self._index(proposition)]

    def model(self) -> dict[str, bool]:
        """Map every proposition name to its current value."""
        return self._state.assignment.as_dict(self._registry)

    def describe(self, constraint: Constraint) -> str:
        return format_constraint(constraint, self._registry)

    # Satisfaction predicates

    def current_true_literals(self, constraint: Constraint) -> int:
        return int(self._state.true_literal_counts[constraint.index])

    def satisfied(self, constraint: Constraint) -> bool:
        """True if the constraint's true-literal count is inside its range."""
        return constraint.accepts(self.current_true_literals(constraint))

    def unsatisfied(self, constraint: Constraint) -> bool:
        return not self.satisfied(constraint)

    # Tracker

    def _unsatisfied_mask(self, touched: np.ndarray, counts: np.ndarray) -> np.ndarray:
        return (counts < self._min_true[touched]) | (counts > self._max_true[touched])

    def satisfaction_delta(self, proposition: int | str | Proposition | Literal) -> int:
        """
        Net decrease in unsatisfied constraints if the proposition were flipped.

        Only the constraints the proposition appears in are examined and no
        state is modified. Positive values are improvements.
        """
        index = self._index(proposition)
        touched, weights = self._adjacency[index]
        if not len(touched):
            return 0

        sign = -1 if self._state.assignment[index] else 1
        counts = self._state.true_literal_counts[touched]
        before = self._unsatisfied_mask(touched, counts)
        after = self._unsatisfied_mask(touched, counts + sign * weights)
        return int(before.sum()) - int(after.sum())

    def flip(self, proposition: int | str | Proposition | Literal) -> int:
        """
        Toggle a proposition and update counts and the unsatisfied set.

        Args:
            proposition: Index, name, Proposition or Literal to flip

        Returns:
            The decrease in unsatisfied constraints the flip achieved
        """
        index = self._index(proposition)
        state = self._state
        touched, weights = self._adjacency[index]

        before = len(state.unsatisfied)
        new_value = state.assignment.flip(index)
        if len(touched):
            counts = state.true_literal_counts
            counts[touched] += weights if new_value else -weights
            unsatisfied = self._unsatisfied_mask(touched, counts[touched])
            for constraint_index, is_unsatisfied in zip(
                touched.tolist(), unsatisfied.tolist()
            ):
                if is_unsatisfied:
                    state.unsatisfied.add(constraint_index)
                else:
                    state.unsatisfied.discard(constraint_index)

        delta = before - len(state.unsatisfied)
        state.last_flip = Literal(index, new_value)
        state.flips += 1
        logger.debug(
            f"Flipped {self._registry[index].name} -> {new_value} "
            f"(delta={delta}, unsatisfied={len(state.unsatisfied)})"
        )
        return delta

    def restart(self, assignment: TruthAssignment | Sequence[bool] | None = None) -> None:
        """
        Replace the assignment and rebuild counts and the unsatisfied set.

        The noise level and flip counter carry over; the flip history used by
        the adaptive noise update does not.
        """
        previous = self._state
        self._state = self._initial_state(assignment, previous.noise_level)
        self._state.flips = previous.flips

    def check_consistency(self) -> None:
        """
        Recompute every count and membership from scratch and compare.

        Raises:
            InternalConsistencyError: On the first mismatch found
        """
        state = self._state
        for constraint in self._constraints:
            expected = constraint.true_literal_count(state.assignment)
            cached = int(state.true_literal_counts[constraint.index])
            if cached != expected:
                raise InternalConsistencyError(
                    f"True literal count incorrect for constraint "
                    f"\"{self.describe(constraint)}\": cached {cached}, actual {expected}",
                    constraint_index=constraint.index,
                    last_flip=state.last_flip,
                )

        for constraint in self._constraints:
            present = constraint.index in state.unsatisfied
            if self.satisfied(constraint) and present:
                raise InternalConsistencyError(
                    f"Constraint \"{self.describe(constraint)}\" appears in the "
                    f"unsatisfied set but is satisfied",
                    constraint_index=constraint.index,
                    last_flip=state.last_flip,
                )
            if self.unsatisfied(constraint) and not present:
                raise InternalConsistencyError(
                    f"Constraint \"{self.describe(constraint)}\" is unsatisfied but "
                    f"missing from the unsatisfied set",
                    constraint_index=constraint.index,
                    last_flip=state.last_flip,
                )

    # Search

    def step_one(self) -> bool:
        """
        Perform one search step.

        Returns:
            True if every constraint is satisfied afterwards
        """
        return step_one(self)
