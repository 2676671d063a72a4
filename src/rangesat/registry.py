"""
Proposition registry: interns proposition names to dense integer indices.
"""

import logging
from collections.abc import Iterator, Sequence

from .model import Constraint, Proposition

logger = logging.getLogger(__name__)


class PropositionRegistry:
    """
    Interns proposition names in first-seen order.

    Indices form the dense range 0..N-1. Once the constraint list is final,
    ``attach`` fills every proposition's back-references a single time.
    """

    def __init__(self):
        self._by_name: dict[str, Proposition] = {}
        self._by_index: list[Proposition] = []
        self._constraints: tuple[Constraint, ...] | None = None

    def intern(self, name: str) -> Proposition:
        """
        Get the proposition with the given name, creating it if necessary.

        Args:
            name: Display name of the proposition

        Returns:
            The unique Proposition for that name
        """
        proposition = self._by_name.get(name)
        if proposition is None:
            if self.attached:
                raise RuntimeError(
                    f"Cannot add proposition {name!r} after constraints were attached"
                )
            proposition = Proposition(name, len(self._by_index))
            self._by_name[name] = proposition
            self._by_index.append(proposition)
        return proposition

    def __getitem__(self, key: str | int) -> Proposition:
        if isinstance(key, int):
            return self._by_index[key]
        return self._by_name[key]

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_index)

    def __iter__(self) -> Iterator[Proposition]:
        return iter(self._by_index)

    def names(self) -> list[str]:
        return [p.name for p in self._by_index]

    @property
    def attached(self) -> bool:
        return self._constraints is not None

    @property
    def constraints(self) -> tuple[Constraint, ...] | None:
        """The constraint list the back-references were built from."""
        return self._constraints

    def attach(self, constraints: Sequence[Constraint]) -> None:
        """
        Populate positive/negative back-references from the constraint list.

        Args:
            constraints: The problem's final constraint list

        Raises:
            RuntimeError: If back-references were already attached
            IndexError: If a literal refers to an unknown proposition
        """
        if self.attached:
            raise RuntimeError("Constraints already attached to this registry")

        positive = [[] for _ in self._by_index]
        negative = [[] for _ in self._by_index]
        for constraint in constraints:
            for literal in constraint.literals:
                if not 0 <= literal.proposition < len(self._by_index):
                    raise IndexError(
                        f"Constraint {constraint.index} refers to unknown "
                        f"proposition {literal.proposition}"
                    )
                target = positive if literal.positive else negative
                target[literal.proposition].append(constraint.index)

        for proposition in self._by_index:
            proposition._positive_constraints = tuple(positive[proposition.index])
            proposition._negative_constraints = tuple(negative[proposition.index])

        self._constraints = tuple(constraints)
        logger.debug(
            f"Attached {len(constraints)} constraints to {len(self)} propositions"
        )
