"""
One step of noise-adaptive WalkSAT.

Each step picks a random unsatisfied constraint, then flips either a random
literal of it (with probability ``noise_level`` percent) or the literal whose
flip most reduces the number of unsatisfied constraints.

Greedy steps also adapt the noise level: if the chosen delta beats the delta
of re-flipping the previously flipped proposition, noise drops by one point,
otherwise it rises by one point. This compares against the single previous
flip rather than a target improvement rate, so it differs from the textbook
adaptive scheme.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import Constraint, Literal

if TYPE_CHECKING:
    from .problem import Problem

logger = logging.getLogger(__name__)


@dataclass
class StepRecord:
    """What a single search step did."""

    step: int
    constraint: int
    literal: Literal
    delta: int
    random_move: bool
    noise_level: int


def best_literal(problem: "Problem", constraint: Constraint) -> tuple[Literal, int]:
    """
    Find the literal of a constraint with the highest satisfaction delta.

    Ties go to the first literal in the constraint's order.

    Returns:
        Tuple of (literal, delta)
    """
    best, best_delta = None, None
    for literal in constraint.literals:
        delta = problem.satisfaction_delta(literal.proposition)
        if best_delta is None or delta > best_delta:
            best, best_delta = literal, delta
    return best, best_delta


def adapt_noise(problem: "Problem", delta: int) -> None:
    """
    Move the noise level one point.

    The reference is the delta of flipping the last flipped proposition again
    in the current state, i.e. the cost of undoing the previous move.
    """
    last_flip = problem.state.last_flip
    if last_flip is None:
        return
    if delta > problem.satisfaction_delta(last_flip.proposition):
        problem.noise_level -= 1
    else:
        problem.noise_level += 1


def step_one(problem: "Problem") -> bool:
    """
    Choose and apply one flip.

    Args:
        problem: The problem whose state is advanced

    Returns:
        True if the problem is solved after the step. An already solved
        problem is left untouched.
    """
    state = problem.state
    if not state.unsatisfied:
        return True

    rng = problem.rng
    constraint = problem.constraints[state.unsatisfied.choice(rng)]

    random_move = rng.integers(100) < state.noise_level
    if random_move:
        literal = constraint.literals[rng.integers(len(constraint.literals))]
    else:
        literal, delta = best_literal(problem, constraint)
        if problem.adaptive_noise:
            adapt_noise(problem, delta)

    achieved = problem.flip(literal.proposition)
    state.last_step = StepRecord(
        step=state.flips,
        constraint=constraint.index,
        literal=literal,
        delta=achieved,
        random_move=bool(random_move),
        noise_level=state.noise_level,
    )
    move = "random" if random_move else "greedy"
    logger.debug(
        f"Step {state.flips}: constraint {constraint.index}, {move} move, "
        f"delta={achieved}, noise={state.noise_level}"
    )
    return problem.is_solved
