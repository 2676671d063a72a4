"""
Constraint text handling.

This module turns constraint expressions into Constraint objects. The text
format has one constraint per line:

- ``|`` separates literals and ``!`` negates the name that follows it
- lines starting with ``#`` are comments
- an optional ``[min,max]`` (or ``[n]``) prefix sets the cardinality range,
  otherwise the line is a plain clause (at least one literal true)

DIMACS CNF input is also accepted, with propositions named by variable number.
"""

import os
import re
from collections.abc import Iterable
from typing import TextIO

from .exceptions import FormatError
from .model import Constraint, Literal
from .registry import PropositionRegistry

NEGATION = "!"
SEPARATOR = "|"
COMMENT = "#"

_RANGE_PREFIX = re.compile(r"^\s*\[\s*(\d+)\s*(?:,\s*(\d+)\s*)?\]")
_RESERVED = re.compile(r"[!|#\[\]]")


def _parse_range(expression: str) -> tuple[int | None, int | None, str]:
    """Split an optional ``[min,max]`` prefix from the literal list."""
    stripped = expression.lstrip()
    if not stripped.startswith("["):
        return None, None, expression

    match = _RANGE_PREFIX.match(stripped)
    if match is None:
        raise FormatError("Malformed range prefix", expression)

    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) is not None else low
    return low, high, stripped[match.end():]


def _parse_literal(text: str, expression: str, registry: PropositionRegistry) -> Literal:
    body = text.strip()
    positive = True
    while body.startswith(NEGATION):
        positive = not positive
        body = body[1:].lstrip()

    if not body:
        if text.strip():
            raise FormatError("Negation without a proposition name", expression)
        raise FormatError("Empty literal", expression)
    if _RESERVED.search(body):
        raise FormatError(f"Invalid proposition name {body!r}", expression)

    return Literal(registry.intern(body).index, positive)


def parse_constraint(
    expression: str, registry: PropositionRegistry, index: int = 0
) -> Constraint:
    """
    Parse one constraint expression.

    Args:
        expression: Text such as ``"A | !B | C"`` or ``"[1,2] A | B | C"``
        registry: Interning context for proposition names
        index: Position the constraint will occupy in its problem

    Returns:
        The parsed Constraint

    Raises:
        FormatError: If the expression is empty or malformed
    """
    low, high, body = _parse_range(expression)

    if not body.strip():
        raise FormatError("Empty clause", expression)

    literals = tuple(
        _parse_literal(part, expression, registry) for part in body.split(SEPARATOR)
    )

    if low is None:
        return Constraint.clause(literals, index)
    if high > len(literals) or low > high:
        raise FormatError(
            f"Range [{low},{high}] does not fit {len(literals)} literal(s)", expression
        )
    return Constraint(literals, low, high, index)


def parse_lines(
    lines: Iterable[str], registry: PropositionRegistry
) -> list[Constraint]:
    """
    Parse a sequence of lines, skipping blanks and ``#`` comments.

    Args:
        lines: Lines of constraint text
        registry: Interning context for proposition names

    Returns:
        Constraints indexed in order of appearance

    Raises:
        FormatError: With the 1-based line number of the first bad line
    """
    constraints = []
    for line_number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text or text.startswith(COMMENT):
            continue
        try:
            constraints.append(parse_constraint(text, registry, len(constraints)))
        except FormatError as e:
            raise FormatError(
                e.reason, expression=e.expression, line_number=line_number
            ) from e
    return constraints


def load_problem_file(
    file_path: str, registry: PropositionRegistry
) -> list[Constraint]:
    """
    Load constraints from a text file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FormatError: If a line cannot be parsed
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Problem file not found: {file_path}")

    with open(file_path) as f:
        return parse_lines(f, registry)


def parse_dimacs(
    source: str | TextIO, registry: PropositionRegistry
) -> list[Constraint]:
    """
    Parse a CNF formula in DIMACS format.

    Variables 1..V from the problem line are interned in order under the
    names ``"1"``..``"V"``; with an empty registry proposition index ``i``
    is variable ``i + 1``.

    Args:
        source: DIMACS content as a string or file-like object
        registry: Interning context, normally empty

    Returns:
        One plain clause per DIMACS clause

    Raises:
        FormatError: If the format is invalid
    """
    if isinstance(source, str):
        lines = source.strip().split("\n")
    else:
        lines = source.readlines()

    clauses = []
    current_clause = []
    num_variables = num_clauses = None

    for line in lines:
        line = line.strip()

        if not line or line.startswith("c"):
            continue

        # SATLIB end marker
        if line.startswith("%"):
            break

        if line.startswith("p"):
            if num_variables is not None:
                raise FormatError("Multiple problem lines in CNF file", line)

            parts = line.split()
            if len(parts) < 4 or parts[1] != "cnf":
                raise FormatError("Invalid problem line", line)
            try:
                num_variables = int(parts[2])
                num_clauses = int(parts[3])
            except ValueError:
                raise FormatError("Invalid numbers in problem line", line)

            for var in range(1, num_variables + 1):
                registry.intern(str(var))
            continue

        if num_variables is None:
            raise FormatError("Clause before problem line", line)

        try:
            values = [int(x) for x in line.split()]
        except ValueError:
            raise FormatError("Invalid literal in clause line", line)

        for value in values:
            if value == 0:
                if not current_clause:
                    raise FormatError("Empty clause", line)
                clauses.append(current_clause)
                current_clause = []
            elif abs(value) > num_variables:
                raise FormatError(
                    f"Variable {abs(value)} exceeds declared count {num_variables}",
                    line,
                )
            else:
                current_clause.append(value)

    if current_clause:
        clauses.append(current_clause)

    if num_variables is None:
        raise FormatError("No problem line found in CNF file")
    if len(clauses) != num_clauses:
        raise FormatError(f"Expected {num_clauses} clauses, but found {len(clauses)}")

    return [
        Constraint.clause(
            (
                Literal(registry[str(abs(value))].index, value > 0)
                for value in clause
            ),
            index,
        )
        for index, clause in enumerate(clauses)
    ]


def load_cnf_file(file_path: str, registry: PropositionRegistry) -> list[Constraint]:
    """
    Load constraints from a DIMACS file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FormatError: If the file format is invalid
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"CNF file not found: {file_path}")

    with open(file_path) as f:
        return parse_dimacs(f.read(), registry)


def format_literal(literal: Literal, registry: PropositionRegistry) -> str:
    name = registry[literal.proposition].name
    return name if literal.positive else f"{NEGATION}{name}"


def format_constraint(constraint: Constraint, registry: PropositionRegistry) -> str:
    """Render a constraint back into expression syntax."""
    body = f" {SEPARATOR} ".join(
        format_literal(lit, registry) for lit in constraint.literals
    )
    if constraint.is_plain_clause:
        return body
    return f"[{constraint.min_true},{constraint.max_true}] {body}"
