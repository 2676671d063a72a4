"""
Unit tests for constraint text and DIMACS parsing.
"""

import io
import os
import shutil
import tempfile
import unittest

from rangesat.exceptions import FormatError
from rangesat.model import Literal
from rangesat.parser import (
    format_constraint,
    load_cnf_file,
    load_problem_file,
    parse_constraint,
    parse_dimacs,
    parse_lines,
)
from rangesat.registry import PropositionRegistry


class TestParseConstraint(unittest.TestCase):
    def setUp(self):
        self.registry = PropositionRegistry()

    def test_plain_clause(self):
        constraint = parse_constraint("A | !B | C", self.registry, index=5)
        self.assertEqual(
            constraint.literals, (Literal(0, True), Literal(1, False), Literal(2, True))
        )
        self.assertEqual((constraint.min_true, constraint.max_true), (1, 3))
        self.assertEqual(constraint.index, 5)

    def test_names_are_stripped_and_shared(self):
        first = parse_constraint("  rain |wet ground", self.registry)
        second = parse_constraint("!rain", self.registry, 1)
        self.assertEqual(self.registry.names(), ["rain", "wet ground"])
        self.assertEqual(first.literals[0].proposition, second.literals[0].proposition)

    def test_double_negation(self):
        constraint = parse_constraint("!!A | ! B", self.registry)
        self.assertEqual(constraint.literals, (Literal(0, True), Literal(1, False)))

    def test_range_prefix(self):
        constraint = parse_constraint("[1,2] A | B | C", self.registry)
        self.assertEqual((constraint.min_true, constraint.max_true), (1, 2))
        self.assertFalse(constraint.is_plain_clause)

        exact = parse_constraint("[ 1 ] A | B", self.registry, 1)
        self.assertEqual((exact.min_true, exact.max_true), (1, 1))

    def test_errors(self):
        bad = [
            "",
            "   ",
            "A | | B",
            "A |",
            "| A",
            "A | !",
            "[1,2]",
            "[2,1] A | B",
            "[1,3] A | B",
            "[x] A",
            "[1,2 A | B",
            "A ] B",
        ]
        for expression in bad:
            with self.subTest(expression=expression):
                with self.assertRaises(FormatError):
                    parse_constraint(expression, PropositionRegistry())

    def test_error_carries_expression(self):
        with self.assertRaises(FormatError) as ctx:
            parse_constraint("A | | B", self.registry)
        self.assertEqual(ctx.exception.expression, "A | | B")


class TestParseLines(unittest.TestCase):
    def test_comments_and_blanks_skipped(self):
        registry = PropositionRegistry()
        constraints = parse_lines(
            ["# a comment", "A | B", "", "   ", "!A", "  # indented comment"], registry
        )
        self.assertEqual(len(constraints), 2)
        self.assertEqual([c.index for c in constraints], [0, 1])

    def test_line_number_reported(self):
        with self.assertRaises(FormatError) as ctx:
            parse_lines(["# header", "A | B", "A | | C"], PropositionRegistry())
        self.assertEqual(ctx.exception.line_number, 3)
        self.assertEqual(ctx.exception.expression, "A | | C")
        self.assertEqual(str(ctx.exception), "line 3: Empty literal: 'A | | C'")

    def test_load_problem_file(self):
        test_dir = tempfile.mkdtemp()
        try:
            path = os.path.join(test_dir, "problem.txt")
            with open(path, "w") as f:
                f.write("# test\nA | B\n!A | !B\n")
            constraints = load_problem_file(path, PropositionRegistry())
            self.assertEqual(len(constraints), 2)
        finally:
            shutil.rmtree(test_dir)

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_problem_file("/nonexistent/problem.txt", PropositionRegistry())


class TestDimacs(unittest.TestCase):
    CNF = """c simple formula
p cnf 3 2
1 -3 0
2 3
-1 0
"""

    def test_parse(self):
        registry = PropositionRegistry()
        constraints = parse_dimacs(self.CNF, registry)
        self.assertEqual(registry.names(), ["1", "2", "3"])
        self.assertEqual(len(constraints), 2)
        self.assertEqual(constraints[0].literals, (Literal(0, True), Literal(2, False)))
        self.assertEqual(
            constraints[1].literals,
            (Literal(1, True), Literal(2, True), Literal(0, False)),
        )
        self.assertTrue(all(c.is_plain_clause for c in constraints))

    def test_parse_file_object(self):
        constraints = parse_dimacs(io.StringIO(self.CNF), PropositionRegistry())
        self.assertEqual(len(constraints), 2)

    def test_satlib_end_marker(self):
        text = "p cnf 2 1\n1 2 0\n%\n0\n"
        self.assertEqual(len(parse_dimacs(text, PropositionRegistry())), 1)

    def test_errors(self):
        bad = [
            "1 2 0",
            "p cnf 2 2\n1 2 0",
            "p cnf 2 1\np cnf 2 1\n1 0",
            "p dnf 2 1\n1 0",
            "p cnf 2 1\n1 3 0",
            "p cnf 2 1\n1 x 0",
            "p cnf 2 2\n1 0\n0",
        ]
        for text in bad:
            with self.subTest(text=text):
                with self.assertRaises(FormatError):
                    parse_dimacs(text, PropositionRegistry())

    def test_load_cnf_file(self):
        test_dir = tempfile.mkdtemp()
        try:
            path = os.path.join(test_dir, "f.cnf")
            with open(path, "w") as f:
                f.write(self.CNF)
            self.assertEqual(len(load_cnf_file(path, PropositionRegistry())), 2)
        finally:
            shutil.rmtree(test_dir)


class TestFormatConstraint(unittest.TestCase):
    def test_format(self):
        registry = PropositionRegistry()
        plain = parse_constraint("A|!B", registry)
        ranged = parse_constraint("[2,2] A | B | !C", registry, 1)
        self.assertEqual(format_constraint(plain, registry), "A | !B")
        self.assertEqual(format_constraint(ranged, registry), "[2,2] A | B | !C")


if __name__ == "__main__":
    unittest.main()
