"""
Unit tests for the data model and the proposition registry.
"""

import itertools
import unittest

import numpy as np

from rangesat.exceptions import FormatError
from rangesat.model import Constraint, Literal, TruthAssignment
from rangesat.registry import PropositionRegistry


class TestLiteral(unittest.TestCase):
    def test_negated(self):
        literal = Literal(2, True)
        self.assertEqual(literal.negated(), Literal(2, False))
        self.assertEqual(literal.negated().negated(), literal)

    def test_evaluate(self):
        assignment = TruthAssignment([True, False])
        self.assertTrue(Literal(0, True).evaluate(assignment))
        self.assertFalse(Literal(0, False).evaluate(assignment))
        self.assertFalse(Literal(1, True).evaluate(assignment))
        self.assertTrue(Literal(1, False).evaluate(assignment))


class TestConstraint(unittest.TestCase):
    def test_clause_range(self):
        constraint = Constraint.clause([Literal(0), Literal(1, False)], index=0)
        self.assertEqual(constraint.min_true, 1)
        self.assertEqual(constraint.max_true, 2)
        self.assertTrue(constraint.is_plain_clause)

    def test_rejects_empty(self):
        with self.assertRaises(FormatError):
            Constraint((), 0, 0, 0)

    def test_rejects_bad_range(self):
        literals = (Literal(0), Literal(1))
        with self.assertRaises(FormatError):
            Constraint(literals, 2, 1, 0)
        with self.assertRaises(FormatError):
            Constraint(literals, 1, 3, 0)
        with self.assertRaises(FormatError):
            Constraint(literals, -1, 1, 0)

    def test_immutable(self):
        constraint = Constraint.clause([Literal(0)], index=0)
        with self.assertRaises(Exception):
            constraint.min_true = 0

    def test_cardinality_counts(self):
        """A 1..2 constraint over three positive literals, all 8 assignments."""
        constraint = Constraint((Literal(0), Literal(1), Literal(2)), 1, 2, 0)
        for values in itertools.product([False, True], repeat=3):
            assignment = TruthAssignment(values)
            count = constraint.true_literal_count(assignment)
            self.assertEqual(count, sum(values))
            self.assertEqual(constraint.accepts(count), 1 <= sum(values) <= 2)

    def test_repeated_literal_counts_twice(self):
        constraint = Constraint.clause([Literal(0), Literal(0)], index=0)
        self.assertEqual(constraint.true_literal_count(TruthAssignment([True])), 2)


class TestTruthAssignment(unittest.TestCase):
    def test_flip(self):
        assignment = TruthAssignment([False, True])
        self.assertTrue(assignment.flip(0))
        self.assertFalse(assignment.flip(1))
        self.assertEqual(assignment, TruthAssignment([True, False]))

    def test_copy_is_independent(self):
        assignment = TruthAssignment([False])
        copy = assignment.copy()
        copy.flip(0)
        self.assertFalse(assignment[0])
        self.assertTrue(copy[0])

    def test_random_is_seeded(self):
        first = TruthAssignment.random(50, np.random.default_rng(7))
        second = TruthAssignment.random(50, np.random.default_rng(7))
        self.assertEqual(first, second)
        self.assertEqual(len(first), 50)


class TestPropositionRegistry(unittest.TestCase):
    def test_dense_first_seen_indices(self):
        registry = PropositionRegistry()
        a = registry.intern("A")
        b = registry.intern("B")
        self.assertIs(registry.intern("A"), a)
        self.assertEqual([p.index for p in registry], [0, 1])
        self.assertEqual(registry.names(), ["A", "B"])
        self.assertIs(registry["B"], b)
        self.assertIs(registry[1], b)
        self.assertIn("A", registry)
        self.assertNotIn("C", registry)
        with self.assertRaises(KeyError):
            registry["C"]

    def test_attach_back_references(self):
        registry = PropositionRegistry()
        a = registry.intern("A")
        b = registry.intern("B")
        constraints = [
            Constraint.clause([Literal(0), Literal(1, False)], 0),
            Constraint.clause([Literal(0, False), Literal(0)], 1),
        ]
        registry.attach(constraints)

        self.assertEqual(a.positive_constraints, (0, 1))
        self.assertEqual(a.negative_constraints, (1,))
        self.assertEqual(b.positive_constraints, ())
        self.assertEqual(b.negative_constraints, (0,))

    def test_attach_only_once(self):
        registry = PropositionRegistry()
        registry.intern("A")
        constraints = [Constraint.clause([Literal(0)], 0)]
        registry.attach(constraints)
        self.assertEqual(registry.constraints, tuple(constraints))
        with self.assertRaises(RuntimeError):
            registry.attach(constraints)
        with self.assertRaises(RuntimeError):
            registry.intern("B")

    def test_attach_unknown_proposition(self):
        registry = PropositionRegistry()
        with self.assertRaises(IndexError):
            registry.attach([Constraint.clause([Literal(3)], 0)])


if __name__ == "__main__":
    unittest.main()
