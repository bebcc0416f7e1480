"""Tests for pattern matching and unification."""

import pytest
from mettacore import (
    PatternMatcher, Bindings, NoMatch, match, unify, match_all,
    Symbol, Variable, Grounded, Expression, Empty, Error, E,
)


class TestMatch:
    """Tests for one-sided matching."""

    def test_variable_binds_anything(self):
        """A variable pattern binds to the whole atom."""
        for atom in [Symbol("a"), Grounded(3), E("(f (g x))"), Empty, Variable("y")]:
            result = match(atom, Variable("v"))
            assert result["v"] == atom

    def test_symbol_requires_equality(self):
        """A symbol pattern matches only the same symbol."""
        assert match(Symbol("a"), Symbol("a")) == Bindings()
        assert match(Symbol("a"), Symbol("b")) is NoMatch

    def test_grounded_requires_equality(self):
        """Grounded patterns compare value and kind."""
        assert match(Grounded(1), Grounded(1))
        assert match(Grounded(1.0), Grounded(1)) is NoMatch

    def test_expression_pattern(self):
        """Expression patterns bind variables child by child."""
        result = match(E("(Person Alice 30)"), E("(Person $name $age)"))
        assert result["name"] == Symbol("Alice")
        assert result["age"] == Grounded(30)

    def test_expression_arity_mismatch(self):
        """Different arity never matches."""
        assert match(E("(f a b)"), E("(f $x)")) is NoMatch
        assert match(E("(f a)"), E("(f $x $y)")) is NoMatch

    def test_expression_against_non_expression(self):
        """An expression pattern does not match a symbol."""
        assert match(Symbol("f"), E("(f $x)")) is NoMatch

    def test_repeated_variable_consistent(self):
        """A variable used twice must bind to equal atoms."""
        assert match(E("(eq a a)"), E("(eq $x $x)"))["x"] == Symbol("a")
        assert match(E("(eq a b)"), E("(eq $x $x)")) is NoMatch

    def test_nested(self):
        """Nested patterns bind inner variables."""
        result = match(E("(f (g 1) (h 2))"), E("(f (g $a) $b)"))
        assert result["a"] == Grounded(1)
        assert result["b"] == E("(h 2)")

    def test_empty_pattern(self):
        """The Empty pattern matches only Empty."""
        assert match(Empty, Empty) == Bindings()
        assert match(Expression([]), Empty) is NoMatch
        assert match(Symbol("x"), Empty) is NoMatch

    def test_error_pattern(self):
        """Error patterns compare by message."""
        assert match(Error("bad"), Error("bad"))
        assert match(Error("bad"), Error("worse")) is NoMatch

    def test_atom_variables_not_special(self):
        """Variables on the atom side only match an equal variable."""
        assert match(Variable("x"), Symbol("a")) is NoMatch
        assert match(Variable("x"), Variable("x")) == Bindings({"x": Variable("x")})

    def test_seed_bindings_merged(self):
        """Seed bindings are carried into the result."""
        seed = Bindings([["y", Symbol("b")]])
        result = match(E("(f a)"), E("(f $x)"), seed)
        assert result == Bindings({"y": Symbol("b"), "x": Symbol("a")})

    def test_seed_bindings_conflict(self):
        """A match that contradicts the seed fails."""
        seed = Bindings([["x", Symbol("b")]])
        assert match(E("(f a)"), E("(f $x)"), seed) is NoMatch


class TestMatchAll:
    """Tests for match_all()."""

    def test_results_in_input_order(self):
        """One Bindings per matching atom, in order."""
        atoms = [E("(Person Alice)"), E("(City Paris)"), E("(Person Bob)")]
        results = match_all(atoms, E("(Person $name)"))
        assert [b["name"] for b in results] == [Symbol("Alice"), Symbol("Bob")]

    def test_no_matches(self):
        """An empty list when nothing matches."""
        assert match_all([Symbol("a")], E("(f $x)")) == []


class TestUnify:
    """Tests for two-sided unification."""

    def test_variables_on_both_sides(self):
        """Variables in either atom get bound."""
        result = unify(E("(f $x b)"), E("(f a $y)"))
        assert result["x"] == Symbol("a")
        assert result["y"] == Symbol("b")

    def test_symmetric_for_non_variables(self):
        """unify(V, a) and unify(a, V) give the same binding."""
        atom = E("(g 1 z)")
        assert unify(Variable("v"), atom) == unify(atom, Variable("v"))
        assert unify(Variable("v"), atom)["v"] == atom

    def test_two_variables_bind_left(self):
        """With a variable on each side the left one is bound."""
        assert unify(Variable("v"), Variable("w")).to_dict() == {"v": Variable("w")}
        assert unify(Variable("w"), Variable("v")).to_dict() == {"w": Variable("v")}

    def test_equal_atoms(self):
        """Equal atoms unify without bindings."""
        assert unify(E("(f a)"), E("(f a)")) == Bindings()

    def test_mismatch(self):
        """Different symbols do not unify."""
        assert unify(Symbol("a"), Symbol("b")) is NoMatch
        assert unify(E("(f a)"), E("(f a b)")) is NoMatch

    def test_repeated_variable_solved_consistently(self):
        """Earlier bindings are applied before later children."""
        result = unify(E("(f $x $x)"), E("(f a $y)"))
        assert result["x"] == Symbol("a")
        assert result["y"] == Symbol("a")

    def test_repeated_variable_conflict(self):
        """A variable cannot take two different values."""
        assert unify(E("(f $x $x)"), E("(f a b)")) is NoMatch

    def test_variable_binds_expression_containing_it(self):
        """A variable binds to an expression even when that expression contains it."""
        result = unify(Variable("x"), E("(g $x)"))
        assert result
        assert result["x"] == E("(g $x)")

    def test_variable_on_right_binds_expression_containing_it(self):
        """The same holds with the variable on the right."""
        result = unify(E("(g $x)"), Variable("x"))
        assert result["x"] == E("(g $x)")

    def test_existing_bindings_respected(self):
        """Passed-in bindings constrain the result and are not mutated."""
        seed = Bindings([["x", Symbol("a")]])
        assert unify(Variable("x"), Symbol("b"), seed) is NoMatch
        result = unify(Variable("x"), Variable("y"), seed)
        assert result["y"] == Symbol("a")
        assert "y" not in seed


class TestPatternMatcherInstance:
    """Tests for using PatternMatcher directly."""

    def test_instance_methods(self):
        """Instance methods agree with module functions."""
        matcher = PatternMatcher()
        atom, pattern = E("(f a)"), E("(f $x)")
        assert matcher.match(atom, pattern) == match(atom, pattern)
        assert matcher.unify(atom, pattern) == unify(atom, pattern)
        assert matcher.match_all([atom], pattern) == match_all([atom], pattern)
