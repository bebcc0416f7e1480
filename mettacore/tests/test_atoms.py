"""Tests for the atom model."""

import pytest
from mettacore import (
    AtomType, Symbol, Variable, Grounded, Expression, Empty, Error,
    TRUE, FALSE, bool_atom, to_atom, variables_in,
)


class TestVariants:
    """Tests for the six atom variants."""

    def test_symbol(self):
        """Symbols render as their name."""
        s = Symbol("foo")
        assert s.atom_type is AtomType.SYMBOL
        assert s.is_symbol()
        assert s.to_metta() == "foo"

    def test_variable(self):
        """Variables render with a leading $."""
        v = Variable("x")
        assert v.is_variable()
        assert v.name == "x"
        assert v.to_metta() == "$x"

    def test_expression_accessors(self):
        """Expressions expose head, tail and size."""
        expr = Expression([Symbol("f"), Grounded(1), Symbol("y")])
        assert expr.is_expression()
        assert expr.size == 3
        assert len(expr) == 3
        assert expr.head == Symbol("f")
        assert expr.tail == [Grounded(1), Symbol("y")]
        assert expr[1] == Grounded(1)
        assert list(expr) == [Symbol("f"), Grounded(1), Symbol("y")]

    def test_expression_rendering(self):
        """Nested expressions render as parenthesized text."""
        expr = Expression([Symbol("f"), Expression([Symbol("g"), Variable("x")])])
        assert expr.to_metta() == "(f (g $x))"
        assert str(expr) == "(f (g $x))"

    def test_empty_expression_head_raises(self):
        """head of a zero-child expression raises IndexError."""
        with pytest.raises(IndexError):
            _ = Expression([]).head

    def test_empty_singleton(self):
        """Empty is a singleton rendering as ()."""
        assert type(Empty)() is Empty
        assert Empty.atom_type is AtomType.EMPTY
        assert Empty.to_metta() == "()"
        assert repr(Empty) == "Empty"

    def test_error_rendering(self):
        """Errors render with an optional source."""
        assert Error("boom").to_metta() == '(Error "boom")'
        assert Error("boom", Symbol("x")).to_metta() == '(Error x "boom")'
        assert Error("boom").is_error()


class TestGrounded:
    """Tests for grounded values."""

    def test_value_type_inference(self):
        """The value_type tag is inferred from the Python type."""
        assert Grounded(42).value_type == "Number"
        assert Grounded(3.5).value_type == "Float"
        assert Grounded("hi").value_type == "String"
        assert Grounded(True).value_type == "Bool"

    def test_unsupported_type_raises(self):
        """Only int, float, str and bool can be grounded."""
        with pytest.raises(TypeError):
            Grounded([1, 2])

    def test_typed_accessors(self):
        """Typed accessors return the value for the matching kind."""
        assert Grounded(42).as_int() == 42
        assert Grounded(2.5).as_float() == 2.5
        assert Grounded("s").as_string() == "s"
        assert Grounded(False).as_bool() is False

    def test_typed_accessor_mismatch(self):
        """Typed accessors raise TypeError on a kind mismatch."""
        with pytest.raises(TypeError):
            Grounded("42").as_int()
        with pytest.raises(TypeError):
            Grounded(42).as_float()

    def test_is_numeric(self):
        """Numbers and floats are numeric, strings are not."""
        assert Grounded(1).is_numeric()
        assert Grounded(1.5).is_numeric()
        assert not Grounded("1").is_numeric()
        assert not Grounded(True).is_numeric()

    def test_rendering(self):
        """Grounded values render as MeTTa literals."""
        assert Grounded(42).to_metta() == "42"
        assert Grounded(-7).to_metta() == "-7"
        assert Grounded(6.0).to_metta() == "6.0"
        assert Grounded(True).to_metta() == "True"

    def test_string_escapes(self):
        """Strings are quoted with escapes."""
        assert Grounded('say "hi"\n').to_metta() == '"say \\"hi\\"\\n"'


class TestEquality:
    """Tests for structural equality and hashing."""

    def test_reflexive(self):
        """Every atom equals itself."""
        for atom in [Symbol("a"), Variable("x"), Grounded(1), Empty,
                     Expression([Symbol("f"), Grounded(2)]), Error("e")]:
            assert atom == atom

    def test_structural(self):
        """Independently built equal structures are equal and hash alike."""
        a = Expression([Symbol("f"), Expression([Symbol("g"), Grounded(1)])])
        b = Expression([Symbol("f"), Expression([Symbol("g"), Grounded(1)])])
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_reordering_breaks_equality(self):
        """Changing order or a child makes expressions unequal."""
        a = Expression([Symbol("f"), Symbol("x"), Symbol("y")])
        assert a != Expression([Symbol("f"), Symbol("y"), Symbol("x")])
        assert a != Expression([Symbol("f"), Symbol("x"), Symbol("z")])

    def test_variants_differ(self):
        """Same name in different variants is not equal."""
        assert Symbol("x") != Variable("x")
        assert Symbol("42") != Grounded(42)

    def test_grounded_value_type_in_equality(self):
        """Number and Float are distinct even for equal values."""
        assert Grounded(1) != Grounded(1.0)
        assert Grounded(1.0) == Grounded(1.0)

    def test_empty_not_zero_expression(self):
        """Empty differs from the zero-child expression."""
        assert Empty != Expression([])
        assert Expression([]) == Expression([])

    def test_error_equality_ignores_source(self):
        """Errors compare by message only."""
        assert Error("boom", Symbol("a")) == Error("boom", Symbol("b"))
        assert Error("boom") != Error("bang")

    def test_immutable(self):
        """Atoms cannot be modified."""
        s = Symbol("foo")
        with pytest.raises(AttributeError):
            s.name = "bar"


class TestMatchesCheck:
    """Tests for the binding-free matches() check."""

    def test_variable_matches_anything(self):
        """A variable on either side is compatible."""
        assert Variable("x").matches(Expression([Symbol("f")]))
        assert Grounded(1).matches(Variable("y"))

    def test_expression_arity(self):
        """Expressions need the same arity."""
        f_x = Expression([Symbol("f"), Variable("x")])
        assert f_x.matches(Expression([Symbol("f"), Grounded(1)]))
        assert not f_x.matches(Expression([Symbol("f"), Grounded(1), Grounded(2)]))

    def test_empty_matches_only_empty(self):
        """Empty is compatible only with Empty."""
        assert Empty.matches(Empty)
        assert not Empty.matches(Symbol("x"))


class TestHelpers:
    """Tests for conversion helpers."""

    def test_to_atom(self):
        """Python values convert to atoms."""
        assert to_atom(42) == Grounded(42)
        assert to_atom(True) == Grounded(True)
        assert to_atom("foo") == Symbol("foo")
        assert to_atom("$x") == Variable("x")
        assert to_atom(None) is Empty
        assert to_atom(["f", 1, ["g", "$y"]]) == Expression([
            Symbol("f"), Grounded(1), Expression([Symbol("g"), Variable("y")])])

    def test_to_atom_keeps_atoms(self):
        """Atoms pass through unchanged."""
        s = Symbol("a")
        assert to_atom(s) is s

    def test_to_atom_rejects_unknown(self):
        """Unsupported values raise TypeError."""
        with pytest.raises(TypeError):
            to_atom({"a": 1})

    def test_bool_atom(self):
        """bool_atom maps Python truth to True / False symbols."""
        assert bool_atom(True) == TRUE == Symbol("True")
        assert bool_atom(False) == FALSE == Symbol("False")

    def test_variables_in(self):
        """Variables are listed once in first-seen order."""
        expr = to_atom(["f", "$x", ["g", "$y", "$x"], "$z"])
        assert variables_in(expr) == ("x", "y", "z")
        assert variables_in(Symbol("a")) == ()
