"""Tests for rewrite rules and guards."""

import pytest
from mettacore import (
    Rule, is_rule_form, rule_from_form, rules_from_atoms,
    Symbol, Grounded, E, parse,
)


class TestRuleApply:
    """Tests for Rule.apply()."""

    def test_apply_instantiates_template(self):
        """A matching rule returns the instantiated template."""
        rule = Rule("double", E("(double $x)"), E("(* 2 $x)"))
        assert rule.apply(E("(double 21)")) == E("(* 2 21)")

    def test_apply_no_match(self):
        """A non-matching rule returns None."""
        rule = Rule("double", E("(double $x)"), E("(* 2 $x)"))
        assert rule.apply(E("(triple 21)")) is None

    def test_template_variables_not_in_pattern(self):
        """Template variables the pattern does not bind stay variables."""
        rule = Rule("r", E("(f $x)"), E("(g $x $y)"))
        assert rule.apply(E("(f a)")) == E("(g a $y)")

    def test_symbol_rule(self):
        """Rules can rewrite plain symbols."""
        rule = Rule("pi", Symbol("pi"), Grounded(3.14159))
        assert rule.apply(Symbol("pi")) == Grounded(3.14159)

    def test_immutable(self):
        """Rule attributes cannot be reassigned or deleted."""
        rule = Rule("double", E("(double $x)"), E("(* 2 $x)"), priority=1)
        with pytest.raises(AttributeError):
            rule.template = E("(* 3 $x)")
        with pytest.raises(AttributeError):
            del rule.priority
        assert rule.template == E("(* 2 $x)")
        assert rule.priority == 1


class TestGuards:
    """Tests for guard predicates."""

    def test_guard_allows(self):
        """A guard returning true lets the rule fire."""
        rule = Rule("neg", E("(abs $x)"), E("(- $x)"),
                    guard=lambda b: b["x"].value < 0)
        assert rule.apply(E("(abs -3)")) == E("(- -3)")

    def test_guard_blocks(self):
        """A guard returning false stops the rule."""
        rule = Rule("neg", E("(abs $x)"), E("(- $x)"),
                    guard=lambda b: b["x"].value < 0)
        assert rule.apply(E("(abs 3)")) is None
        assert rule.match(E("(abs 3)")) is None

    def test_match_returns_bindings(self):
        """match() exposes the bindings the rule fires with."""
        rule = Rule("r", E("(f $x)"), Symbol("y"))
        assert rule.match(E("(f a)"))["x"] == Symbol("a")


class TestRuleRendering:
    """Tests for to_metta() and repr."""

    def test_to_metta(self):
        """Rules render as equations."""
        rule = Rule("double", E("(double $x)"), E("(* 2 $x)"))
        assert rule.to_metta() == "(= (double $x) (* 2 $x))"

    def test_repr_plain(self):
        """repr shows the rule name."""
        rule = Rule("double", E("(double $x)"), E("(* 2 $x)"))
        assert repr(rule) == "@double: (= (double $x) (* 2 $x))"

    def test_repr_priority_and_description(self):
        """repr shows a non-zero priority and the description."""
        rule = Rule("z", E("(f 0)"), Symbol("zero"), priority=5, description="zero case")
        assert repr(rule) == '@z[5] "zero case": (= (f 0) zero)'


class TestRuleForms:
    """Tests for building rules from (= pattern template) atoms."""

    def test_is_rule_form(self):
        """Only three-element expressions headed by = are rule forms."""
        assert is_rule_form(E("(= (f $x) $x)"))
        assert not is_rule_form(E("(= a)"))
        assert not is_rule_form(E("(== a b)"))
        assert not is_rule_form(Symbol("="))

    def test_rule_from_form(self):
        """The pattern and template come from the form."""
        rule = rule_from_form(E("(= (f $x) (g $x))"), "r1")
        assert rule.name == "r1"
        assert rule.pattern == E("(f $x)")
        assert rule.template == E("(g $x)")
        assert rule.priority == 0

    def test_rule_from_form_rejects_other_atoms(self):
        """Non rule forms raise ValueError."""
        with pytest.raises(ValueError):
            rule_from_form(E("(f a)"), "r")

    def test_rules_from_atoms(self):
        """Rule forms are collected and numbered, other atoms skipped."""
        atoms = parse("(= (a) 1) (foo) (= (b) 2)")
        rules = rules_from_atoms(atoms, prefix="lib")
        assert [r.name for r in rules] == ["lib-0", "lib-1"]
        assert rules[1].pattern == E("(b)")
