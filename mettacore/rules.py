"""
Rewrite rules.

A rule pairs a pattern with a template. In MeTTa source a rule is
written as an equation:

    (= (double $x) (* 2 $x))

Applying the rule to (double 21) matches the pattern, binds $x to 21
and instantiates the template to (* 2 21).
"""

from typing import Callable, Iterable, List, Optional

from .atoms import Atom, Expression, Symbol, _init
from .bindings import Bindings
from .matcher import PatternMatcher

GuardType = Callable[[Bindings], bool]

_DEFAULT_MATCHER = PatternMatcher()


class Rule:
    """
    A named pattern -> template rewrite rule.

    Rules are never modified after creation.

    Args:
        name: Rule name, used in traces and listings
        pattern: Atom the rule applies to (may contain variables)
        template: Atom produced, with pattern variables substituted
        guard: Optional predicate on the match bindings; the rule only
            fires when it returns true
        priority: Higher priority rules are tried first (default: 0).
            Rules of equal priority keep their definition order.
        description: Optional free-text description
    """

    __slots__ = ('name', 'pattern', 'template', 'guard', 'priority', 'description')

    def __init__(self, name: str, pattern: Atom, template: Atom,
                 guard: Optional[GuardType] = None, priority: int = 0,
                 description: Optional[str] = None):
        _init(self, name=name, pattern=pattern, template=template, guard=guard,
              priority=priority, description=description)

    def __setattr__(self, name, value):
        raise AttributeError("Rule is immutable")

    def __delattr__(self, name):
        raise AttributeError("Rule is immutable")

    def match(self, atom: Atom, matcher: Optional[PatternMatcher] = None):
        """Return the bindings under which this rule fires on atom, or None."""
        matcher = matcher or _DEFAULT_MATCHER
        bindings = matcher.match(atom, self.pattern)
        if not bindings:
            return None
        if self.guard is not None and not self.guard(bindings):
            return None
        return bindings

    def apply(self, atom: Atom, matcher: Optional[PatternMatcher] = None) -> Optional[Atom]:
        """
        Rewrite an atom with this rule.

        Returns:
            The instantiated template, or None if the pattern does not
            match (or the guard rejects the bindings)
        """
        bindings = self.match(atom, matcher)
        if bindings is None:
            return None
        return bindings.apply(self.template)

    def to_metta(self) -> str:
        return f"(= {self.pattern.to_metta()} {self.template.to_metta()})"

    def __repr__(self) -> str:
        if self.priority != 0:
            base = f"@{self.name}[{self.priority}]"
        else:
            base = f"@{self.name}"
        if self.description:
            base += f" \"{self.description}\""
        return f"{base}: {self.to_metta()}"


def is_rule_form(atom: Atom) -> bool:
    """Check whether an atom has the shape (= pattern template)."""
    return (isinstance(atom, Expression)
            and len(atom) == 3
            and atom.children[0] == Symbol("="))


def rule_from_form(atom: Atom, name: str, priority: int = 0) -> Rule:
    """
    Build a Rule from an (= pattern template) expression.

    Raises:
        ValueError: If atom is not a rule form
    """
    if not is_rule_form(atom):
        raise ValueError(f"Not a rule definition: {atom.to_metta()}")
    _, pattern, template = atom.children
    return Rule(name, pattern, template, priority=priority)


def rules_from_atoms(atoms: Iterable[Atom], prefix: str = "rule") -> List[Rule]:
    """
    Collect the rule definitions from a sequence of atoms.

    Rules are named "<prefix>-<n>" in order of appearance; atoms that
    are not rule forms are skipped.
    """
    rules = []
    for atom in atoms:
        if is_rule_form(atom):
            rules.append(rule_from_form(atom, f"{prefix}-{len(rules)}"))
    return rules
