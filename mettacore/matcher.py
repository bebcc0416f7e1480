"""
Structural pattern matching and unification over atoms.

    match(atom, pattern)   one-directional: only variables in the pattern bind
    unify(a, b)            symmetric: variables on either side bind
    match_all(atoms, pat)  one Bindings per matching atom, input order kept

Matching is deterministic: every position has exactly one way to match,
so there is no backtracking and a failed sub-match fails the whole
match.
"""

from typing import Iterable, List, Optional

from .atoms import Atom, Expression, Variable, _Empty
from .bindings import Bindings, MatchResult, NoMatch


class PatternMatcher:
    """
    Matches atoms against patterns, producing Bindings or NoMatch.

    Examples:
        matcher = PatternMatcher()
        pattern = E("(Person $name)")
        if bindings := matcher.match(E("(Person Alice)"), pattern):
            bindings["name"]    # => Symbol('Alice')
    """

    def match(self, atom: Atom, pattern: Atom,
              bindings: Optional[Bindings] = None) -> MatchResult:
        """
        Match an atom against a pattern.

        Args:
            atom: The atom to test. Variables in it get no special treatment.
            pattern: The pattern, which may contain variables.
            bindings: Optional bindings the result must be consistent with.

        Returns:
            Bindings on success (merged with the given bindings), NoMatch otherwise
        """
        result = self._match(atom, pattern)
        if not result or bindings is None:
            return result
        return bindings.merge(result)

    def _match(self, atom: Atom, pattern: Atom) -> MatchResult:
        if isinstance(pattern, Variable):
            result = Bindings()
            result.bind(pattern.name, atom)
            return result

        if isinstance(pattern, Expression):
            if not isinstance(atom, Expression) or len(atom) != len(pattern):
                return NoMatch
            result = Bindings()
            for child, pat_child in zip(atom.children, pattern.children):
                sub = self._match(child, pat_child)
                if not sub:
                    return NoMatch
                result = result.merge(sub)
                if not result:
                    return NoMatch
            return result

        if isinstance(pattern, _Empty):
            return Bindings() if isinstance(atom, _Empty) else NoMatch

        # Symbol, Grounded and Error patterns match only an equal atom
        return Bindings() if atom == pattern else NoMatch

    def match_all(self, atoms: Iterable[Atom], pattern: Atom) -> List[Bindings]:
        """Match every atom against the pattern, keeping the successful Bindings in order."""
        results = []
        for atom in atoms:
            bindings = self._match(atom, pattern)
            if bindings:
                results.append(bindings)
        return results

    def unify(self, a: Atom, b: Atom,
              bindings: Optional[Bindings] = None) -> MatchResult:
        """
        Unify two atoms, binding variables that appear on either side.

        Bindings found so far are applied to both sides before they are
        compared, so repeated variables are solved consistently. A
        variable facing an atom is bound to it as is, even when the
        atom contains that variable.

        Returns:
            Bindings on success, NoMatch otherwise
        """
        result = bindings.copy() if bindings is not None else Bindings()
        if self._unify(a, b, result):
            return result
        return NoMatch

    def _unify(self, a: Atom, b: Atom, bindings: Bindings) -> bool:
        a = bindings.apply(a)
        b = bindings.apply(b)

        if a == b:
            return True
        if isinstance(a, Variable):
            return self._bind_var(a, b, bindings)
        if isinstance(b, Variable):
            return self._bind_var(b, a, bindings)
        if isinstance(a, Expression) and isinstance(b, Expression):
            if len(a) != len(b):
                return False
            return all(self._unify(x, y, bindings) for x, y in zip(a.children, b.children))
        return False

    @staticmethod
    def _bind_var(var: Variable, value: Atom, bindings: Bindings) -> bool:
        # no occurs check: $x unifies with (g $x)
        return bindings.bind(var.name, value)


_default_matcher = PatternMatcher()


def match(atom: Atom, pattern: Atom, bindings: Optional[Bindings] = None) -> MatchResult:
    """Match an atom against a pattern using the shared matcher."""
    return _default_matcher.match(atom, pattern, bindings)


def unify(a: Atom, b: Atom, bindings: Optional[Bindings] = None) -> MatchResult:
    """Unify two atoms using the shared matcher."""
    return _default_matcher.unify(a, b, bindings)


def match_all(atoms: Iterable[Atom], pattern: Atom) -> List[Bindings]:
    """Match every atom in a sequence against a pattern using the shared matcher."""
    return _default_matcher.match_all(atoms, pattern)
