"""
Bindings: the variable substitution environment produced by matching.

Bindings map variable names (without the leading "$") to atoms:

    if bindings := matcher.match(atom, pattern):
        print(bindings["name"])

A Bindings object is truthy even when empty; a failed match or a
conflicting merge is represented by the falsy NoMatch singleton.
"""

from typing import Dict, Iterable, Optional, Union

from .atoms import Atom, Expression, Variable


class Bindings:
    """
    Dict-like mapping from variable name to a single bound atom.

    Within one Bindings a name maps to at most one atom: binding a name
    to a different atom fails, binding it again to an equal atom is a
    no-op that succeeds.

    Examples:
        bindings = Bindings([["x", Symbol("foo")]])
        bindings["x"]                 # => Symbol('foo')
        bindings.bind("x", Symbol("bar"))   # => False
        bindings.apply(Variable("x"))       # => Symbol('foo')
    """

    __slots__ = ('_dict',)

    def __init__(self, pairs: Optional[Union[Dict[str, Atom], Iterable]] = None):
        """Initialize from a dict or a list of [name, atom] pairs."""
        if pairs is None:
            self._dict: Dict[str, Atom] = {}
        elif isinstance(pairs, dict):
            self._dict = dict(pairs)
        else:
            self._dict = {name: value for name, value in pairs}

    def __bool__(self) -> bool:
        """Bindings are always truthy (use NoMatch for failed matches)."""
        return True

    def bind(self, name: str, atom: Atom) -> bool:
        """
        Bind a variable name to an atom.

        Returns:
            True if the name was unbound or already bound to an equal
            atom, False if it is bound to a different atom (the
            existing binding is kept).
        """
        existing = self._dict.get(name)
        if existing is not None:
            return existing == atom
        self._dict[name] = atom
        return True

    def __getitem__(self, key: str) -> Atom:
        return self._dict[key]

    def get(self, key: str, default=None):
        """Get a bound atom with optional default."""
        return self._dict.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._dict

    def __contains__(self, key: str) -> bool:
        return key in self._dict

    def keys(self):
        return self._dict.keys()

    def values(self):
        return self._dict.values()

    def items(self):
        return self._dict.items()

    def __iter__(self):
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    @property
    def size(self) -> int:
        return len(self._dict)

    def is_empty(self) -> bool:
        return not self._dict

    def apply(self, atom: Atom) -> Atom:
        """
        Substitute bound variables in an atom.

        Recurses into expressions and returns a new atom; unbound
        variables are left in place. The input is never modified.
        """
        if isinstance(atom, Variable):
            return self._dict.get(atom.name, atom)
        if isinstance(atom, Expression):
            return Expression(self.apply(child) for child in atom.children)
        return atom

    def merge(self, other: "Bindings") -> Union["Bindings", "_NoMatch"]:
        """
        Combine two Bindings into a new one.

        Returns:
            The union of both, or NoMatch if a shared name is bound to
            different atoms. Neither input is modified.
        """
        merged = Bindings(self._dict)
        for name, value in other.items():
            if not merged.bind(name, value):
                return NoMatch
        return merged

    def copy(self) -> "Bindings":
        return Bindings(self._dict)

    def to_dict(self) -> Dict[str, Atom]:
        """Convert to a plain dictionary."""
        return self._dict.copy()

    def to_metta(self) -> str:
        return ", ".join(f"${name} = {value.to_metta()}" for name, value in self._dict.items())

    def __repr__(self) -> str:
        return f"Bindings({self._dict})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return self._dict == other._dict
        return False


class _NoMatch:
    """
    Singleton representing a failed match or a binding conflict.

    NoMatch is falsy, allowing natural use in conditionals:

        if bindings := matcher.match(atom, pattern):
            # matched
        else:
            # NoMatch
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatch"

    def __getitem__(self, key: str):
        raise KeyError(f"NoMatch has no binding for '{key}'")

    def get(self, key: str, default=None):
        return default

    def __contains__(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter([])


# Singleton instance
NoMatch = _NoMatch()

MatchResult = Union[Bindings, _NoMatch]
