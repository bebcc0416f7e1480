"""
Space: an insertion-ordered set of atoms supporting pattern queries.

A Space is the surface an external hypergraph store drives the engine
through: add, remove, contains, size and query are all it needs.
"""

from typing import Iterable, Iterator, List, Optional

from .atoms import Atom, Expression, Grounded, Symbol
from .bindings import Bindings
from .matcher import PatternMatcher


class Space:
    """
    A mutable collection of atoms with set semantics.

    Structurally equal atoms are stored once. Iteration and query
    results follow insertion order.

    Examples:
        space = Space()
        space.add(E("(Person Alice)"))       # => True
        space.add(E("(Person Alice)"))       # => False
        space.query(E("(Person $name)"))     # => [Bindings({'name': Symbol('Alice')})]
    """

    def __init__(self, name: str = "default", atoms: Optional[Iterable[Atom]] = None,
                 matcher: Optional[PatternMatcher] = None):
        self.name = name
        self._atoms = {}  # dict as an ordered set
        self._matcher = matcher or PatternMatcher()
        for atom in atoms or ():
            self.add(atom)

    def add(self, atom: Atom) -> bool:
        """Insert an atom. Returns False if an equal atom is already present."""
        if atom in self._atoms:
            return False
        self._atoms[atom] = None
        return True

    def remove(self, atom: Atom) -> bool:
        """Remove an atom. Returns False if it was not present."""
        if atom not in self._atoms:
            return False
        del self._atoms[atom]
        return True

    def contains(self, atom: Atom) -> bool:
        return atom in self._atoms

    def __contains__(self, atom: Atom) -> bool:
        return atom in self._atoms

    @property
    def size(self) -> int:
        return len(self._atoms)

    def __len__(self) -> int:
        return len(self._atoms)

    def __iter__(self) -> Iterator[Atom]:
        return iter(list(self._atoms))

    def atoms(self) -> List[Atom]:
        """Return a copy of the stored atoms in insertion order."""
        return list(self._atoms)

    def clear(self) -> None:
        self._atoms.clear()

    def query(self, pattern: Atom) -> List[Bindings]:
        """Match every stored atom against a pattern; one Bindings per match."""
        return self._matcher.match_all(self._atoms, pattern)

    def query_atoms(self, pattern: Atom) -> List[Atom]:
        """Return the stored atoms that match a pattern."""
        return [atom for atom in self._atoms if self._matcher.match(atom, pattern)]

    def to_metta(self) -> str:
        """Render every stored atom, one per line."""
        return "\n".join(atom.to_metta() for atom in self._atoms)

    def __repr__(self) -> str:
        return f"Space({self.name!r}, size={len(self)})"


def atomspace_atom(atom_type: str, name: Optional[str] = None,
                   outgoing: Iterable[Atom] = ()) -> Expression:
    """
    Convert a host hypergraph atom into a MeTTa expression.

    Nodes carry a name, links carry outgoing atoms:

        atomspace_atom("ConceptNode", "cat")
            # => (ConceptNode "cat")
        atomspace_atom("InheritanceLink", outgoing=[cat, animal])
            # => (InheritanceLink (ConceptNode "cat") (ConceptNode "animal"))
    """
    outgoing = list(outgoing)
    children: List[Atom] = [Symbol(atom_type)]
    if outgoing:
        children.extend(outgoing)
    elif name is not None:
        children.append(Grounded(name))
    return Expression(children)
