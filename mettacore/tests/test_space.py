"""Tests for Space and the host-store bridge."""

from mettacore import Space, atomspace_atom, Symbol, Grounded, E


class TestSpace:
    """Tests for Space storage."""

    def test_add_and_contains(self):
        """Added atoms are contained."""
        space = Space()
        assert space.add(E("(Person Alice)"))
        assert space.contains(E("(Person Alice)"))
        assert E("(Person Alice)") in space
        assert E("(Person Bob)") not in space

    def test_set_semantics(self):
        """Structurally equal atoms are stored once."""
        space = Space()
        assert space.add(E("(Person Alice)")) is True
        assert space.add(E("(Person Alice)")) is False
        assert len(space) == 1
        assert space.size == 1

    def test_remove(self):
        """remove() reports whether the atom was present."""
        space = Space(atoms=[Symbol("a")])
        assert space.remove(Symbol("a")) is True
        assert space.remove(Symbol("a")) is False
        assert len(space) == 0

    def test_insertion_order(self):
        """atoms() and iteration follow insertion order."""
        space = Space(atoms=[Symbol("c"), Symbol("a"), Symbol("b")])
        assert space.atoms() == [Symbol("c"), Symbol("a"), Symbol("b")]
        assert list(space) == space.atoms()

    def test_atoms_returns_copy(self):
        """Mutating the returned list does not touch the space."""
        space = Space(atoms=[Symbol("a")])
        space.atoms().append(Symbol("b"))
        assert len(space) == 1

    def test_clear(self):
        """clear() empties the space."""
        space = Space(atoms=[Symbol("a"), Symbol("b")])
        space.clear()
        assert space.atoms() == []

    def test_name_and_repr(self):
        """Spaces carry a name."""
        space = Space("facts", [Symbol("a")])
        assert space.name == "facts"
        assert repr(space) == "Space('facts', size=1)"

    def test_to_metta(self):
        """to_metta() renders one atom per line."""
        space = Space(atoms=[E("(Person Alice)"), Grounded(3)])
        assert space.to_metta() == "(Person Alice)\n3"


class TestSpaceQuery:
    """Tests for pattern queries."""

    def test_query_single(self):
        """Querying (Person $name) finds Alice."""
        space = Space(atoms=[E("(Person Alice)")])
        results = space.query(E("(Person $name)"))
        assert len(results) == 1
        assert results[0]["name"] == Symbol("Alice")

    def test_query_order(self):
        """Results follow insertion order."""
        space = Space(atoms=[E("(Person Bob)"), E("(City Paris)"), E("(Person Alice)")])
        names = [b["name"] for b in space.query(E("(Person $name)"))]
        assert names == [Symbol("Bob"), Symbol("Alice")]

    def test_query_no_results(self):
        """No match gives an empty list."""
        space = Space(atoms=[E("(Person Bob)")])
        assert space.query(E("(City $c)")) == []

    def test_query_atoms(self):
        """query_atoms() returns the matching stored atoms."""
        space = Space(atoms=[E("(likes a b)"), E("(likes b c)"), E("(hates a c)")])
        assert space.query_atoms(E("(likes $x $y)")) == [E("(likes a b)"), E("(likes b c)")]


class TestAtomspaceBridge:
    """Tests for converting host hypergraph atoms."""

    def test_node(self):
        """Nodes become (Type "name")."""
        assert atomspace_atom("ConceptNode", "cat") == E('(ConceptNode "cat")')

    def test_link(self):
        """Links carry their outgoing atoms."""
        cat = atomspace_atom("ConceptNode", "cat")
        animal = atomspace_atom("ConceptNode", "animal")
        link = atomspace_atom("InheritanceLink", outgoing=[cat, animal])
        assert link.to_metta() == '(InheritanceLink (ConceptNode "cat") (ConceptNode "animal"))'

    def test_query_host_atoms(self):
        """Converted atoms can be queried like any other."""
        cat = atomspace_atom("ConceptNode", "cat")
        animal = atomspace_atom("ConceptNode", "animal")
        space = Space(atoms=[atomspace_atom("InheritanceLink", outgoing=[cat, animal])])
        results = space.query(E('(InheritanceLink (ConceptNode "cat") $what)'))
        assert results[0]["what"] == animal
