"""
Atom model for the MeTTa engine.

Every term of the language is an Atom, one of six variants:

    Symbol      foo, +, Person        atomic constant
    Variable    $x                    pattern placeholder
    Grounded    42, 3.14, "text"      wraps a Python primitive
    Expression  (f x (g y))           ordered list of child atoms
    Empty       ()                    canonical empty value
    Error       (Error "message")     result of a failed computation

Atoms are immutable and compare structurally, so they can be shared
freely, used as dict keys and stored in sets.
"""

from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple


class AtomType(Enum):
    """Discriminant carried by every atom."""
    SYMBOL = "Symbol"
    VARIABLE = "Variable"
    GROUNDED = "Grounded"
    EXPRESSION = "Expression"
    EMPTY = "Empty"
    ERROR = "Error"


# ============================================================
# Base class
# ============================================================

class Atom:
    """Common interface of all atom variants."""

    __slots__ = ()

    atom_type: AtomType

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def is_variable(self) -> bool:
        return self.atom_type is AtomType.VARIABLE

    def is_symbol(self) -> bool:
        return self.atom_type is AtomType.SYMBOL

    def is_grounded(self) -> bool:
        return self.atom_type is AtomType.GROUNDED

    def is_expression(self) -> bool:
        return self.atom_type is AtomType.EXPRESSION

    def is_error(self) -> bool:
        return self.atom_type is AtomType.ERROR

    def to_metta(self) -> str:
        raise NotImplementedError

    def matches(self, other: "Atom") -> bool:
        """
        Cheap compatibility check that builds no bindings.

        A Variable on either side is always compatible. Expressions are
        compatible when they have the same arity and all children are
        pairwise compatible. Everything else must be equal.
        """
        if self.is_variable() or other.is_variable():
            return True
        if self.is_expression() and other.is_expression():
            if len(self) != len(other):
                return False
            return all(a.matches(b) for a, b in zip(self, other))
        return self == other

    def __str__(self) -> str:
        return self.to_metta()


def _init(atom: Atom, **fields) -> None:
    """Set slot values on a freshly created (otherwise immutable) atom."""
    for name, value in fields.items():
        object.__setattr__(atom, name, value)


# ============================================================
# Variants
# ============================================================

class Symbol(Atom):
    """An atomic constant identified by its name."""

    __slots__ = ('name',)

    atom_type = AtomType.SYMBOL

    def __init__(self, name: str):
        _init(self, name=name)

    def to_metta(self) -> str:
        return self.name

    def __eq__(self, other):
        return isinstance(other, Symbol) and other.name == self.name

    def __hash__(self):
        return hash((AtomType.SYMBOL, self.name))

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"


class Variable(Atom):
    """A pattern placeholder. Two variables are the same iff their names are."""

    __slots__ = ('name',)

    atom_type = AtomType.VARIABLE

    def __init__(self, name: str):
        _init(self, name=name)

    def to_metta(self) -> str:
        return f"${self.name}"

    def __eq__(self, other):
        return isinstance(other, Variable) and other.name == self.name

    def __hash__(self):
        return hash((AtomType.VARIABLE, self.name))

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"


_STRING_ESCAPES = {'\\': '\\\\', '"': '\\"', '\n': '\\n', '\t': '\\t'}


def _infer_value_type(value: Any) -> str:
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "Bool"
    if isinstance(value, int):
        return "Number"
    if isinstance(value, float):
        return "Float"
    if isinstance(value, str):
        return "String"
    raise TypeError(f"Cannot ground value of type {type(value).__name__}")


class Grounded(Atom):
    """
    An atom wrapping a native value.

    The value_type tag is one of "Number" (int), "Float", "String" or
    "Bool" and takes part in equality, so Grounded(1) != Grounded(1.0).

    Examples:
        Grounded(42).value_type      # => "Number"
        Grounded(3.14).as_float()    # => 3.14
        Grounded("hi").to_metta()    # => '"hi"'
    """

    __slots__ = ('value', 'value_type')

    atom_type = AtomType.GROUNDED

    def __init__(self, value: Any, value_type: Optional[str] = None):
        _init(self, value=value, value_type=value_type or _infer_value_type(value))

    def is_numeric(self) -> bool:
        return self.value_type in ("Number", "Float")

    def _typed(self, value_type: str, accessor: str):
        if self.value_type != value_type:
            raise TypeError(f"{accessor}: grounded value is {self.value_type}, not {value_type}")
        return self.value

    def as_int(self) -> int:
        return self._typed("Number", "as_int")

    def as_float(self) -> float:
        return self._typed("Float", "as_float")

    def as_string(self) -> str:
        return self._typed("String", "as_string")

    def as_bool(self) -> bool:
        return self._typed("Bool", "as_bool")

    def to_metta(self) -> str:
        if self.value_type == "String":
            escaped = "".join(_STRING_ESCAPES.get(c, c) for c in self.value)
            return f'"{escaped}"'
        if self.value_type == "Float":
            return repr(float(self.value))
        return str(self.value)

    def __eq__(self, other):
        return (isinstance(other, Grounded)
                and other.value_type == self.value_type
                and other.value == self.value)

    def __hash__(self):
        return hash((AtomType.GROUNDED, self.value_type, self.value))

    def __repr__(self) -> str:
        return f"Grounded({self.value!r})"


class Expression(Atom):
    """
    An ordered, possibly nested list of atoms.

    The zero-child expression is valid and renders as "()", but it is a
    different value from the Empty atom.

    Examples:
        expr = Expression([Symbol("foo"), Grounded(42)])
        expr.head          # => Symbol('foo')
        expr.tail          # => [Grounded(42)]
        expr.to_metta()    # => "(foo 42)"
    """

    __slots__ = ('children',)

    atom_type = AtomType.EXPRESSION

    def __init__(self, children: Iterable[Atom] = ()):
        _init(self, children=tuple(children))

    @property
    def size(self) -> int:
        return len(self.children)

    @property
    def head(self) -> Atom:
        if not self.children:
            raise IndexError("head of an empty expression")
        return self.children[0]

    @property
    def tail(self) -> List[Atom]:
        return list(self.children[1:])

    def is_empty(self) -> bool:
        return not self.children

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[Atom]:
        return iter(self.children)

    def __getitem__(self, index):
        return self.children[index]

    def to_metta(self) -> str:
        return "(" + " ".join(child.to_metta() for child in self.children) + ")"

    def __eq__(self, other):
        return isinstance(other, Expression) and other.children == self.children

    def __hash__(self):
        return hash((AtomType.EXPRESSION, self.children))

    def __repr__(self) -> str:
        return f"Expression({list(self.children)!r})"


class _Empty(Atom):
    """
    Singleton canonical empty value.

    Empty is what special forms return when they produce nothing
    (a rule definition, a failed match).
    """

    __slots__ = ()

    atom_type = AtomType.EMPTY

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def to_metta(self) -> str:
        return "()"

    def __eq__(self, other):
        return isinstance(other, _Empty)

    def __hash__(self):
        return hash(AtomType.EMPTY)

    def __repr__(self) -> str:
        return "Empty"


Empty = _Empty()


class Error(Atom):
    """
    A terminal value produced by a failed computation.

    Errors are first-class atoms: evaluation returns them instead of
    raising. The optional source atom is diagnostic context only and
    does not take part in equality.
    """

    __slots__ = ('message', 'source')

    atom_type = AtomType.ERROR

    def __init__(self, message: str, source: Optional[Atom] = None):
        _init(self, message=message, source=source)

    def to_metta(self) -> str:
        text = Grounded(self.message).to_metta()
        if self.source is not None:
            return f"(Error {self.source.to_metta()} {text})"
        return f"(Error {text})"

    def __eq__(self, other):
        return isinstance(other, Error) and other.message == self.message

    def __hash__(self):
        return hash((AtomType.ERROR, self.message))

    def __repr__(self) -> str:
        return f"Error({self.message!r})"


# ============================================================
# Helpers
# ============================================================

TRUE = Symbol("True")
FALSE = Symbol("False")


def bool_atom(flag: bool) -> Symbol:
    """Return the boolean Symbol for a Python truth value."""
    return TRUE if flag else FALSE


def to_atom(value: Any) -> Atom:
    """
    Convert a Python value into an atom.

    Conversion rules:
        Atom            -> unchanged
        bool/int/float  -> Grounded
        "$name"         -> Variable("name")
        other str       -> Symbol
        list/tuple      -> Expression of converted items
        None            -> Empty

    Raises:
        TypeError: for values with no atom representation
    """
    if isinstance(value, Atom):
        return value
    if value is None:
        return Empty
    if isinstance(value, (bool, int, float)):
        return Grounded(value)
    if isinstance(value, str):
        if value.startswith("$") and len(value) > 1:
            return Variable(value[1:])
        return Symbol(value)
    if isinstance(value, (list, tuple)):
        return Expression(to_atom(item) for item in value)
    raise TypeError(f"Cannot convert {type(value).__name__} to an atom")


def variables_in(atom: Atom) -> Tuple[str, ...]:
    """Names of the variables occurring in an atom, in first-seen order."""
    seen: List[str] = []

    def walk(a: Atom):
        if isinstance(a, Variable):
            if a.name not in seen:
                seen.append(a.name)
        elif isinstance(a, Expression):
            for child in a.children:
                walk(child)

    walk(atom)
    return tuple(seen)
