"""
Parser for MeTTa source text.

Grammar:
    ; comment           runs to the end of the line
    (a b c)             Expression; () is the Empty atom
    $x                  Variable
    "text"              Grounded String (escapes: \\" \\\\ \\n \\t)
    42, -7              Grounded Number
    3.14, -0.5, 1e10    Grounded Float
    anything else       Symbol

Examples:
    parse("(= (double $x) (* 2 $x))")
    parse("foo bar 42")          # three top-level atoms
"""

import re
from typing import List, Tuple, Union

from .atoms import Atom, Empty, Expression, Grounded, Symbol, Variable, to_atom

_INT_RE = re.compile(r'-?\d+\Z')
_FLOAT_RE = re.compile(r'-?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?\Z')
_NUMBER_START_RE = re.compile(r'-?\.?\d')

_DELIMITERS = frozenset('();"')
_ESCAPES = {'"': '"', '\\': '\\', 'n': '\n', 't': '\t'}


class ParseError(ValueError):
    """Raised for malformed MeTTa source."""

    def __init__(self, message: str, position: int, line: int, column: int):
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class Parser:
    """
    Parses MeTTa text into a list of top-level atoms.

    Parsing is restartable: each call to parse() starts again from the
    beginning of the text and returns an equal list.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> List[Atom]:
        """Parse all top-level atoms."""
        self.pos = 0
        atoms = []
        while True:
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.text):
                return atoms
            atoms.append(self._parse_atom())

    def _error(self, message: str, position: int = None) -> ParseError:
        if position is None:
            position = self.pos
        line = self.text.count('\n', 0, position) + 1
        column = position - (self.text.rfind('\n', 0, position) + 1) + 1
        return ParseError(message, position, line, column)

    def _skip_whitespace_and_comments(self):
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if c.isspace():
                self.pos += 1
            elif c == ';':
                end = text.find('\n', self.pos)
                self.pos = len(text) if end < 0 else end + 1
            else:
                break

    def _parse_atom(self) -> Atom:
        c = self.text[self.pos]
        if c == '(':
            return self._parse_expression()
        if c == ')':
            raise self._error("Unexpected ')'")
        if c == '"':
            return self._parse_string()
        return self._parse_token()

    def _parse_expression(self) -> Atom:
        start = self.pos
        self.pos += 1  # opening paren
        children = []
        while True:
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.text):
                raise self._error("Unclosed '('", start)
            if self.text[self.pos] == ')':
                self.pos += 1
                break
            children.append(self._parse_atom())
        if not children:
            return Empty
        return Expression(children)

    def _parse_string(self) -> Grounded:
        start = self.pos
        self.pos += 1  # opening quote
        chars = []
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                return Grounded("".join(chars))
            if c == '\\':
                if self.pos + 1 >= len(text):
                    break
                nxt = text[self.pos + 1]
                chars.append(_ESCAPES.get(nxt, '\\' + nxt))
                self.pos += 2
                continue
            chars.append(c)
            self.pos += 1
        raise self._error("Unterminated string", start)

    def _parse_token(self) -> Atom:
        start = self.pos
        text = self.text
        while (self.pos < len(text)
               and not text[self.pos].isspace()
               and text[self.pos] not in _DELIMITERS):
            self.pos += 1
        token = text[start:self.pos]

        if token.startswith('$'):
            if len(token) == 1:
                raise self._error("Variable without a name", start)
            return Variable(token[1:])

        if _NUMBER_START_RE.match(token):
            if _INT_RE.match(token):
                return Grounded(int(token))
            if _FLOAT_RE.match(token):
                return Grounded(float(token))
            raise self._error(f"Invalid numeric literal '{token}'", start)

        return Symbol(token)


def parse(text: str) -> List[Atom]:
    """Parse MeTTa text into its top-level atoms."""
    return Parser(text).parse()


def parse_atom(text: str) -> Atom:
    """
    Parse text and return its first top-level atom.

    Raises:
        ParseError: If the text is malformed or contains no atom
    """
    atoms = parse(text)
    if not atoms:
        raise ParseError("No atom in input", 0, 1, 1)
    return atoms[0]


# ============================================================
# Expression Builder
# ============================================================

class _ExprBuilder:
    """
    Expression builder for constructing atoms in Python code.

    Examples:
        from mettacore import E

        # Parse MeTTa text
        expr = E("(+ x (* 2 $y))")

        # Build programmatically; Python values are converted with to_atom
        expr = E.op("+", "x", E.op("*", 2, "$y"))

        # Variables and symbols
        x, y = E.vars("x", "y")
        E.op("Person", E.sym("Alice"))
    """

    def __call__(self, s: str) -> Atom:
        """
        Parse a single atom from MeTTa text.

        Examples:
            E("(+ x 1)") -> Expression([Symbol('+'), Symbol('x'), Grounded(1)])
            E("$x") -> Variable('x')
        """
        return parse_atom(s)

    def op(self, head: Union[str, Atom], *args) -> Expression:
        """
        Build an expression from a head and arguments.

        Examples:
            E.op("+", 1, 2) -> (+ 1 2)
            E.op("f", "$x", [1, 2]) -> (f $x (1 2))
        """
        return Expression([to_atom(head)] + [to_atom(a) for a in args])

    def sym(self, name: str) -> Symbol:
        return Symbol(name)

    def var(self, name: str) -> Variable:
        return Variable(name)

    def vars(self, *names: str) -> Tuple[Variable, ...]:
        """
        Create multiple variables for unpacking.

        Example:
            x, y = E.vars("x", "y")
        """
        return tuple(Variable(name) for name in names)

    def const(self, value) -> Grounded:
        return Grounded(value)

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()
