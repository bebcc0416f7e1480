"""
mettacore - a MeTTa rewriting engine

Parses MeTTa source, stores atoms in Spaces, and evaluates expressions
by built-in operators, special forms and user-defined equations.

Quick Start:
    from mettacore import Interpreter

    interp = Interpreter()
    interp.run('''
        (= (double $x) (* 2 $x))
        (= (fact $n) (if (<= $n 1) 1 (* $n (fact (- $n 1)))))
    ''')

    interp.eval("(double 21)")   # => Grounded(42.0)
    interp.eval("(fact 5)")      # => Grounded(120.0)

Syntax:
    ; comments run to the end of the line
    (= pattern template)         define a rule
    $x                           variable
    42  3.14  "text"             grounded values
    ()                           the Empty atom

Knowledge in a Space:
    (add-atom &self (Person Alice))
    (match &self (Person $name) $name)   ; => Alice
"""

__version__ = "0.1.0"

# Atom model
from .atoms import (
    AtomType,
    Atom,
    Symbol,
    Variable,
    Grounded,
    Expression,
    Empty,
    Error,
    TRUE,
    FALSE,
    bool_atom,
    to_atom,
    variables_in,
)

# Bindings and matching
from .bindings import Bindings, NoMatch, MatchResult
from .matcher import PatternMatcher, match, unify, match_all

# Rules and spaces
from .rules import Rule, GuardType, is_rule_form, rule_from_form, rules_from_atoms
from .space import Space, atomspace_atom

# Parsing
from .parser import Parser, ParseError, parse, parse_atom, E

# Operators
from .builtins import (
    NumericType,
    OperatorHandler,
    OperatorTable,
    nary_fold,
    left_fold,
    unary_only,
    binary_only,
    ARITHMETIC_OPS,
    COMPARISON_OPS,
    MATH_OPS,
    STANDARD_OPS,
    FULL_OPS,
    NO_OPS,
    OPERATOR_SETS,
    STDLIB,
)

# Evaluation
from .trace import EvalStep, EvalTrace
from .interpreter import Interpreter

# Public API
__all__ = [
    # Version
    "__version__",
    # Atoms
    "AtomType",
    "Atom",
    "Symbol",
    "Variable",
    "Grounded",
    "Expression",
    "Empty",
    "Error",
    "TRUE",
    "FALSE",
    "bool_atom",
    "to_atom",
    "variables_in",
    # Bindings and matching
    "Bindings",
    "NoMatch",
    "MatchResult",
    "PatternMatcher",
    "match",
    "unify",
    "match_all",
    # Rules and spaces
    "Rule",
    "GuardType",
    "is_rule_form",
    "rule_from_form",
    "rules_from_atoms",
    "Space",
    "atomspace_atom",
    # Parsing
    "Parser",
    "ParseError",
    "parse",
    "parse_atom",
    "E",
    # Operators
    "NumericType",
    "OperatorHandler",
    "OperatorTable",
    "nary_fold",
    "left_fold",
    "unary_only",
    "binary_only",
    "ARITHMETIC_OPS",
    "COMPARISON_OPS",
    "MATH_OPS",
    "STANDARD_OPS",
    "FULL_OPS",
    "NO_OPS",
    "OPERATOR_SETS",
    "STDLIB",
    # Evaluation
    "EvalStep",
    "EvalTrace",
    "Interpreter",
]
