"""
Built-in operators and the MeTTa standard library.

An operator handler receives the numeric values of its evaluated
arguments and returns a number, a bool, or None when it cannot
evaluate (wrong arity). The interpreter turns numbers into Grounded
floats and bools into the Symbols True / False.

Operator tables can be combined like dicts:

    my_ops = {**STANDARD_OPS, "hypot": binary_only(math.hypot)}
    interp = Interpreter(operators=my_ops)
"""

import math
import operator
from typing import Callable, Dict, List, Optional, Union

NumericType = Union[int, float]
OperatorResult = Optional[Union[NumericType, bool]]
OperatorHandler = Callable[[List[NumericType]], OperatorResult]
OperatorTable = Dict[str, OperatorHandler]


# ============================================================
# Handler Builders
# ============================================================

def nary_fold(
    identity: NumericType,
    binary_op: Callable[[NumericType, NumericType], NumericType],
) -> OperatorHandler:
    """Create an n-ary left fold with an identity element.

    Examples:
        nary_fold(0, operator.add)  # (+) = 0, (+ x) = x, (+ x y z) = x+y+z
        nary_fold(1, operator.mul)  # (*) = 1, (* x y z) = x*y*z
    """
    def handler(args: List[NumericType]) -> NumericType:
        result = identity
        for a in args:
            result = binary_op(result, a)
        return result
    return handler


def left_fold(
    binary_op: Callable[[NumericType, NumericType], NumericType],
    unary: Optional[Callable[[NumericType], NumericType]] = None,
) -> OperatorHandler:
    """Create a left fold that needs at least one argument.

    With a single argument the unary function is applied (or the
    argument is returned unchanged when there is none).

    Examples:
        left_fold(operator.sub, operator.neg)  # (- x) = -x, (- x y z) = x-y-z
        left_fold(operator.truediv)            # (/ x y z) = x/y/z
    """
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if not args:
            return None
        if len(args) == 1:
            return unary(args[0]) if unary else args[0]
        result = args[0]
        for a in args[1:]:
            result = binary_op(result, a)
        return result
    return handler


def unary_only(f: Callable[[NumericType], OperatorResult]) -> OperatorHandler:
    """Create a unary-only handler (e.g., sqrt, abs)."""
    def handler(args: List[NumericType]) -> OperatorResult:
        if len(args) != 1:
            return None
        return f(args[0])
    return handler


def binary_only(f: Callable[[NumericType, NumericType], OperatorResult]) -> OperatorHandler:
    """Create a binary-only handler (e.g., <, ^, min)."""
    def handler(args: List[NumericType]) -> OperatorResult:
        if len(args) != 2:
            return None
        return f(args[0], args[1])
    return handler


# ============================================================
# Operator Tables
# ============================================================

ARITHMETIC_OPS: OperatorTable = {
    "+": nary_fold(0, operator.add),
    "*": nary_fold(1, operator.mul),
    "-": left_fold(operator.sub, operator.neg),
    "/": left_fold(operator.truediv),
}

COMPARISON_OPS: OperatorTable = {
    "<": binary_only(operator.lt),
    ">": binary_only(operator.gt),
    "<=": binary_only(operator.le),
    ">=": binary_only(operator.ge),
    "==": binary_only(operator.eq),
    "!=": binary_only(operator.ne),
}

MATH_OPS: OperatorTable = {
    **ARITHMETIC_OPS,
    "%": binary_only(math.fmod),
    "^": binary_only(math.pow),
    "min": left_fold(min),
    "max": left_fold(max),
    "abs": unary_only(abs),
    "sqrt": unary_only(math.sqrt),
    "exp": unary_only(math.exp),
    "log": unary_only(math.log),
    "floor": unary_only(math.floor),
    "ceil": unary_only(math.ceil),
}

# Default table: what every interpreter understands out of the box
STANDARD_OPS: OperatorTable = {
    **ARITHMETIC_OPS,
    **COMPARISON_OPS,
}

FULL_OPS: OperatorTable = {
    **MATH_OPS,
    **COMPARISON_OPS,
}

NO_OPS: OperatorTable = {}

OPERATOR_SETS: Dict[str, OperatorTable] = {
    "none": NO_OPS,
    "arithmetic": ARITHMETIC_OPS,
    "comparison": COMPARISON_OPS,
    "standard": STANDARD_OPS,
    "math": MATH_OPS,
    "full": FULL_OPS,
}


# ============================================================
# Standard Library
# ============================================================

STDLIB = """
; Identity and composition
(= (id $x) $x)
(= (compose $f $g $x) ($f ($g $x)))

; Booleans
(= (bool-not True) False)
(= (bool-not False) True)

; Structural equality (first matching rule wins)
(= (eq $x $x) True)
(= (eq $x $y) False)

; Emptiness
(= (nil? ()) True)
(= (nil? $x) False)
"""
