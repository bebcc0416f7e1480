"""
Example custom operator table for mettacore.

This file shows how to extend the numeric built-ins available to
MeTTa code.

Usage:
    metta -o examples/custom_operators.py -e "(gcd 12 8)"

Or in scripts:
    :ops examples/custom_operators.py
    (gcd 12 8)
"""

import math
from mettacore import binary_only, unary_only, left_fold, FULL_OPS

# Start with the full table and extend it
OPERATORS = {
    **FULL_OPS,

    # Number theory (arguments may arrive as floats)
    "gcd": left_fold(lambda a, b: math.gcd(int(a), int(b))),
    "lcm": left_fold(lambda a, b: math.lcm(int(a), int(b))),
    "mod": binary_only(lambda a, b: a % b),
    "factorial": unary_only(lambda n: math.factorial(int(n))),
    "round": unary_only(round),
    "hypot": binary_only(math.hypot),

    # Predicates evaluate to True / False
    "even?": unary_only(lambda x: x % 2 == 0),
    "odd?": unary_only(lambda x: x % 2 == 1),
    "positive?": unary_only(lambda x: x > 0),
    "negative?": unary_only(lambda x: x < 0),
    "zero?": unary_only(lambda x: x == 0),
}
