#!/usr/bin/env python3
"""
mettacore Feature Demonstration

This script walks through the major features of the mettacore library.
"""

from pathlib import Path
from mettacore import (
    Interpreter, E, Space,
    FULL_OPS, atomspace_atom, unify,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_basic_usage():
    """Demonstrate rules and built-in arithmetic."""
    section("Basic Usage")

    interp = Interpreter()
    interp.run('''
        (= (double $x) (* 2 $x))
        (= (square $x) (* $x $x))
    ''')

    examples = [
        "(+ 1 2 3)",
        "(double 21)",
        "(square (double 3))",
        "(if (< 1 2) yes no)",
    ]

    for source in examples:
        print(f"  {source} => {interp.eval(source)}")


def demo_recursion():
    """Demonstrate recursive definitions and the step budget."""
    section("Recursion")

    interp = Interpreter(max_steps=50)
    interp.run('''
        (= (fact $n) (if (<= $n 1) 1 (* $n (fact (- $n 1)))))
        (= (loop $x) (loop $x))
    ''')

    print(f"  (fact 10) => {interp.eval('(fact 10)')}")
    print(f"  (loop a)  => {interp.eval('(loop a)')}")


def demo_guards_and_priorities():
    """Demonstrate Python-defined rules with guards and priorities."""
    section("Guards and Priorities")

    interp = Interpreter()
    interp.define("(magnitude $x)", "(- $x)", name="negate",
                  guard=lambda b: b["x"].is_grounded() and b["x"].value < 0)
    interp.define("(magnitude $x)", "$x", name="keep")
    interp.define("(describe $x)", "something", name="general")
    interp.define("(describe 0)", "zero", name="zero", priority=10)

    for source in ["(magnitude -5)", "(magnitude 5)", "(describe 0)", "(describe 7)"]:
        print(f"  {source} => {interp.eval(source)}")

    print("\n  Rules in the order they are tried:")
    for line in interp.list_rules():
        print(f"    {line}")


def demo_special_forms():
    """Demonstrate let, let*, case and quote."""
    section("Special Forms")

    interp = Interpreter()
    examples = [
        "(let $x (+ 1 2) (* $x $x))",
        "(let (pair $a $b) (pair 1 2) (+ $a $b))",
        "(let* (($a 2) ($b (* $a 10))) (+ $a $b))",
        "(case (+ 1 1) (1 one) (2 two) ($n many))",
        "(quote (+ 1 2))",
        "(unquote (quote (+ 1 2)))",
        "(and True (or False True) (not False))",
    ]

    for source in examples:
        print(f"  {source} => {interp.eval(source)}")


def demo_spaces():
    """Demonstrate storing and querying atoms."""
    section("Spaces")

    interp = Interpreter()
    interp.run('''
        (add-atom &self (Person Alice))
        (add-atom &self (Person Bob))
        (add-atom &self (likes Alice Bob))
    ''')

    print(f"  Stored atoms: {interp.eval('(get-atoms &self)')}")
    for bindings in interp.query("(Person $name)"):
        print(f"  (Person $name) matched with {bindings.to_metta()}")
    print(f"  (match &self (likes Alice $who) $who) => "
          f"{interp.eval('(match &self (likes Alice $who) $who)')}")
    print(f"  (collapse (match &self (Person $p) $p)) => "
          f"{interp.eval('(collapse (match &self (Person $p) $p))')}")

    # Atoms from a host hypergraph store
    cat = atomspace_atom("ConceptNode", "cat")
    animal = atomspace_atom("ConceptNode", "animal")
    knowledge = Space("knowledge", [atomspace_atom("InheritanceLink", outgoing=[cat, animal])])
    print(f"\n  Host atoms: {knowledge.to_metta()}")
    print(f"""  What is a cat? {knowledge.query(E('(InheritanceLink (ConceptNode "cat") $what)'))}""")


def demo_unification():
    """Demonstrate two-sided unification."""
    section("Unification")

    pairs = [
        ("(f $x b)", "(f a $y)"),
        ("(f $x $x)", "(f a b)"),
        ("$x", "(g $x)"),
    ]

    for left, right in pairs:
        print(f"  {left} ~ {right} => {unify(E(left), E(right))}")


def demo_tracing():
    """Demonstrate trace formatting."""
    section("Tracing")

    interp = Interpreter(load_stdlib=True)
    interp.run("(= (twice $f $x) ($f ($f $x)))")

    result, trace = interp.eval("(twice id (compose id id foo))", trace=True)

    print("  Verbose format (default):")
    for line in str(trace).split('\n'):
        print(f"    {line}")

    print(f"\n  Compact: {trace.format('compact')}")
    print(f"  Rules: {trace.format('rules')}")
    print(f"  Summary: {trace.summary()}")


def demo_operators():
    """Demonstrate operator tables."""
    section("Operator Tables")

    standard = Interpreter()
    full = Interpreter().with_operators(FULL_OPS)

    for source in ["(sqrt 16)", "(^ 2 10)", "(/ 1 0)"]:
        print(f"  {source}: standard => {standard.eval(source)}, full => {full.eval(source)}")


def demo_script():
    """Demonstrate running a .metta file."""
    section("Running a Script")

    script = Path(__file__).parent / "family.metta"
    interp = Interpreter(load_stdlib=True)
    # Drop the shebang and REPL command lines, which are for the CLI
    source = "\n".join(line for line in script.read_text().splitlines()
                       if not line.startswith((":", "#!")))

    for result in interp.run(source):
        print(f"  {result}")
    print(f"\n  Defined {len(interp)} rules, space holds {len(interp.space)} atoms")


def main():
    """Run all demonstrations."""
    print("mettacore - MeTTa rewriting engine")
    print("Feature Demonstration")

    demo_basic_usage()
    demo_recursion()
    demo_guards_and_priorities()
    demo_special_forms()
    demo_spaces()
    demo_unification()
    demo_tracing()
    demo_operators()
    demo_script()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
