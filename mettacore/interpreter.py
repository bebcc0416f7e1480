"""
MeTTa interpreter: built-in evaluation plus user rule reduction.

    interp = Interpreter()
    interp.run("(= (double $x) (* 2 $x))")
    interp.eval("(double 21)")          # => Grounded(42.0)
    interp.eval("(if (< 1 2) yes no)")  # => Symbol('yes')

Evaluation of an expression:
    1. Special forms (if, let, match, collapse, ...) get their arguments
       unevaluated.
    2. Operators (+, <, ...) evaluate their arguments, which must be numbers.
    3. Anything else has its children evaluated first; then the first
       rule (in definition order) whose pattern matches rewrites it and
       the result is evaluated again.
    4. With no matching rule the expression is its own value.

Failures are returned as Error atoms, never raised.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Union

from .atoms import (
    Atom, Empty, Error, Expression, FALSE, Grounded, Symbol, TRUE,
    bool_atom, to_atom,
)
from .bindings import Bindings
from .builtins import STANDARD_OPS, STDLIB, OperatorHandler, OperatorTable
from .matcher import PatternMatcher
from .parser import parse, parse_atom
from .rules import GuardType, Rule, is_rule_form, rule_from_form, rules_from_atoms
from .space import Space
from .trace import EvalStep, EvalTrace

logger = logging.getLogger(__name__)

AtomOrSource = Union[Atom, str]


class _EvalContext:
    """Per-call evaluation state: step count and optional trace."""

    __slots__ = ('steps', 'trace', 'exhausted')

    def __init__(self, trace: Optional[EvalTrace] = None):
        self.steps = 0
        self.trace = trace
        self.exhausted = False


class _Tail:
    """Returned by a special form whose result is another atom still to evaluate."""

    __slots__ = ('atom',)

    def __init__(self, atom: Atom):
        self.atom = atom


class Interpreter:
    """
    Evaluates MeTTa expressions against a rule set and a set of Spaces.

    Args:
        operators: Operator table for built-in numeric evaluation.
            Default: STANDARD_OPS (+ - * / and comparisons).
        max_steps: Maximum rule applications per evaluation; exceeding it
            yields an Error atom. None disables the limit.
        load_stdlib: If True, load the standard library rules (id,
            compose, bool-not, eq, nil?).
        space: Initial current space (default: a new Space named "default").

    Each interpreter owns its rules and spaces; instances share nothing.
    run, eval and rule/space mutations are serialized by a lock, so one
    interpreter may be used from several threads.
    """

    def __init__(self, operators: Optional[OperatorTable] = None,
                 max_steps: Optional[int] = 1000,
                 load_stdlib: bool = False,
                 space: Optional[Space] = None):
        self._rules: List[Rule] = []
        self._operators: OperatorTable = dict(STANDARD_OPS if operators is None else operators)
        self.max_steps = max_steps
        self._matcher = PatternMatcher()
        space = space if space is not None else Space("default", matcher=self._matcher)
        self._spaces: Dict[str, Space] = {space.name: space}
        self._current_space = space
        self._stdlib_loaded = False
        self._lock = threading.RLock()
        self._special_forms: Dict[str, Callable[[Expression, _EvalContext], object]] = {
            "if": self._eval_if,
            "=": self._eval_define,
            "let": self._eval_let,
            "let*": self._eval_let_star,
            "case": self._eval_case,
            "quote": self._eval_quote,
            "unquote": self._eval_unquote,
            "match": self._eval_match,
            "superpose": self._eval_superpose,
            "collapse": self._eval_collapse,
            "add-atom": self._eval_add_atom,
            "remove-atom": self._eval_remove_atom,
            "get-atoms": self._eval_get_atoms,
            "and": self._eval_and,
            "or": self._eval_or,
            "not": self._eval_not,
        }
        if load_stdlib:
            self.load_stdlib()

    # ============================================================
    # Rules
    # ============================================================

    def _next_rule_name(self) -> str:
        return f"rule-{len(self._rules)}"

    def add_rule(self, rule: Rule) -> 'Interpreter':
        """Append a rule. Higher priority rules move ahead; ties keep definition order."""
        with self._lock:
            self._rules.append(rule)
            self._rules.sort(key=lambda r: -r.priority)
        logger.debug("defined %r", rule)
        return self

    def define(self, pattern: AtomOrSource, template: AtomOrSource,
               name: Optional[str] = None, priority: int = 0,
               guard: Optional[GuardType] = None,
               description: Optional[str] = None) -> 'Interpreter':
        """
        Define a rule from atoms or MeTTa text.

        Example:
            interp.define("(abs $x)", "(- $x)", guard=lambda b: b["x"].value < 0)
        """
        pattern = parse_atom(pattern) if isinstance(pattern, str) else to_atom(pattern)
        template = parse_atom(template) if isinstance(template, str) else to_atom(template)
        with self._lock:
            rule = Rule(name or self._next_rule_name(), pattern, template,
                        guard=guard, priority=priority, description=description)
            return self.add_rule(rule)

    def add_rule_form(self, form: Atom) -> Rule:
        """Turn a (= pattern template) form into a rule named rule-<n> and add it."""
        with self._lock:
            rule = rule_from_form(form, self._next_rule_name())
            self.add_rule(rule)
        return rule

    @property
    def rules(self) -> List[Rule]:
        """Get all rules in the order they are tried."""
        return self._rules.copy()

    def list_rules(self) -> List[str]:
        return [repr(rule) for rule in self._rules]

    def clear_rules(self) -> 'Interpreter':
        with self._lock:
            self._rules.clear()
            self._stdlib_loaded = False
        return self

    def __len__(self) -> int:
        return len(self._rules)

    def load_stdlib(self) -> 'Interpreter':
        """Load the standard library rules once."""
        with self._lock:
            if self._stdlib_loaded:
                return self
            for rule in rules_from_atoms(parse(STDLIB), prefix="stdlib"):
                self.add_rule(rule)
            self._stdlib_loaded = True
        logger.debug("standard library loaded")
        return self

    # ============================================================
    # Operators
    # ============================================================

    @property
    def operators(self) -> OperatorTable:
        return dict(self._operators)

    def with_operators(self, operators: OperatorTable) -> 'Interpreter':
        """
        Replace the operator table.

        Enables fluent construction:
            interp = Interpreter().with_operators(FULL_OPS)
        """
        with self._lock:
            self._operators = dict(operators)
        return self

    def add_operator(self, name: str, handler: OperatorHandler) -> 'Interpreter':
        with self._lock:
            self._operators[name] = handler
        return self

    # ============================================================
    # Spaces
    # ============================================================

    @property
    def space(self) -> Space:
        """The current space, referred to as &self in MeTTa code."""
        return self._current_space

    def spaces(self) -> List[str]:
        return list(self._spaces)

    def use_space(self, name: str) -> Space:
        """Switch to the named space, creating it if needed."""
        with self._lock:
            if name not in self._spaces:
                self._spaces[name] = Space(name, matcher=self._matcher)
            self._current_space = self._spaces[name]
            return self._current_space

    def add(self, atom: AtomOrSource) -> bool:
        """Add an atom (or the atom parsed from text) to the current space."""
        if isinstance(atom, str):
            atom = parse_atom(atom)
        with self._lock:
            return self._current_space.add(atom)

    def query(self, pattern: AtomOrSource) -> List[Bindings]:
        """Query the current space with a pattern atom or MeTTa text."""
        if isinstance(pattern, str):
            pattern = parse_atom(pattern)
        with self._lock:
            return self._current_space.query(pattern)

    # ============================================================
    # Entry points
    # ============================================================

    def run(self, source: str) -> List[Atom]:
        """
        Run MeTTa source.

        Every (= pattern template) form becomes a rule; every other
        top-level form is evaluated.

        Returns:
            The results of the evaluated forms, in order

        Raises:
            ParseError: If the source is malformed
        """
        atoms = parse(source)
        results = []
        with self._lock:
            for atom in atoms:
                if is_rule_form(atom):
                    self.add_rule_form(atom)
                else:
                    results.append(self.evaluate(atom))
        return results

    def eval(self, source: str, trace: bool = False):
        """
        Evaluate the first atom of MeTTa source.

        Args:
            source: MeTTa text
            trace: If True, return (result, trace) tuple

        Returns:
            The result atom (None for source without atoms), or
            (result, EvalTrace) if trace=True

        Raises:
            ParseError: If the source is malformed
        """
        atoms = parse(source)
        if not atoms:
            return (None, EvalTrace()) if trace else None
        return self.evaluate(atoms[0], trace=trace)

    def evaluate(self, atom: Atom, trace: bool = False):
        """
        Evaluate an atom.

        Returns:
            The result atom, or (result, EvalTrace) if trace=True
        """
        ctx = _EvalContext(EvalTrace(atom) if trace else None)
        with self._lock:
            try:
                result = self._evaluate(atom, ctx)
            except RecursionError:
                logger.warning("recursion limit reached evaluating %s", atom)
                result = Error("maximum recursion depth exceeded", atom)
        if ctx.trace is not None:
            ctx.trace.final = result
            return result, ctx.trace
        return result

    def __call__(self, source: str):
        """Shorthand for eval(source)."""
        return self.eval(source)

    # ============================================================
    # Evaluation
    # ============================================================

    def _evaluate(self, atom: Atom, ctx: _EvalContext) -> Atom:
        while True:
            if not isinstance(atom, Expression) or atom.is_empty():
                return atom

            head = atom.children[0]
            if isinstance(head, Symbol):
                form = self._special_forms.get(head.name)
                if form is not None:
                    result = form(atom, ctx)
                    if isinstance(result, _Tail):
                        atom = result.atom
                        continue
                    return result
                handler = self._operators.get(head.name)
                if handler is not None:
                    return self._apply_operator(head.name, handler, atom, ctx)

            children = []
            for child in atom.children:
                value = self._evaluate(child, ctx)
                if isinstance(value, Error):
                    return value
                children.append(value)
            current = Expression(children)

            # A computed head such as ((if c + *) 1 2) may name an operator
            new_head = children[0]
            if (not isinstance(head, Symbol) and isinstance(new_head, Symbol)
                    and new_head.name in self._operators):
                atom = current
                continue

            result = self._reduce(current, ctx)
            if result is None:
                return current
            atom = result

    def _reduce(self, expr: Expression, ctx: _EvalContext) -> Optional[Atom]:
        """Rewrite with the first matching rule; None if no rule applies."""
        for index, rule in enumerate(self._rules):
            result = rule.apply(expr, self._matcher)
            if result is None:
                continue
            ctx.steps += 1
            if self.max_steps is not None and ctx.steps > self.max_steps:
                if not ctx.exhausted:
                    ctx.exhausted = True
                    logger.warning("step budget of %d exhausted at %s", self.max_steps, expr)
                return Error(f"maximum reduction steps ({self.max_steps}) exceeded", expr)
            logger.debug("%s: %s -> %s", rule.name, expr, result)
            if ctx.trace is not None:
                ctx.trace.add_step(EvalStep(index, rule, expr, result))
            return result
        return None

    def _evaluate_all(self, atom: Atom, ctx: _EvalContext) -> List[Atom]:
        """
        Evaluate an atom to every result it has.

        match and superpose contribute one result per alternative.
        Rule rewrites and the tail positions of other special forms are
        followed, so a rule whose body is a match fans out too.
        Everything else has the single result of _evaluate.
        """
        while True:
            if not isinstance(atom, Expression) or atom.is_empty():
                return [atom]

            head = atom.children[0]
            if isinstance(head, Symbol):
                if head.name == "match":
                    return self._match_results(atom, ctx)
                if head.name == "superpose":
                    return self._superpose_results(atom, ctx)
                form = self._special_forms.get(head.name)
                if form is not None:
                    result = form(atom, ctx)
                    if isinstance(result, _Tail):
                        atom = result.atom
                        continue
                    return [result]
                if head.name in self._operators:
                    return [self._evaluate(atom, ctx)]

            children = []
            for child in atom.children:
                value = self._evaluate(child, ctx)
                if isinstance(value, Error):
                    return [value]
                children.append(value)
            current = Expression(children)

            new_head = children[0]
            if (not isinstance(head, Symbol) and isinstance(new_head, Symbol)
                    and new_head.name in self._operators):
                return [self._evaluate(current, ctx)]

            result = self._reduce(current, ctx)
            if result is None:
                return [current]
            atom = result

    def _match_results(self, expr: Expression, ctx: _EvalContext) -> List[Atom]:
        if len(expr) != 4:
            return [self._arity_error(expr, "(match space pattern template)")]
        space = self._resolve_space(expr[1])
        if isinstance(space, Error):
            return [space]
        results = []
        for bindings in space.query(expr[2]):
            results.extend(self._evaluate_all(bindings.apply(expr[3]), ctx))
        return results or [Empty]

    def _superpose_results(self, expr: Expression, ctx: _EvalContext) -> List[Atom]:
        if len(expr) != 2:
            return [self._arity_error(expr, "(superpose (atom ...))")]
        alternatives = expr[1]
        if not isinstance(alternatives, Expression):
            return [Empty]
        results = []
        for child in alternatives.children:
            results.extend(self._evaluate_all(child, ctx))
        return results

    def _apply_operator(self, name: str, handler: OperatorHandler,
                        expr: Expression, ctx: _EvalContext) -> Atom:
        numbers = []
        for arg in expr.children[1:]:
            value = self._evaluate(arg, ctx)
            if isinstance(value, Error):
                return value
            if not (isinstance(value, Grounded) and value.is_numeric()):
                return Error(f"{name} expects numeric arguments, got {value.to_metta()}", expr)
            numbers.append(value.value)

        try:
            result = handler(numbers)
            if result is None:
                return Error(f"{name}: unsupported number of arguments ({len(numbers)})", expr)
            if isinstance(result, bool):
                return bool_atom(result)
            return Grounded(float(result))
        except ZeroDivisionError:
            return Error("division by zero", expr)
        except (ArithmeticError, ValueError) as e:
            return Error(f"{name}: {e}", expr)

    # ============================================================
    # Special forms
    # ============================================================

    @staticmethod
    def _arity_error(expr: Expression, usage: str) -> Error:
        return Error(f"{expr.children[0].to_metta()} expects {usage}", expr)

    def _resolve_space(self, ref: Atom):
        if isinstance(ref, Symbol) and ref.name.startswith("&"):
            name = ref.name[1:]
            if name == "self":
                return self._current_space
            if name in self._spaces:
                return self._spaces[name]
        return Error(f"unknown space {ref.to_metta()}", ref)

    def _eval_if(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 4:
            return self._arity_error(expr, "(if condition then else)")
        cond = self._evaluate(expr[1], ctx)
        if isinstance(cond, Error):
            return cond
        if cond == TRUE:
            return _Tail(expr[2])
        if cond == FALSE:
            return _Tail(expr[3])
        return Error(f"if condition must be True or False, got {cond.to_metta()}", expr)

    def _eval_define(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 3:
            return self._arity_error(expr, "(= pattern template)")
        self.add_rule_form(expr)
        return Empty

    def _eval_let(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 4:
            return self._arity_error(expr, "(let pattern value body)")
        value = self._evaluate(expr[2], ctx)
        if isinstance(value, Error):
            return value
        bindings = self._matcher.match(value, expr[1])
        if not bindings:
            return Empty
        return _Tail(bindings.apply(expr[3]))

    def _eval_let_star(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 3:
            return self._arity_error(expr, "(let* ((pattern value) ...) body)")
        binding_list = expr[1]
        if binding_list is Empty:
            return _Tail(expr[2])
        if not isinstance(binding_list, Expression):
            return Error("let* bindings must be an expression", expr)

        if all(isinstance(c, Expression) and len(c) == 2 for c in binding_list):
            pairs = [(c[0], c[1]) for c in binding_list]
        elif len(binding_list) % 2 == 0:
            pairs = list(zip(binding_list.children[0::2], binding_list.children[1::2]))
        else:
            return Error("let* bindings must be (pattern value) pairs", expr)

        bindings = Bindings()
        for pattern, value_expr in pairs:
            value = self._evaluate(bindings.apply(value_expr), ctx)
            if isinstance(value, Error):
                return value
            bindings = self._matcher.match(value, bindings.apply(pattern), bindings)
            if not bindings:
                return Empty
        return _Tail(bindings.apply(expr[2]))

    def _eval_case(self, expr: Expression, ctx: _EvalContext):
        if len(expr) < 3:
            return self._arity_error(expr, "(case value (pattern body) ...)")
        value = self._evaluate(expr[1], ctx)
        if isinstance(value, Error):
            return value
        for branch in expr.children[2:]:
            if not (isinstance(branch, Expression) and len(branch) == 2):
                continue
            bindings = self._matcher.match(value, branch[0])
            if bindings:
                return _Tail(bindings.apply(branch[1]))
        return Empty

    def _eval_quote(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 2:
            return self._arity_error(expr, "(quote atom)")
        return expr[1]

    def _eval_unquote(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 2:
            return self._arity_error(expr, "(unquote atom)")
        value = self._evaluate(expr[1], ctx)
        if isinstance(value, Error):
            return value
        return _Tail(value)

    def _eval_match(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 4:
            return self._arity_error(expr, "(match space pattern template)")
        space = self._resolve_space(expr[1])
        if isinstance(space, Error):
            return space
        results = space.query(expr[2])
        if not results:
            return Empty
        return _Tail(results[0].apply(expr[3]))

    def _eval_superpose(self, expr: Expression, ctx: _EvalContext):
        results = self._superpose_results(expr, ctx)
        return results[0] if results else Empty

    def _eval_collapse(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 2:
            return self._arity_error(expr, "(collapse atom)")
        results = []
        for result in self._evaluate_all(expr[1], ctx):
            if isinstance(result, Error):
                return result
            if result is not Empty:
                results.append(result)
        return Expression(results) if results else Empty

    def _eval_add_atom(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 3:
            return self._arity_error(expr, "(add-atom space atom)")
        space = self._resolve_space(expr[1])
        if isinstance(space, Error):
            return space
        space.add(expr[2])
        return Empty

    def _eval_remove_atom(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 3:
            return self._arity_error(expr, "(remove-atom space atom)")
        space = self._resolve_space(expr[1])
        if isinstance(space, Error):
            return space
        space.remove(expr[2])
        return Empty

    def _eval_get_atoms(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 2:
            return self._arity_error(expr, "(get-atoms space)")
        space = self._resolve_space(expr[1])
        if isinstance(space, Error):
            return space
        atoms = space.atoms()
        return Expression(atoms) if atoms else Empty

    def _truth_value(self, arg: Atom, expr: Expression, ctx: _EvalContext):
        value = self._evaluate(arg, ctx)
        if isinstance(value, Error) or value == TRUE or value == FALSE:
            return value
        return Error(f"{expr.children[0].to_metta()} expects True or False, got {value.to_metta()}", expr)

    def _eval_and(self, expr: Expression, ctx: _EvalContext):
        for arg in expr.children[1:]:
            value = self._truth_value(arg, expr, ctx)
            if value != TRUE:
                return value
        return TRUE

    def _eval_or(self, expr: Expression, ctx: _EvalContext):
        for arg in expr.children[1:]:
            value = self._truth_value(arg, expr, ctx)
            if value != FALSE:
                return value
        return FALSE

    def _eval_not(self, expr: Expression, ctx: _EvalContext):
        if len(expr) != 2:
            return self._arity_error(expr, "(not condition)")
        value = self._truth_value(expr[1], expr, ctx)
        if isinstance(value, Error):
            return value
        return bool_atom(value == FALSE)

    def __repr__(self) -> str:
        return (f"Interpreter(rules={len(self._rules)}, "
                f"space={self._current_space.name!r}, max_steps={self.max_steps})")
