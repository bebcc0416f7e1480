"""
The `metta` command: an interactive REPL, a script runner and a stdin filter.

    metta                           # REPL
    metta family.metta              # run a script
    metta -e "(+ 1 2)"              # evaluate one expression and exit
    metta -l lib.metta              # REPL with lib.metta already run
    metta --stdlib -e "(id foo)"    # same, with the standard library rules
    echo "(* 6 7)" | metta          # evaluate forms read from stdin

A script is MeTTa source plus REPL commands on lines of their own:

    #!/usr/bin/env metta
    :ops full
    :stdlib

    ; rules are equations
    (= (double $x) (* 2 $x))

    (double 21)
    (sqrt (double 8))

`:help` inside the REPL lists the commands.
"""

import argparse
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import __version__
from .atoms import Error
from .builtins import OPERATOR_SETS, OperatorTable
from .interpreter import Interpreter
from .parser import ParseError, parse
from .rules import is_rule_form

# readline is optional: without it the REPL has no history or completion
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

logger = logging.getLogger(__name__)


def load_custom_operators(path: str) -> Optional[OperatorTable]:
    """
    Import a Python file and return the OPERATORS table it defines.

    Returns None when the path is not an existing .py file or the file
    defines no OPERATORS. Errors raised while importing it propagate.
    """
    ops_path = Path(path)
    if ops_path.suffix != ".py" or not ops_path.is_file():
        return None
    spec = importlib.util.spec_from_file_location(ops_path.stem, ops_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    logger.debug("loaded operators from %s", ops_path)
    return getattr(module, "OPERATORS", None)


class MettaCompleter:
    """Tab completion for REPL commands, their arguments and &space references."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":load", ":rules", ":clear",
        ":ops", ":trace", ":stdlib",
        ":space", ":atoms", ":steps",
    ]

    TRACE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'MettaREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        # readline calls this with state 0, 1, ... until it gets None
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)
        if state < len(self.matches):
            return self.matches[state]
        return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        line = line.lstrip()
        if line.startswith(":ops "):
            return [name for name in OPERATOR_SETS if name.startswith(text)]
        if line.startswith(":trace "):
            return [t for t in self.TRACE_OPTIONS if t.startswith(text)]
        if line.startswith(":space "):
            return [s for s in self.repl.interp.spaces() if s.startswith(text)]
        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]
        if text.startswith("&"):
            names = ["&self"] + ["&" + s for s in self.repl.interp.spaces()]
            return [n for n in names if n.startswith(text)]
        return []


def count_parens(text: str) -> int:
    """
    Count unbalanced parentheses. Returns >0 if more open than close.

    Parentheses inside strings and ; comments are ignored.
    """
    depth = 0
    in_string = False
    in_comment = False
    escape = False

    for c in text:
        if in_comment:
            if c == '\n':
                in_comment = False
            continue
        if escape:
            escape = False
            continue
        if in_string:
            if c == '\\':
                escape = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == ';':
            in_comment = True
        elif c == '(':
            depth += 1
        elif c == ')':
            depth -= 1

    return depth


class MettaREPL:
    """Interactive REPL for MeTTa."""

    def __init__(self, interp: Optional[Interpreter] = None):
        self.interp = interp if interp is not None else Interpreter()
        self.trace = False
        self.running = True
        self.last_error = False
        self.multi_line_buffer = ""

        if HAS_READLINE:
            self.history_file = Path.home() / ".metta_history"
            try:
                readline.read_history_file(self.history_file)
            except OSError:
                pass
            readline.set_history_length(1000)

            self.completer = MettaCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")

            # "$x" and "&self" are single words; parentheses are not
            readline.set_completer_delims(" \t\n()")

    def save_history(self):
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                logger.debug("could not save history: %s", e)

    def set_operators(self, name: str) -> bool:
        """
        Switch to a built-in operator table, or to the OPERATORS of a .py file.

        Returns False if name is neither. Errors importing the file propagate.
        """
        table = OPERATOR_SETS.get(name.lower())
        if table is None:
            table = load_custom_operators(name)
        if table is None:
            return False
        self.interp.with_operators(table)
        return True

    def handle_command(self, line: str) -> Optional[str]:
        """Run a ':' command. Returns the message to show, or None."""
        self.last_error = False
        parts = line[1:].split(None, 1)
        if not parts:
            self.last_error = True
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "load":
            if not arg:
                return "Usage: :load FILENAME"
            try:
                before = len(self.interp)
                results = self.interp.run(Path(arg).read_text())
            except (OSError, ParseError) as e:
                self.last_error = True
                return f"Error loading {arg}: {e}"
            added = len(self.interp) - before
            return f"Loaded {arg}: {added} rule(s), {len(results)} expression(s) evaluated"

        elif cmd == "rules":
            rules = self.interp.list_rules()
            if not rules:
                return "No rules defined"
            return "\n".join(rules)

        elif cmd == "clear":
            self.interp.clear_rules()
            return "Cleared all rules"

        elif cmd == "ops":
            if not arg:
                available = ", ".join(OPERATOR_SETS.keys())
                return f"Usage: :ops NAME\nAvailable: {available}\nOr provide a path to a .py file"
            try:
                found = self.set_operators(arg)
            except Exception as e:
                self.last_error = True
                return f"Error loading operators from {arg}: {e}"
            if found:
                return f"Operators set to: {arg}"
            self.last_error = True
            return f"Unknown operator set: {arg}"

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.trace = True
            elif arg.lower() in ("off", "false", "0"):
                self.trace = False
            else:
                self.trace = not self.trace
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "stdlib":
            self.interp.load_stdlib()
            return "Standard library loaded"

        elif cmd == "space":
            if not arg:
                names = ", ".join(self.interp.spaces())
                return f"Current space: {self.interp.space.name}\nSpaces: {names}"
            self.interp.use_space(arg)
            return f"Using space: {arg}"

        elif cmd == "atoms":
            space = self.interp.space
            if not len(space):
                return f"Space '{space.name}' is empty"
            return space.to_metta()

        elif cmd == "steps":
            if not arg:
                return f"Step budget: {self.interp.max_steps}"
            if arg.lower() == "none":
                self.interp.max_steps = None
                return "Step budget disabled"
            try:
                steps = int(arg)
            except ValueError:
                self.last_error = True
                return f"Error: step budget must be an integer or 'none', got {arg}"
            self.interp.max_steps = steps
            return f"Step budget set to: {steps}"

        else:
            self.last_error = True
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        return """Commands:
  :help              This text
  :load FILE         Run the rules and expressions of a .metta file
  :rules             List the rules in reduction order
  :clear             Forget every rule
  :ops NAME          Operator table (standard, math, full, none, or path.py)
  :trace [on|off]    Show the rules applied after each result
  :stdlib            Load the standard library rules
  :space [NAME]      Show spaces, or switch to a named space
  :atoms             Show the atoms of the current space
  :steps [N|none]    Show or set the reduction step budget
  :quit              Leave the REPL

MeTTa:
  (= (pattern) (template))     Define a rule
  (add-atom &self (fact))      Store an atom in the current space
  (match &self (pat) (tmpl))   Query the current space
  (collapse (match ...))       Collect every match
  (expression)                 Evaluate it and print the result
  ; comment                    Runs to the end of the line
"""

    def evaluate_source(self, text: str, announce_rules: bool = True) -> Optional[str]:
        """
        Evaluate MeTTa text: define its rules, evaluate everything else.

        Sets last_error when parsing fails or a result is an Error atom.

        Returns:
            One output line per evaluated form (and per rule when
            announce_rules is set), or None if there is nothing to show
        """
        self.last_error = False
        try:
            atoms = parse(text)
        except ParseError as e:
            self.last_error = True
            return f"Error: {e}"

        outputs = []
        for atom in atoms:
            if is_rule_form(atom):
                rule = self.interp.add_rule_form(atom)
                if announce_rules:
                    outputs.append(f"Added rule {rule.name}")
                continue

            if self.trace:
                result, trace = self.interp.evaluate(atom, trace=True)
            else:
                result, trace = self.interp.evaluate(atom), None

            if isinstance(result, Error):
                self.last_error = True
            outputs.append(result.to_metta())
            if trace:
                outputs.append(trace.format("rules"))

        return "\n".join(outputs) if outputs else None

    def process_line(self, line: str) -> Optional[str]:
        """Dispatch one complete input to handle_command or evaluate_source."""
        line = line.strip()
        if not line:
            return None
        if line.startswith(":"):
            return self.handle_command(line)
        return self.evaluate_source(line)

    def run(self):
        print(f"mettacore {__version__}. :help lists commands, :quit leaves.")
        print("An unclosed ( continues the input on the next line.")
        print()

        while self.running:
            try:
                prompt = "...... " if self.multi_line_buffer else "metta> "
                line = input(prompt)

                if self.multi_line_buffer:
                    self.multi_line_buffer += "\n" + line
                else:
                    self.multi_line_buffer = line

                paren_count = count_parens(self.multi_line_buffer)

                if paren_count > 0:
                    continue
                elif paren_count < 0:
                    print("Error: Unbalanced parentheses (too many closing)")
                    self.multi_line_buffer = ""
                    continue

                complete_input = self.multi_line_buffer
                self.multi_line_buffer = ""

                result = self.process_line(complete_input)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs MeTTa scripts, one-shot expressions and stdin filters."""

    def __init__(self, interp: Optional[Interpreter] = None):
        self.repl = MettaREPL(interp)

    def run_lines(self, lines: Iterable[str], source: str = "<stdin>",
                  quiet: bool = False) -> int:
        """
        Run MeTTa source line by line.

        Forms may span several lines; a form is complete once its
        parentheses balance. Lines starting with ':' outside a form are
        REPL commands.

        Args:
            lines: Source lines
            source: Name used in error messages
            quiet: If True, don't print command confirmations

        Returns:
            Exit code (0 for success, 1 at the first error)
        """
        buffer = ""
        start_line = 0

        for lineno, line in enumerate(lines, 1):
            line = line.rstrip("\n")
            stripped = line.strip()

            if not buffer:
                if not stripped or stripped.startswith(";") or stripped.startswith("#!"):
                    continue
                if stripped.startswith(":"):
                    result = self.repl.handle_command(stripped)
                    if self.repl.last_error:
                        print(f"{source}:{lineno}: {result}", file=sys.stderr)
                        return 1
                    if result and not quiet:
                        print(result, file=sys.stderr)
                    if not self.repl.running:
                        return 0
                    continue
                start_line = lineno
                buffer = line
            else:
                buffer += "\n" + line

            depth = count_parens(buffer)
            if depth > 0:
                continue

            text, buffer = buffer, ""
            if depth < 0:
                print(f"{source}:{start_line}: Error: Unbalanced parentheses (too many closing)",
                      file=sys.stderr)
                return 1

            result = self.repl.evaluate_source(text, announce_rules=False)
            if self.repl.last_error:
                print(f"{source}:{start_line}: {result}", file=sys.stderr)
                return 1
            if result:
                print(result)

        if buffer:
            print(f"{source}:{start_line}: Error: Unclosed '(' at end of input", file=sys.stderr)
            return 1

        return 0

    def run_script(self, path: Path, quiet: bool = False) -> int:
        """
        Run a script file.

        Returns:
            Exit code (0 for success)
        """
        try:
            text = path.read_text()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        return self.run_lines(text.splitlines(), source=str(path), quiet=quiet)

    def run_expression(self, expr_str: str) -> int:
        """
        Evaluate a single expression.

        Returns:
            Exit code (0 for success)
        """
        result = self.repl.process_line(expr_str)
        if result:
            print(result)
        return 1 if self.repl.last_error else 0

    def run_stdin(self, quiet: bool = False) -> int:
        """
        Read forms from stdin and evaluate them.

        Returns:
            Exit code (0 for success)
        """
        return self.run_lines(sys.stdin, source="<stdin>", quiet=quiet)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="metta",
        description="mettacore - MeTTa rewriting engine",
        epilog="Examples:\n"
               "  metta                          Start REPL\n"
               "  metta script.metta             Run script\n"
               "  metta -e '(+ 1 2)'             Evaluate expression\n"
               "  metta -l lib.metta             REPL with a file preloaded\n"
               "  echo '(* 6 7)' | metta         Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run (.metta)"
    )

    parser.add_argument(
        "-l", "--load",
        action="append",
        default=[],
        help="Run a .metta file before anything else (can be specified multiple times)"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Evaluate a single expression"
    )

    parser.add_argument(
        "-o", "--ops",
        default="standard",
        help="Operator table (standard, arithmetic, comparison, math, full, none, or path.py)"
    )

    parser.add_argument(
        "--stdlib",
        action="store_true",
        help="Load the standard library rules"
    )

    parser.add_argument(
        "--max-steps",
        type=int,
        default=1000,
        help="Maximum rule applications per evaluation (default: 1000)"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Enable tracing"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (suppress non-essential output)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log rule definitions and applications to stderr"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    runner = ScriptRunner(Interpreter(max_steps=args.max_steps, load_stdlib=args.stdlib))

    try:
        found = runner.repl.set_operators(args.ops)
    except Exception as e:
        print(f"Error loading operators from {args.ops}: {e}", file=sys.stderr)
        sys.exit(1)
    if not found:
        print(f"Unknown operator set: {args.ops}", file=sys.stderr)
        sys.exit(1)

    runner.repl.trace = args.trace

    for load_file in args.load:
        try:
            runner.repl.interp.run(Path(load_file).read_text())
            if not args.quiet:
                print(f"Loaded {load_file}", file=sys.stderr)
        except (OSError, ParseError) as e:
            print(f"Error loading {load_file}: {e}", file=sys.stderr)
            sys.exit(1)

    if args.script:
        sys.exit(runner.run_script(Path(args.script), quiet=args.quiet))

    elif args.expr:
        sys.exit(runner.run_expression(args.expr))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin(quiet=args.quiet))

    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
