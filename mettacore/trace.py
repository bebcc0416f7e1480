"""
Evaluation traces: which rules fired, on what, producing what.

    result, trace = interp.eval("(double 21)", trace=True)
    print(trace.format("chain"))
"""

from typing import Dict, List, Optional

from .atoms import Atom
from .rules import Rule


def _text(atom: Optional[Atom]) -> str:
    return atom.to_metta() if atom is not None else "None"


class EvalStep:
    """A single rule application during evaluation."""

    def __init__(self, rule_index: int, rule: Rule, before: Atom, after: Atom):
        self.rule_index = rule_index
        self.rule = rule
        self.before = before
        self.after = after

    @property
    def rule_name(self) -> str:
        return self.rule.name or f"rule[{self.rule_index}]"

    def __repr__(self) -> str:
        return f"{self.rule_name}: {_text(self.before)} → {_text(self.after)}"

    def to_dict(self) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "rule_index": self.rule_index,
            "rule_name": self.rule.name,
            "description": self.rule.description,
            "before": _text(self.before),
            "after": _text(self.after),
        }


class EvalTrace:
    """
    A trace of all rule applications made while evaluating one atom.

    Formatting options:
        - Default repr: verbose multi-line format
        - format("compact"): single line showing rule chain
        - format("rules"): just the rule names applied
        - format("chain"): each rewrite on its own line
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, initial: Optional[Atom] = None):
        self.steps: List[EvalStep] = []
        self.initial: Optional[Atom] = initial
        self.final: Optional[Atom] = None

    def add_step(self, step: EvalStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Format the trace in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "chain"

        Returns:
            Formatted string representation of the trace.
        """
        if style == "compact":
            return f"{_text(self.initial)} --[{', '.join(self.rules_applied())}]--> {_text(self.final)}"

        elif style == "rules":
            rules = self.rules_applied()
            return " -> ".join(rules) if rules else "(no rules applied)"

        elif style == "chain":
            if not self.steps:
                return _text(self.initial)
            parts = [_text(self.initial)]
            for step in self.steps:
                parts.append(f"  --({step.rule_name})-->")
                parts.append(_text(step.after))
            return "\n".join(parts)

        else:  # verbose (default)
            return repr(self)

    def __repr__(self) -> str:
        lines = [f"Initial: {_text(self.initial)}"]
        for i, step in enumerate(self.steps, 1):
            lines.append(f"  {i}. {step}")
        lines.append(f"Final: {_text(self.final)}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rule was applied."""
        return len(self.steps) > 0

    def to_dict(self) -> Dict:
        """Convert trace to dictionary for JSON serialization."""
        return {
            "initial": _text(self.initial),
            "final": _text(self.final),
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def rule_counts(self) -> Dict[str, int]:
        """Count how many times each rule was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.rule_name] = counts.get(step.rule_name, 0) + 1
        return counts

    def rules_applied(self) -> List[str]:
        """Get list of rule names in order of application."""
        return [step.rule_name for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the evaluation."""
        if not self.steps:
            return "No rules applied"
        counts = self.rule_counts()
        most_used = max(counts.items(), key=lambda x: x[1])
        return (f"{len(self.steps)} steps using {len(counts)} unique rules. "
                f"Most used: {most_used[0]} ({most_used[1]}x)")
