"""
Rule Store and Solver

The solver holds two ordered, append-only rule lists:

    boolean_rules:    matcher expressions, each producing a label (H)
    arithmetic_rules: formulas, each requiring a label and computing K

Solving scans the matchers from the most recently added to the oldest
and takes the first one that is true. It then scans the formulas the
same way for the first one requiring that label, and reduces it.

Rules appended after the base set therefore override the base set
whenever both match, without any base rule being removed.

ARCHITECTURAL RULE:
    Never sort, edit or remove stored rules. Order is priority.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, NamedTuple, Union

from rulesolver import arithmetic, boolean
from rulesolver.errors import NoSolutionError, ParseError


logger = logging.getLogger(__name__)


BASE_BOOLEAN_RULES = (
    "A && B && !C => H = M",
    "A && B && C => H = P",
    "!A && B && C => H = T",
)

BASE_ARITHMETIC_RULES = (
    "H = M => K = D + (D * E / 10)",
    "H = P => K = D + (D * (E - F) / 25.5)",
    "H = T => K = D - (D * F / 30)",
)


@dataclass(frozen=True)
class Rule:
    """
    A parsed rule.

    Properties:
        expression: boolean.Expression or arithmetic.Expression
        label: For a matcher, the label it produces when true.
               For a formula, the label it requires.
        text: The rule as it was added
    """

    expression: Union[boolean.Expression, arithmetic.Expression]
    label: str
    text: str = ""


class Solution(NamedTuple):
    label: str
    value: float


def _reduce(rule: Rule, variables: Mapping[str, Any]) -> Any:
    try:
        return rule.expression.reduce(variables)
    except RecursionError as error:
        raise ParseError(rule.text, expected="shallower nesting") from error


class Solver:
    """
    Ordered store of matcher and formula rules.

    Solver() is empty; Solver.default() is seeded with the base rule set.
    A store is meant to be built, then only read: do not call add() while
    another caller is solving against the same instance.
    """

    def __init__(self) -> None:
        self.boolean_rules: List[Rule] = []
        self.arithmetic_rules: List[Rule] = []

    @classmethod
    def default(cls) -> "Solver":
        """Create a solver seeded with BASE_BOOLEAN_RULES and BASE_ARITHMETIC_RULES."""
        solver = cls()
        solver.add_all(BASE_BOOLEAN_RULES)
        solver.add_all(BASE_ARITHMETIC_RULES)
        return solver

    def add(self, text: str) -> None:
        """
        Parse text as a matcher rule, else as a formula rule, and append it.

        Raises:
            ParseError: If neither grammar accepts the text, or the text
                nests too deeply to parse; the error carries the whole
                text verbatim
        """
        try:
            self._add(text)
        except RecursionError as error:
            raise ParseError(text, expected="shallower nesting") from error

    def _add(self, text: str) -> None:
        try:
            expression, label = boolean.parse_rule(text)
        except ParseError:
            pass
        else:
            self.boolean_rules.append(Rule(expression, label, text))
            logger.debug("Added matcher rule %r producing %s", text, label)
            return

        try:
            expression, label = arithmetic.parse_rule(text)
        except ParseError as error:
            raise ParseError(text, expected=error.expected) from error

        self.arithmetic_rules.append(Rule(expression, label, text))
        logger.debug("Added formula rule %r requiring %s", text, label)

    def add_all(self, texts: Iterable[str]) -> None:
        """Add each rule in order, stopping at the first that fails to parse."""
        for text in texts:
            self.add(text)

    def solve(
        self,
        bool_variables: Mapping[str, bool],
        float_variables: Mapping[str, float],
    ) -> Solution:
        """
        Resolve the winning label and compute its value.

        Raises:
            UndefinedVariableError: If a reduced rule references a missing
                variable; matchers are not skipped on error
            NoSolutionError: If no matcher is true, or no formula requires
                the winning label
            ParseError: If a stored rule nests too deeply to reduce
        """
        label = self._find_label(bool_variables)
        formula = self._find_formula(label)
        value = _reduce(formula, float_variables)
        logger.debug("Solved H = %s, K = %s", label, value)
        return Solution(label, value)

    def _find_label(self, bool_variables: Mapping[str, bool]) -> str:
        for rule in reversed(self.boolean_rules):
            if _reduce(rule, bool_variables):
                return rule.label
        logger.debug("No matcher rule is true for %s", dict(bool_variables))
        raise NoSolutionError()

    def _find_formula(self, label: str) -> Rule:
        for rule in reversed(self.arithmetic_rules):
            if rule.label == label:
                return rule
        logger.debug("No formula rule requires label %s", label)
        raise NoSolutionError(label)
