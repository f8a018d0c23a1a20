"""
Boolean Matcher Grammar

    Expression := Factor (("&&" | "||") Factor)*
    Factor     := "!"? ("true" | "false" | name)

There is a single precedence tier: && and || are folded left to right
exactly as written, so "A || B && C" means "(A || B) && C".

A matcher rule names the label (H) it produces when its expression is true:

    A && B && !C => H = M

Negating a literal is folded while parsing ("!true" is Constant(False));
negating a variable is kept as NegatedVariable and applied on reduction.
"""

import operator
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Tuple

from rulesolver.errors import ParseError, UndefinedVariableError
from rulesolver.expressions import ChainedExpression, Operator, parse_complete


_FACTOR_RE = re.compile(r"(!?)([A-Za-z]+)")
_CLAUSE_RE = re.compile(r"=>\s*H\s*=\s*([A-Za-z]+)\s*")

_LITERALS = {"true": True, "false": False}


class ExpressionOperator(Operator):
    AND = ("&&", operator.and_)
    OR = ("||", operator.or_)


class Factor(ABC):
    """
    Base class for the leaves of a boolean expression.

    Variants:
        Constant: true / false, with any negation already applied
        Variable: a name looked up in the boolean bindings
        NegatedVariable: a name whose looked-up value is inverted
    """

    @staticmethod
    def parse(text: str) -> Tuple["Factor", str]:
        """
        Parse one factor, ignoring surrounding whitespace.

        The whole alphabetic run is read before deciding between a literal
        and a variable, so "trueish" is a variable name.

        Raises:
            ParseError: If the text does not start with an optional "!"
                followed by a letter
        """
        stripped = text.lstrip()
        match = _FACTOR_RE.match(stripped)
        if not match:
            raise ParseError(text, expected="true, false or a name")

        negated, word = bool(match.group(1)), match.group(2)
        remainder = stripped[match.end():].lstrip()

        if word in _LITERALS:
            return Constant(_LITERALS[word] != negated), remainder
        if negated:
            return NegatedVariable(word), remainder
        return Variable(word), remainder

    @abstractmethod
    def reduce(self, variables: Mapping[str, bool]) -> bool:
        ...

    def variables(self) -> FrozenSet[str]:
        return frozenset()


def _lookup(name: str, variables: Mapping[str, bool]) -> bool:
    if name not in variables:
        raise UndefinedVariableError(name)
    return variables[name]


@dataclass(frozen=True)
class Constant(Factor):
    value: bool

    def reduce(self, variables: Mapping[str, bool]) -> bool:
        return self.value


@dataclass(frozen=True)
class Variable(Factor):
    name: str

    def variables(self) -> FrozenSet[str]:
        return frozenset((self.name,))

    def reduce(self, variables: Mapping[str, bool]) -> bool:
        return _lookup(self.name, variables)


@dataclass(frozen=True)
class NegatedVariable(Factor):
    name: str

    def variables(self) -> FrozenSet[str]:
        return frozenset((self.name,))

    def reduce(self, variables: Mapping[str, bool]) -> bool:
        return not _lookup(self.name, variables)


class Expression(ChainedExpression):
    """Factors joined by && and ||, one flat left-associative tier."""

    operand_type = Factor
    operator_type = ExpressionOperator


def parse_expression(text: str) -> Expression:
    """Parse a complete boolean expression such as "A && !B || true"."""
    return parse_complete(Expression, text)


def parse_rule(text: str) -> Tuple[Expression, str]:
    """
    Parse a matcher rule: "<expression> => H = <LABEL>".

    Nothing but whitespace may follow the label; trailing text is a
    parse error rather than being discarded.

    Returns:
        (expression, label)

    Raises:
        ParseError: If the expression or the matcher clause does not parse,
            or text follows the label
    """
    expression, remainder = Expression.parse(text)
    match = _CLAUSE_RE.fullmatch(remainder)
    if not match:
        raise ParseError(remainder, expected="=> H = <LABEL>")
    return expression, match.group(1)
