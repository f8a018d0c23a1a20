"""
Arithmetic Formula Grammar

    Expression := Term (("+" | "-") Term)*
    Term       := Factor (("*" | "/") Factor)*
    Factor     := "(" Expression ")" | number | name

A formula rule ties a label produced by the boolean matchers to the
expression computing K:

    H = P => K = D + (D * (E - F) / 25.5)

Reduction works over float bindings. Division by zero follows IEEE-754.
"""

import operator
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Tuple

from rulesolver.errors import ParseError, UndefinedVariableError
from rulesolver.expressions import ChainedExpression, Operator, divide, parse_complete


_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_NAME_RE = re.compile(r"[A-Za-z]+")
_RULE_RE = re.compile(r"\s*H\s*=\s*([A-Za-z]+)\s*=>\s*K\s*=")


class ExpressionOperator(Operator):
    ADD = ("+", operator.add)
    SUBTRACT = ("-", operator.sub)


class TermOperator(Operator):
    MULTIPLY = ("*", operator.mul)
    DIVIDE = ("/", divide)


class Factor(ABC):
    """
    Base class for the leaves of an arithmetic expression.

    Variants:
        Constant: a float literal
        Variable: a name looked up in the float bindings
        ParenthesizedExpression: a nested Expression
    """

    @staticmethod
    def parse(text: str) -> Tuple["Factor", str]:
        """
        Parse one factor, ignoring surrounding whitespace.

        Alternatives are tried in order: parenthesized expression,
        numeric literal, variable name.

        Raises:
            ParseError: If no alternative matches
        """
        stripped = text.lstrip()

        if stripped.startswith("("):
            try:
                expression, rest = Expression.parse(stripped[1:])
            except ParseError:
                pass
            else:
                if rest.startswith(")"):
                    return ParenthesizedExpression(expression), rest[1:].lstrip()

        match = _NUMBER_RE.match(stripped)
        if match:
            return Constant(float(match.group())), stripped[match.end():].lstrip()

        match = _NAME_RE.match(stripped)
        if match:
            return Variable(match.group()), stripped[match.end():].lstrip()

        raise ParseError(text, expected="number, name or parenthesized expression")

    @abstractmethod
    def reduce(self, variables: Mapping[str, float]) -> float:
        ...

    def variables(self) -> FrozenSet[str]:
        return frozenset()


@dataclass(frozen=True)
class Constant(Factor):
    value: float

    def reduce(self, variables: Mapping[str, float]) -> float:
        return self.value


@dataclass(frozen=True)
class Variable(Factor):
    name: str

    def variables(self) -> FrozenSet[str]:
        return frozenset((self.name,))

    def reduce(self, variables: Mapping[str, float]) -> float:
        if self.name not in variables:
            raise UndefinedVariableError(self.name)
        return variables[self.name]


@dataclass(frozen=True)
class ParenthesizedExpression(Factor):
    """Owns its nested expression outright; nothing else refers to it."""

    expression: "Expression"

    def reduce(self, variables: Mapping[str, float]) -> float:
        return self.expression.reduce(variables)

    def variables(self) -> FrozenSet[str]:
        return self.expression.variables()


class Term(ChainedExpression):
    """Factors joined by * and /, left-associative."""

    operand_type = Factor
    operator_type = TermOperator


class Expression(ChainedExpression):
    """Terms joined by + and -, left-associative."""

    operand_type = Term
    operator_type = ExpressionOperator


def parse_expression(text: str) -> Expression:
    """Parse a complete arithmetic expression such as "D * (E - F) / 2"."""
    return parse_complete(Expression, text)


def parse_rule(text: str) -> Tuple[Expression, str]:
    """
    Parse a formula rule: "H = <LABEL> => K = <expression>".

    The expression must reach the end of the text; anything left over
    is a parse error rather than being discarded.

    Returns:
        (expression, label)

    Raises:
        ParseError: If the clause or the expression does not parse
    """
    match = _RULE_RE.match(text)
    if not match:
        raise ParseError(text, expected="H = <LABEL> => K =")
    return parse_expression(text[match.end():]), match.group(1)
