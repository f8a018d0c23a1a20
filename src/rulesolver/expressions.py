"""
Generic Expression Engine

Both rule grammars share one shape: a head operand followed by zero or
more (operator, operand) pairs, all of equal precedence.

    Expression := Operand (Operator Operand)*

Precedence between operators of different binding strength comes only
from nesting one chained level inside another (an arithmetic Expression
chains Terms, a Term chains Factors). Inside a single level the fold is
strictly left to right.

This module knows nothing about either grammar. It supplies:
    - Operator: closed, ordered (token, primitive) tables
    - ChainedExpression: the reusable AST node with parse and reduce
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, FrozenSet, Mapping, Tuple, Type

from rulesolver.errors import ParseError


def divide(left: float, right: float) -> float:
    """IEEE-754 division: a zero divisor yields +/-inf or nan, never an error."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


class Operator(Enum):
    """
    Base class for a closed set of binary operators.

    Each member's value is a (token, primitive) pair:

        class TermOperator(Operator):
            MULTIPLY = ("*", operator.mul)
            DIVIDE = ("/", divide)

    Members are tried in declaration order when parsing, so a token that
    is a prefix of another token must be declared after it.
    """

    def __init__(self, token: str, primitive: Callable[[Any, Any], Any]):
        self.token = token
        self.primitive = primitive

    @classmethod
    def parse(cls, text: str) -> Tuple["Operator", str]:
        """
        Consume one operator token from the start of text.

        Returns:
            (member, remainder)

        Raises:
            ParseError: If no member's token prefixes the text
        """
        for member in cls:
            if text.startswith(member.token):
                return member, text[len(member.token):]
        expected = " or ".join(repr(member.token) for member in cls)
        raise ParseError(text, expected=expected)

    def apply(self, left: Any, right: Any) -> Any:
        return self.primitive(left, right)


@dataclass(frozen=True)
class ChainedExpression:
    """
    One head operand followed by zero or more (operator, operand) pairs.

    Example:
        "42 * Foo / 55" as an arithmetic Term becomes

        Term(
            head=Constant(42.0),
            tail=(
                (TermOperator.MULTIPLY, Variable("Foo")),
                (TermOperator.DIVIDE, Constant(55.0)),
            ),
        )

    Subclasses bind the grammar:
        operand_type: class providing parse(text) and reduce(variables)
        operator_type: Operator subclass allowed between operands

    IMPORTANT:
        Instances are immutable (frozen=True) and compare by value, so two
        parses of equivalent text produce equal trees.
    """

    head: Any
    tail: Tuple[Tuple[Operator, Any], ...] = ()

    operand_type: ClassVar[Type]
    operator_type: ClassVar[Type[Operator]]

    @classmethod
    def parse(cls, text: str) -> Tuple["ChainedExpression", str]:
        """
        Parse a head operand and as many (operator, operand) pairs as follow.

        A pair that fails to parse is not an error: the repetition stops
        and the remainder starts at that pair's operator.

        Returns:
            (expression, remainder); the remainder may be non-empty

        Raises:
            ParseError: If the head operand cannot be parsed
        """
        head, remainder = cls.operand_type.parse(text)
        tail = []

        while True:
            try:
                operator, rest = cls.operator_type.parse(remainder)
                operand, rest = cls.operand_type.parse(rest)
            except ParseError:
                break
            tail.append((operator, operand))
            remainder = rest

        return cls(head=head, tail=tuple(tail)), remainder

    def reduce(self, variables: Mapping[str, Any]) -> Any:
        """
        Evaluate against variable bindings, folding left to right.

        Raises:
            UndefinedVariableError: On the first operand that references
                a missing variable; no partial result is produced
        """
        accumulator = self.head.reduce(variables)
        for operator, operand in self.tail:
            accumulator = operator.apply(accumulator, operand.reduce(variables))
        return accumulator

    def variables(self) -> FrozenSet[str]:
        """Names of every variable referenced anywhere in the tree."""
        names = set(self.head.variables())
        for _, operand in self.tail:
            names.update(operand.variables())
        return frozenset(names)


def parse_complete(expression_type: Type[ChainedExpression], text: str) -> ChainedExpression:
    """Parse text that must be consumed entirely (trailing whitespace aside)."""
    expression, remainder = expression_type.parse(text)
    if remainder.strip():
        raise ParseError(remainder, expected="end of expression")
    return expression
