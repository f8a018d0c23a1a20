"""
Serialization helpers for rules, requests and responses.

Provides:
    - A stable dict form of parsed expressions and of a solver's rules
      (JSON/YAML dumps for inspection)
    - The request/response mapping used at the service boundary

Requests look like:

    {
        "additional_rules": ["A && B => H = P"],
        "variables": {"A": true, "B": true, "C": false, "D": 1.05, "E": 4, "F": 42}
    }

Responses are {"H": <label>, "K": <value>} or {"reason": <message>}.
A non-finite K (division by zero) is sent as null.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import yaml

from rulesolver import arithmetic, boolean
from rulesolver.errors import RequestError, RuleSolverError
from rulesolver.expressions import ChainedExpression
from rulesolver.solver import Rule, Solution, Solver


BOOLEAN_VARIABLES = ("A", "B", "C")
FLOAT_VARIABLES = ("D", "E", "F")


def expr_to_dict(expr: Any) -> Any:
    if isinstance(expr, ChainedExpression):
        return {
            "type": type(expr).__name__.lower(),
            "head": expr_to_dict(expr.head),
            "tail": [
                {"operator": op.token, "operand": expr_to_dict(operand)}
                for op, operand in expr.tail
            ],
        }
    if isinstance(expr, (arithmetic.Constant, boolean.Constant)):
        return {"type": "const", "value": expr.value}
    if isinstance(expr, (arithmetic.Variable, boolean.Variable)):
        return {"type": "var", "name": expr.name}
    if isinstance(expr, boolean.NegatedVariable):
        return {"type": "not_var", "name": expr.name}
    if isinstance(expr, arithmetic.ParenthesizedExpression):
        return {"type": "parens", "expression": expr_to_dict(expr.expression)}
    raise TypeError(f"Unsupported expression type: {type(expr)}")


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    return {"label": rule.label, "text": rule.text, "expression": expr_to_dict(rule.expression)}


def rules_to_dict(solver: Solver) -> Dict[str, Any]:
    return {
        "boolean_rules": [rule_to_dict(r) for r in solver.boolean_rules],
        "arithmetic_rules": [rule_to_dict(r) for r in solver.arithmetic_rules],
    }


def rules_to_yaml(solver: Solver) -> str:
    return yaml.safe_dump(rules_to_dict(solver), sort_keys=False)


@dataclass
class Variables:
    """
    Caller-supplied inputs.

    A, B, C feed the matchers; D, E, F feed the formulas.
    """

    A: bool
    B: bool
    C: bool
    D: float
    E: float
    F: float

    def tables(self) -> Tuple[Dict[str, bool], Dict[str, float]]:
        """Split into (bool_variables, float_variables) for Solver.solve."""
        bool_variables = {name: getattr(self, name) for name in BOOLEAN_VARIABLES}
        float_variables = {name: getattr(self, name) for name in FLOAT_VARIABLES}
        return bool_variables, float_variables


@dataclass
class SolveRequest:
    variables: Variables
    additional_rules: List[str] = field(default_factory=list)


def variables_from_dict(d: Any) -> Variables:
    if not isinstance(d, dict):
        raise RequestError("variables must be an object")

    values: Dict[str, Any] = {}
    for name in BOOLEAN_VARIABLES:
        value = d.get(name)
        if not isinstance(value, bool):
            raise RequestError(f"variable {name} must be a boolean")
        values[name] = value
    for name in FLOAT_VARIABLES:
        value = d.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RequestError(f"variable {name} must be a number")
        values[name] = float(value)

    return Variables(**values)


def request_from_dict(d: Any) -> SolveRequest:
    if not isinstance(d, dict):
        raise RequestError("request must be an object")

    rules = d.get("additional_rules")
    if not isinstance(rules, list) or not all(isinstance(r, str) for r in rules):
        raise RequestError("additional_rules must be a list of strings")

    return SolveRequest(variables=variables_from_dict(d.get("variables")), additional_rules=list(rules))


def request_from_json(s: str) -> SolveRequest:
    try:
        d = json.loads(s)
    except ValueError as error:
        raise RequestError(f"malformed JSON: {error}") from error
    return request_from_dict(d)


def request_from_yaml(s: str) -> SolveRequest:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as error:
        raise RequestError(f"malformed YAML: {error}") from error
    return request_from_dict(d)


def response_to_dict(solution: Solution) -> Dict[str, Any]:
    """Render K as null when it is infinite or nan, so the body stays valid JSON."""
    value = solution.value if math.isfinite(solution.value) else None
    return {"H": solution.label, "K": value}


def error_to_dict(error: RuleSolverError) -> Dict[str, str]:
    return {"reason": str(error)}


def rules_from_yaml(s: str) -> List[str]:
    """Read a YAML document holding a list of rule strings."""
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as error:
        raise RequestError(f"malformed YAML: {error}") from error
    if d is None:
        return []
    if not isinstance(d, list) or not all(isinstance(r, str) for r in d):
        raise RequestError("rules file must hold a list of strings")
    return d
