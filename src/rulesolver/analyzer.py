"""
Rule Analyzer: read-only inventory of a solver's rule store.

This module provides lightweight diagnostics over stored rules:
    - Variable usage inventory (boolean and float)
    - Expression complexity metrics
    - Label coverage between matchers and formulas
    - Warning flags for rules that can never contribute a solution

IMPORTANT: It does NOT modify the solver. It only produces reports.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Set

from rulesolver import arithmetic
from rulesolver.expressions import ChainedExpression
from rulesolver.solver import Solver


@dataclass
class ExpressionMetrics:
    """Metrics about a single expression tree."""
    depth: int = 0
    node_count: int = 0
    variable_references: Set[str] = field(default_factory=set)


def _analyze_expression(node) -> ExpressionMetrics:
    """Recursively analyze an expression tree."""
    metrics = ExpressionMetrics(depth=1, node_count=1, variable_references=set(node.variables()))

    if isinstance(node, ChainedExpression):
        children = [node.head] + [operand for _, operand in node.tail]
        for child in children:
            child_metrics = _analyze_expression(child)
            metrics.depth = max(metrics.depth, 1 + child_metrics.depth)
            metrics.node_count += child_metrics.node_count

    elif isinstance(node, arithmetic.ParenthesizedExpression):
        inner = _analyze_expression(node.expression)
        metrics.depth = 1 + inner.depth
        metrics.node_count += inner.node_count

    return metrics


@dataclass
class RuleReport:
    """Inventory report for a solver's rules."""

    total_matchers: int = 0
    total_formulas: int = 0

    # Variable usage, counted once per rule
    boolean_variable_usage: Dict[str, int] = field(default_factory=dict)
    float_variable_usage: Dict[str, int] = field(default_factory=dict)

    # Expression complexity
    max_expression_depth: int = 0
    total_expression_nodes: int = 0

    # Label coverage
    labels_produced: Set[str] = field(default_factory=set)
    labels_required: Set[str] = field(default_factory=set)
    labels_without_formula: Set[str] = field(default_factory=set)
    formulas_without_matcher: Set[str] = field(default_factory=set)
    shadowed_formulas: List[str] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_solver(solver: Solver) -> RuleReport:
    """
    Inventory the rules held by a solver.

    Checks for:
    - Variables referenced by matchers and formulas
    - Expression depth and size
    - Matcher labels with no formula (solving would fail when they win)
    - Formula labels no matcher produces (never selected)
    - Formulas hidden by a later formula requiring the same label

    Returns a RuleReport with metrics and warnings.
    """
    report = RuleReport(
        total_matchers=len(solver.boolean_rules),
        total_formulas=len(solver.arithmetic_rules),
    )

    boolean_usage: Dict[str, int] = defaultdict(int)
    float_usage: Dict[str, int] = defaultdict(int)

    for rule in solver.boolean_rules:
        metrics = _analyze_expression(rule.expression)
        for name in metrics.variable_references:
            boolean_usage[name] += 1
        report.max_expression_depth = max(report.max_expression_depth, metrics.depth)
        report.total_expression_nodes += metrics.node_count
        report.labels_produced.add(rule.label)

    for rule in solver.arithmetic_rules:
        metrics = _analyze_expression(rule.expression)
        for name in metrics.variable_references:
            float_usage[name] += 1
        report.max_expression_depth = max(report.max_expression_depth, metrics.depth)
        report.total_expression_nodes += metrics.node_count
        report.labels_required.add(rule.label)

    report.boolean_variable_usage = dict(boolean_usage)
    report.float_variable_usage = dict(float_usage)

    report.labels_without_formula = report.labels_produced - report.labels_required
    report.formulas_without_matcher = report.labels_required - report.labels_produced

    # Only the most recently added formula for a label is ever selected
    seen: Set[str] = set()
    for rule in reversed(solver.arithmetic_rules):
        if rule.label in seen:
            report.shadowed_formulas.append(rule.text)
        seen.add(rule.label)
    report.shadowed_formulas.reverse()

    if report.labels_without_formula:
        report.add_warning(
            f"Labels without formula: {', '.join(sorted(report.labels_without_formula))}"
        )

    if report.formulas_without_matcher:
        report.add_warning(
            f"Formulas never selected: {', '.join(sorted(report.formulas_without_matcher))}"
        )

    for text in report.shadowed_formulas:
        report.add_warning(f"Shadowed formula: {text}")

    return report
