"""
Tests for the rule store and solver.

These tests verify:
    - The seeded base rule set
    - Rule priority: most recently added rules win
    - The two scans are independent of each other
    - Error propagation (parse, undefined variable, no solution)
"""

import pytest
from rulesolver import arithmetic
from rulesolver.errors import NoSolutionError, ParseError, UndefinedVariableError
from rulesolver.solver import (
    BASE_ARITHMETIC_RULES,
    BASE_BOOLEAN_RULES,
    Rule,
    Solution,
    Solver,
)


@pytest.fixture
def bool_variables():
    return {"A": False, "B": True, "C": True}


@pytest.fixture
def float_variables():
    return {"D": 1.5, "E": 20.0, "F": 10.0}


class TestStore:
    """Test adding rules."""

    def test_empty_store(self):
        solver = Solver()
        assert solver.boolean_rules == []
        assert solver.arithmetic_rules == []

    def test_default_is_seeded_in_order(self):
        solver = Solver.default()
        assert [r.text for r in solver.boolean_rules] == list(BASE_BOOLEAN_RULES)
        assert [r.text for r in solver.arithmetic_rules] == list(BASE_ARITHMETIC_RULES)
        assert [r.label for r in solver.boolean_rules] == ["M", "P", "T"]
        assert [r.label for r in solver.arithmetic_rules] == ["M", "P", "T"]

    def test_add_routes_by_grammar(self):
        solver = Solver()
        solver.add("A && B => H = X")
        solver.add("H = X => K = D * 2")
        assert len(solver.boolean_rules) == 1
        assert len(solver.arithmetic_rules) == 1
        assert isinstance(solver.boolean_rules[0], Rule)
        assert solver.arithmetic_rules[0].label == "X"

    def test_add_appends(self):
        solver = Solver.default()
        solver.add("A || !A => H = M")
        assert solver.boolean_rules[-1].text == "A || !A => H = M"
        assert len(solver.boolean_rules) == len(BASE_BOOLEAN_RULES) + 1

    def test_parse_error_names_offending_text(self):
        solver = Solver.default()
        with pytest.raises(ParseError) as exc:
            solver.add("A && 13 => H = P")
        assert exc.value.text == "A && 13 => H = P"
        assert "A && 13 => H = P" in str(exc.value)
        assert str(exc.value) == "Unable to parse the expression A && 13 => H = P"

    def test_failed_add_leaves_store_unchanged(self):
        solver = Solver.default()
        with pytest.raises(ParseError):
            solver.add("nonsense")
        assert len(solver.boolean_rules) == len(BASE_BOOLEAN_RULES)
        assert len(solver.arithmetic_rules) == len(BASE_ARITHMETIC_RULES)

    def test_add_all_stops_at_first_failure(self):
        solver = Solver()
        with pytest.raises(ParseError) as exc:
            solver.add_all(["A => H = M", "A && 13 => H = P", "B => H = P"])
        assert exc.value.text == "A && 13 => H = P"
        assert [r.label for r in solver.boolean_rules] == ["M"]


class TestSolve:
    """Test resolution of label and value."""

    def test_default_solver(self, bool_variables, float_variables):
        solution = Solver.default().solve(bool_variables, float_variables)
        assert solution == ("T", 1.0)
        assert isinstance(solution, Solution)
        assert solution.label == "T"
        assert solution.value == 1.0

    def test_base_rule_m(self, float_variables):
        solution = Solver.default().solve({"A": True, "B": True, "C": False}, float_variables)
        assert solution.label == "M"
        assert solution.value == pytest.approx(1.5 + 1.5 * 20 / 10)

    def test_base_rule_p(self, float_variables):
        solution = Solver.default().solve({"A": True, "B": True, "C": True}, float_variables)
        assert solution.label == "P"
        assert solution.value == pytest.approx(1.5 + 1.5 * (20 - 10) / 25.5)

    def test_added_rules_take_precedence(self, bool_variables, float_variables):
        solver = Solver.default()
        solver.add("H = M => K = (E * D * D / (E * (D * (F + E))))")
        solver.add("A || !A => H = M")
        assert solver.solve(bool_variables, float_variables) == ("M", pytest.approx(0.05))

    def test_most_recent_true_matcher_wins(self, float_variables):
        solver = Solver()
        solver.add_all([
            "true => H = X",
            "true => H = Y",
            "false => H = Z",
            "H = X => K = 1",
            "H = Y => K = 2",
            "H = Z => K = 3",
        ])
        assert solver.solve({}, float_variables) == ("Y", 2.0)

    def test_most_recent_formula_wins(self):
        solver = Solver()
        solver.add_all(["true => H = X", "H = X => K = 1", "H = X => K = 2"])
        assert solver.solve({}, {}) == ("X", 2.0)

    def test_older_formula_used_when_no_newer_match(self):
        """The formula scan does not depend on when the matcher was added."""
        solver = Solver()
        solver.add_all(["H = X => K = 1", "H = Y => K = 2", "true => H = X"])
        assert solver.solve({}, {}) == ("X", 1.0)

    def test_no_matcher_true(self, float_variables):
        with pytest.raises(NoSolutionError) as exc:
            Solver.default().solve({"A": False, "B": False, "C": True}, float_variables)
        assert exc.value.label is None
        assert str(exc.value) == "Unable to find the solution"

    def test_no_formula_for_label(self):
        solver = Solver.default()
        solver.add("true => H = Z")
        with pytest.raises(NoSolutionError) as exc:
            solver.solve({}, {})
        assert exc.value.label == "Z"

    def test_empty_solver(self):
        with pytest.raises(NoSolutionError):
            Solver().solve({}, {})

    def test_matcher_error_is_not_skipped(self, bool_variables, float_variables):
        """An undefined variable aborts the solve even if an older matcher is true."""
        solver = Solver.default()
        solver.add("MISSING => H = M")
        with pytest.raises(UndefinedVariableError) as exc:
            solver.solve(bool_variables, float_variables)
        assert exc.value.name == "MISSING"

    def test_formula_error_propagates(self, bool_variables):
        with pytest.raises(UndefinedVariableError) as exc:
            Solver.default().solve(bool_variables, {"D": 1.5, "E": 20.0})
        assert exc.value.name == "F"

    def test_division_by_zero_is_a_value(self):
        solver = Solver()
        solver.add_all(["true => H = X", "H = X => K = D / 0"])
        assert solver.solve({}, {"D": -1.0}) == ("X", float("-inf"))

    def test_inputs_not_mutated(self, bool_variables, float_variables):
        before = (dict(bool_variables), dict(float_variables))
        Solver.default().solve(bool_variables, float_variables)
        assert (bool_variables, float_variables) == before


def _nested_formula(depth):
    expression = arithmetic.parse_expression("D")
    for _ in range(depth):
        expression = arithmetic.Expression(
            head=arithmetic.Term(head=arithmetic.ParenthesizedExpression(expression))
        )
    return expression


class TestDeepNesting:
    """Nesting beyond the interpreter's recursion limit is a parse error."""

    def test_add_too_deep(self):
        text = "H = M => K = " + "(" * 2000 + "D" + ")" * 2000
        solver = Solver.default()
        with pytest.raises(ParseError) as exc:
            solver.add(text)
        assert exc.value.text == text
        assert exc.value.expected == "shallower nesting"
        assert len(solver.arithmetic_rules) == len(BASE_ARITHMETIC_RULES)

    def test_moderate_nesting_parses(self):
        solver = Solver()
        solver.add_all(["true => H = X", "H = X => K = " + "(" * 50 + "D" + ")" * 50])
        assert solver.solve({}, {"D": 2.0}) == ("X", 2.0)

    def test_solve_too_deep(self, bool_variables, float_variables):
        solver = Solver.default()
        solver.arithmetic_rules.append(Rule(_nested_formula(5000), "T", "deep formula"))
        with pytest.raises(ParseError) as exc:
            solver.solve(bool_variables, float_variables)
        assert exc.value.text == "deep formula"
