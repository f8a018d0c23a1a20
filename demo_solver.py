"""
Demo: Solve the base rules plus a few additional rules and print a rule report.
"""

from rulesolver.analyzer import analyze_solver
from rulesolver.errors import RuleSolverError
from rulesolver.serialization import rules_to_yaml
from rulesolver.solver import Solver


def print_report(report):
    """Pretty-print a RuleReport."""
    print()
    print("=" * 70)
    print("RULE ANALYSIS REPORT")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Matcher Rules:         {report.total_matchers}")
    print(f"  Formula Rules:         {report.total_formulas}")
    print(f"  Max Expression Depth:  {report.max_expression_depth}")
    print(f"  Total Expression Nodes:{report.total_expression_nodes}")
    print()

    print("📈 VARIABLE USAGE")
    for var, count in sorted(report.boolean_variable_usage.items()):
        print(f"    {var} (bool):  {count} rule(s)")
    for var, count in sorted(report.float_variable_usage.items()):
        print(f"    {var} (float): {count} rule(s)")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Rules look clean!")
    print()


if __name__ == "__main__":
    solver = Solver.default()
    solver.add_all([
        "H = M => K = (E * D * D / (E * (D * (F + E))))",
        "A || !A => H = M",
    ])

    bool_variables = {"A": False, "B": True, "C": True}
    float_variables = {"D": 1.5, "E": 20.0, "F": 10.0}

    try:
        label, value = solver.solve(bool_variables, float_variables)
    except RuleSolverError as error:
        print(f"❌ {error}")
    else:
        print(f"✅ H = {label}, K = {value}")

    print_report(analyze_solver(solver))

    print(rules_to_yaml(solver))
