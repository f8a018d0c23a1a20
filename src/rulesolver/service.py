"""
Service boundary: request in, status and body out.

This is the only layer that catches solver errors. Every request gets a
fresh Solver.default(), so no store is ever shared between requests.

Status mapping:
    200  {"H": label, "K": value}
    400  {"reason": ...}  request does not fit the schema
    422  {"reason": ...}  parse error, undefined variable, no solution
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from rulesolver.errors import RequestError, RuleSolverError
from rulesolver.serialization import (
    SolveRequest,
    error_to_dict,
    request_from_dict,
    request_from_json,
    request_from_yaml,
    response_to_dict,
    rules_from_yaml,
    rules_to_yaml,
)
from rulesolver.solver import Solution, Solver


logger = logging.getLogger(__name__)

OK = 200
BAD_REQUEST = 400
UNPROCESSABLE_ENTITY = 422


def build_solver(request: SolveRequest) -> Solver:
    solver = Solver.default()
    solver.add_all(request.additional_rules)
    return solver


def solve_request(request: SolveRequest) -> Solution:
    """Seed a solver, append the request's rules and solve its variables."""
    bool_variables, float_variables = request.variables.tables()
    return build_solver(request).solve(bool_variables, float_variables)


def handle_request(request: SolveRequest) -> Tuple[int, Dict[str, Any]]:
    try:
        solution = solve_request(request)
    except RuleSolverError as error:
        logger.info("Request rejected: %s", error)
        return UNPROCESSABLE_ENTITY, error_to_dict(error)
    return OK, response_to_dict(solution)


def handle_payload(payload: Any) -> Tuple[int, Dict[str, Any]]:
    """Map a decoded request body to (status, body)."""
    try:
        request = request_from_dict(payload)
    except RequestError as error:
        logger.info("Malformed request: %s", error)
        return BAD_REQUEST, error_to_dict(error)
    return handle_request(request)


def _read_request(text: str, fmt: str) -> SolveRequest:
    if fmt == "yaml":
        return request_from_yaml(text)
    return request_from_json(text)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path) as f:
            return f.read()
    except OSError as error:
        raise RequestError(f"cannot read {path}: {error.strerror}") from error


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rulesolver",
        description="Solve a request against the base rules plus its additional rules",
    )
    parser.add_argument("request", nargs="?", default="-",
                        help="Path to a JSON or YAML request (default: stdin)")
    parser.add_argument("--format", choices=["json", "yaml"],
                        help="Request format (default: from file extension, else json)")
    parser.add_argument("--rules", help="YAML file with a list of rules appended after the request's rules")
    parser.add_argument("--dump-rules", action="store_true",
                        help="Print the parsed rule store as YAML instead of solving")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    fmt = args.format or ("yaml" if args.request.endswith((".yaml", ".yml")) else "json")

    try:
        request = _read_request(_read_text(args.request), fmt)
        if args.rules:
            request.additional_rules.extend(rules_from_yaml(_read_text(args.rules)))
    except RequestError as error:
        status, body = BAD_REQUEST, error_to_dict(error)
    else:
        if args.dump_rules:
            try:
                print(rules_to_yaml(build_solver(request)), end="")
            except RuleSolverError as error:
                print(json.dumps(error_to_dict(error)))
                return 1
            return 0
        status, body = handle_request(request)

    print(json.dumps(body))
    return 0 if status == OK else 1


if __name__ == "__main__":
    sys.exit(main())
