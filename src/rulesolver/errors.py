"""
Error taxonomy for the rule solver.

Every failure a caller can observe is one of the classes below.
They carry structured context (the unparsed text, the missing variable,
the unmatched label); the message is rendered from that context so the
boundary layer can echo it unchanged.
"""

from typing import Optional


class RuleSolverError(Exception):
    """Base class for all recoverable rule solver failures."""
    pass


class ParseError(RuleSolverError):
    """
    Raised when text matches neither grammar.

    Properties:
        text: The offending input, verbatim
        expected: Optional hint naming what the parser was looking for
    """

    def __init__(self, text: str, expected: Optional[str] = None):
        self.text = text
        self.expected = expected
        super().__init__(f"Unable to parse the expression {text}")


class UndefinedVariableError(RuleSolverError):
    """Raised when a reduction references a variable missing from the bindings."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable {name} is undefined")


class NoSolutionError(RuleSolverError):
    """
    Raised when the rule store cannot produce a solution.

    label is None when no matcher evaluated true, otherwise it names
    the winning label for which no formula exists.
    """

    def __init__(self, label: Optional[str] = None):
        self.label = label
        super().__init__("Unable to find the solution")


class RequestError(RuleSolverError):
    """Raised when a request payload does not fit the request schema."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
