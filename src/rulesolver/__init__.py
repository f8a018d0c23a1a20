"""
Rule Solver Package

Parses two small rule languages and resolves an outcome from them:

    Matcher rules (boolean):   A && B && !C => H = M
    Formula rules (arithmetic): H = M => K = D + (D * E / 10)

The most recently added matcher that is true picks the label H; the most
recently added formula requiring H computes K.

LAYERS:
-------
    expressions  generic chained-expression engine (parse + reduce)
    boolean      matcher grammar
    arithmetic   formula grammar
    solver       ordered rule store and resolution
    analyzer     read-only rule inventory
    serialization / service   request and response boundary

The core performs no I/O. Only the service layer reads files or prints.
"""

__version__ = "0.1.0"
