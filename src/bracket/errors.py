"""
Errors raised by the bracket engine.

None of these are fatal: the engine raises them before touching any state,
so a caller can report the problem and carry on with the tournament as it was.
"""


class BracketError(Exception):
    """Base class for all bracket engine errors."""


class OutOfRangeReference(BracketError):
    """A round or match reference does not exist in the tournament."""


class InvalidWinner(BracketError):
    """The proposed winner is not one of the two sides of the match."""


class UnplayableMatch(BracketError):
    """The match still waits on a previous round (a side is TBD)."""


class StructuralInvariantViolation(BracketError):
    """Round sizes or winners do not form a valid single-elimination bracket."""


class MalformedDocument(BracketError):
    """A stored document is missing fields or has fields of the wrong type."""
