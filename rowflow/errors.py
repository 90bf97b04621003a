"""
rowflow Errors
==============

Exception hierarchy shared by every layer of the projection engine.

None of these are recovered inside the package: argument errors surface to
the caller immediately, and an ``InvariantViolation`` means the view is no
longer trustworthy and has to be destroyed and rebuilt.
"""


class RowflowError(Exception):
    """Base class for all rowflow errors."""

    pass


class ArgumentTypeError(RowflowError, TypeError):
    """Raised when an API receives the wrong kind of entity or value."""

    pass


class InvariantViolation(RowflowError):
    """Raised when the flat list and the SuperGroup tree disagree."""

    pass


class UnknownGroupError(RowflowError, LookupError):
    """Raised when a group has no materialized SuperGroup in the view."""

    pass


class ArenaExhaustedError(RowflowError, MemoryError):
    """Raised when the SuperGroup arena hits its configured limit."""

    pass
