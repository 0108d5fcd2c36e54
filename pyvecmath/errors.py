"""
Exceptions raised by pyvecmath operations.

All of them derive from ValueError so callers that already guard vector math
with ``except ValueError`` keep working.
"""


class VecMathError(ValueError):
    """Base class for errors raised by vector, matrix and quaternion operations."""


class DimensionMismatchError(VecMathError):
    """Operand shapes are incompatible for the requested operation."""


class DegenerateInputError(VecMathError):
    """The input has no defined result: zero length, zero norm or zero determinant."""


class DomainError(VecMathError):
    """An argument lies outside the domain of the operation, e.g. an axis index out of range."""
