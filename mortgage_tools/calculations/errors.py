"""
Calculation errors.

All errors are local to a single calculator invocation. Negative amortization
is reported as a flag on the schedule, not raised.
"""


class InvalidInputError(ValueError):
    """Inputs rejected before any simulation runs."""


class NumericOverflowError(InvalidInputError):
    """Payment formula produced a non-finite intermediate value."""


class APRConvergenceError(ValueError):
    """APR solver failed to converge."""
