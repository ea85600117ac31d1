'''
Error taxonomy of the package.

Every error is raised eagerly at the boundary of the operation that detected it and is
never retried. Each class also derives from the closest builtin exception, so callers
that only know the builtins (ValueError, IndexError, RuntimeError) still catch them.

---------------------------------------------------------------
file    : mlpstack/common/errors.py
---------------------------------------------------------------
'''

from typing import List, Optional, Sequence

__all__ = [
    "MLStackError",
    "FormatError",
    "RangeError",
    "InvalidStateError",
    "ArgumentError",
    "ValidationError",
    "NumericalInstabilityError",
    "StackTrainingError",
]

######################################################################
#! BASE
######################################################################

class MLStackError(Exception):
    """Root of all errors raised by mlpstack."""

class FormatError(MLStackError, ValueError):
    """Malformed flat-array decode parameters (lengths, variable counts, slice bounds)."""

class RangeError(MLStackError, IndexError):
    """Out-of-bounds time point or index access."""

class InvalidStateError(MLStackError, RuntimeError):
    """Operation on an inconsistent pattern, an unfitted filter or an uninitialized model."""

class ArgumentError(MLStackError, ValueError):
    """Invalid configuration or argument values (negative strengths, min > max, empty names...)."""

class ValidationError(MLStackError, ValueError):
    """Structural mismatch of a dictionary configuration (unknown or missing keys, wrong nesting)."""

class NumericalInstabilityError(MLStackError, ArithmeticError):
    """Network weights diverged (NaN, infinity or magnitude above the stability limit)."""

######################################################################
#! STACK
######################################################################

class StackTrainingError(MLStackError, RuntimeError):
    """
    One or more members of a network stack failed to train.

    The per-member reports are attached unchanged, so a failure stays attributed
    to the member that produced it.
    """

    def __init__(self, message: str, reports: Optional[Sequence] = None):
        super().__init__(message)
        self.reports : List = list(reports) if reports is not None else []

    @property
    def failed(self) -> List:
        ''' Reports of the members that failed. '''
        return [r for r in self.reports if r.error is not None]

# ---------------------------------------------------------------------
#! EOF
