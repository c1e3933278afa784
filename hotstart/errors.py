"""
Error types raised by the model store, the re-solve controller and the fixer.

All errors surface synchronously to the caller. None of them is retried
internally; retry policy belongs to whoever owns the solver.

Hierarchy:
  - ModelError: invalid request against the in-memory model
      - UnknownConstraint, UnknownVariable, DuplicateName
      - ArityMismatch
      - UnsupportedMutation
      - InvalidSOS
      - NotSolved
  - SolveError: opaque failure reported by the solver collaborator
"""

from typing import Optional


class ModelError(Exception):
    """Base class for errors raised by model operations."""
    pass


class UnknownConstraint(ModelError):
    """Raised when a constraint reference is not registered in the model."""
    pass


class UnknownVariable(ModelError):
    """Raised when a variable reference does not belong to the model."""
    pass


class DuplicateName(ModelError):
    """Raised when a variable or constraint name is already taken."""
    pass


class ArityMismatch(ModelError):
    """Raised when constraint references and coefficients differ in length."""
    pass


class UnsupportedMutation(ModelError):
    """
    Raised for edits the model does not allow.

    Coefficients are immutable once set, and the right-hand side of an
    equality constraint cannot be changed.
    """
    pass


class InvalidSOS(ModelError):
    """Raised when a special ordered set declaration is malformed."""
    pass


class NotSolved(ModelError):
    """Raised when an operation needs a recorded solution and none exists."""
    pass


class SolveError(Exception):
    """
    Raised when the solver fails or returns no optimal solution.

    Attributes:
        status: Raw status string from the solver (e.g. "Infeasible"),
                or None when the solver did not get as far as a status.
    """

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status
