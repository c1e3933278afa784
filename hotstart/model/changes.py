"""
Change journal records.

Every model mutation appends one ModelChange. The journal holds everything
that happened since the last recorded solution and is what an incremental
solver patch replays, in order, on the problem it synced last time.

Each record carries the values as they were at the time of the edit, so a
replay reproduces the exact sequence of states rather than only the final one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from hotstart.model.types import Constraint, Objective, SOSGroup, Term, Variable


class ChangeKind(str, Enum):
    VARIABLE_ADDED = "variable_added"
    BOUNDS = "bounds"
    OBJECTIVE = "objective"
    CONSTRAINT_ADDED = "constraint_added"
    RHS = "rhs"
    SOS_ADDED = "sos_added"


@dataclass(frozen=True)
class ModelChange:
    """
    One journaled mutation.

    Attributes:
        kind: What happened
        variable: Affected variable (VARIABLE_ADDED, BOUNDS)
        constraint: Affected constraint (CONSTRAINT_ADDED, RHS)
        objective: New objective (OBJECTIVE)
        sos: New SOS group (SOS_ADDED)
        lb, ub: Bounds after the edit (VARIABLE_ADDED, BOUNDS)
        rhs: Right-hand side after the edit (CONSTRAINT_ADDED, RHS)
        terms: Constraint terms at creation (CONSTRAINT_ADDED)
        links: (constraint, coefficient) pairs the new variable was
               injected into (VARIABLE_ADDED)
        obj_coef: Objective coefficient appended for the new variable
    """
    kind: ChangeKind
    variable: Optional[Variable] = None
    constraint: Optional[Constraint] = None
    objective: Optional[Objective] = None
    sos: Optional[SOSGroup] = None
    lb: Optional[float] = None
    ub: Optional[float] = None
    rhs: Optional[float] = None
    terms: Tuple[Term, ...] = ()
    links: Tuple[Tuple[Constraint, float], ...] = ()
    obj_coef: float = 0.0

    def describe(self) -> str:
        """Short human-readable form used in log messages."""
        if self.kind in (ChangeKind.VARIABLE_ADDED, ChangeKind.BOUNDS):
            return f"{self.kind.value}({self.variable.name}, lb={self.lb}, ub={self.ub})"
        if self.kind in (ChangeKind.CONSTRAINT_ADDED, ChangeKind.RHS):
            return f"{self.kind.value}({self.constraint.name}, rhs={self.rhs})"
        if self.kind == ChangeKind.SOS_ADDED:
            return f"{self.kind.value}({self.sos.name})"
        return f"{self.kind.value}({self.objective.sense.value})"
