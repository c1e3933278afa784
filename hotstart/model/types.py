"""
Core data types of the in-memory optimization model.

  - Variable: bounds, domain kind and current objective coefficient
  - Constraint: sense, right-hand side and an append-only list of terms
  - Objective: immutable (sense, terms) pair, replaced wholesale
  - SOSGroup: special ordered set of type 1 or 2 over model variables

Variables and constraints compare by identity, so a reference held by user
code stays valid for the lifetime of the model. Removal of a variable is a
tombstone (lb = ub = 0), never a deletion from the model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class VarKind(str, Enum):
    CONTINUOUS = "continuous"
    INTEGER = "integer"


class ConstraintSense(str, Enum):
    LE = "<="
    GE = ">="
    EQ = "=="


class ObjectiveSense(str, Enum):
    MINIMIZE = "min"
    MAXIMIZE = "max"


@dataclass(eq=False)
class Variable:
    """
    A decision variable.

    Attributes:
        name: Unique name within the model
        lb: Lower bound, None for -inf
        ub: Upper bound, None for +inf
        kind: VarKind.CONTINUOUS or VarKind.INTEGER
        obj_coef: Coefficient of this variable in the current objective
        index: Creation order within the model (stable, never reused)

    Example:
        >>> x = Variable("x", lb=0.0, ub=4.0, kind=VarKind.INTEGER)
        >>> x.removed
        False
    """
    name: str
    lb: Optional[float] = 0.0
    ub: Optional[float] = None
    kind: VarKind = VarKind.CONTINUOUS
    obj_coef: float = 0.0
    index: int = -1

    @property
    def removed(self) -> bool:
        """True when the variable has been tombstoned with zero bounds."""
        return self.lb == 0 and self.ub == 0

    @property
    def is_integer(self) -> bool:
        return self.kind == VarKind.INTEGER

    def __repr__(self):
        return f"Variable({self.name!r}, lb={self.lb}, ub={self.ub}, kind={self.kind.value})"


Term = Tuple[Variable, float]


@dataclass(eq=False)
class Constraint:
    """
    A linear constraint: sum(coef * var for var, coef in terms) <sense> rhs.

    Terms are exposed read-only. New terms are appended only by
    Model.add_variable; an existing coefficient is never changed.

    Attributes:
        name: Unique name within the model
        sense: ConstraintSense
        rhs: Right-hand side value
        index: Creation order within the model
    """
    name: str
    sense: ConstraintSense
    rhs: float
    index: int = -1
    _terms: List[Term] = field(default_factory=list, repr=False)

    @property
    def terms(self) -> Tuple[Term, ...]:
        return tuple(self._terms)

    def coefficient(self, var: Variable) -> float:
        """Coefficient of var in this constraint (0.0 when absent)."""
        for v, coef in self._terms:
            if v is var:
                return coef
        return 0.0

    def _append_term(self, var: Variable, coef: float) -> None:
        self._terms.append((var, coef))

    def __repr__(self):
        body = " + ".join(f"{c:g}*{v.name}" for v, c in self._terms) or "0"
        return f"Constraint({self.name!r}: {body} {self.sense.value} {self.rhs:g})"


@dataclass(frozen=True)
class Objective:
    """
    Objective function: optimize sum(coef * var) in the given sense.

    Frozen so that replacing it is the only way to change it.
    """
    sense: ObjectiveSense
    terms: Tuple[Term, ...] = ()

    def coefficient(self, var: Variable) -> float:
        for v, coef in self.terms:
            if v is var:
                return coef
        return 0.0

    def with_term(self, var: Variable, coef: float) -> "Objective":
        """Return a new objective with coef * var appended."""
        return Objective(sense=self.sense, terms=self.terms + ((var, coef),))


@dataclass(frozen=True, eq=False)
class SOSGroup:
    """
    Special ordered set over model variables.

    Members are stored in ascending weight order. For type 1 at most one
    member may be nonzero; for type 2 at most two adjacent members.

    Attributes:
        name: Unique name within the model
        sos_type: 1 or 2
        members: Variables ordered by ascending weight
        weights: Weights matching members (strictly increasing)
    """
    name: str
    sos_type: int
    members: Tuple[Variable, ...]
    weights: Tuple[float, ...]

    def __len__(self):
        return len(self.members)

    def position(self, var: Variable) -> int:
        for i, member in enumerate(self.members):
            if member is var:
                return i
        raise ValueError(f"{var.name} is not a member of SOS group {self.name}")
