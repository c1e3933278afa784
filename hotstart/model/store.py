"""
In-memory optimization model with incremental mutation.

Model is the single owner of variables, constraints, objective and special
ordered sets. Every mutation:
  - is applied to the in-memory state immediately,
  - marks the model dirty,
  - appends a ModelChange to the journal,
and never talks to a solver. The solver sees the edits at the next solve,
through the ReSolveController.

Deleting a variable is a tombstone: remove_variable(v) sets its bounds to
(0, 0). The variable keeps its index, its terms in every constraint and in
the objective, and is still transmitted to the solver.

Example (column generation):
    >>> m = Model()
    >>> x = m.add_variable(lb=0, name="x")
    >>> y = m.add_variable(lb=0, name="y")
    >>> con = m.add_constraint(ConstraintSense.LE, [(x, 1.0), (y, 1.0)], 1.0, name="con")
    >>> m.set_objective(ObjectiveSense.MAXIMIZE, [(x, 5.0), (y, 1.0)])
    >>> z = m.add_variable(lb=0, obj_coef=10.0, constraints=["con"], coefficients=[1.0], name="z")
    >>> [v.name for v, _ in m.objective.terms]
    ['x', 'y', 'z']
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from hotstart.errors import (
    ArityMismatch,
    DuplicateName,
    InvalidSOS,
    NotSolved,
    UnknownVariable,
    UnsupportedMutation,
)
from hotstart.model.changes import ChangeKind, ModelChange
from hotstart.model.registry import ConstraintRef, ConstraintRegistry
from hotstart.model.types import (
    Constraint,
    ConstraintSense,
    Objective,
    ObjectiveSense,
    SOSGroup,
    Term,
    VarKind,
    Variable,
)
from hotstart.solver.base import Solution


logger = logging.getLogger(__name__)

VariableRef = Union[Variable, str]
TermsLike = Union[Dict[VariableRef, float], Iterable[Tuple[VariableRef, float]]]


def _as_bound(value) -> Optional[float]:
    return None if value is None else float(value)


class Model:
    """
    Mutable optimization model (the model store).

    Attributes:
        name: Model name, used for the solver-side problem
        dirty: True when the model was mutated since the last recorded solution
        revision: Number of mutations applied so far
        journal_base: Revision at which the pending change journal starts
    """

    def __init__(self, name: str = "model", sense: ObjectiveSense = ObjectiveSense.MINIMIZE):
        self.name = name
        self.dirty = False
        self.revision = 0
        self.journal_base = 0
        self._variables: Dict[str, Variable] = {}
        self._registry = ConstraintRegistry()
        self._objective = Objective(sense=ObjectiveSense(sense))
        self._sos: Dict[str, SOSGroup] = {}
        self._pending: List[ModelChange] = []
        self._solution: Optional[Solution] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def variables(self) -> Tuple[Variable, ...]:
        return tuple(self._variables.values())

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return tuple(self._registry)

    @property
    def objective(self) -> Objective:
        return self._objective

    @property
    def sos_groups(self) -> Tuple[SOSGroup, ...]:
        return tuple(self._sos.values())

    @property
    def registry(self) -> ConstraintRegistry:
        return self._registry

    def variable(self, ref: VariableRef) -> Variable:
        """
        Resolve a name or Variable to the Variable owned by this model.

        Raises:
            UnknownVariable: If the reference does not belong to this model
        """
        if isinstance(ref, Variable):
            if self._variables.get(ref.name) is not ref:
                raise UnknownVariable(f"Variable not in this model: {ref.name}")
            return ref
        try:
            return self._variables[ref]
        except (KeyError, TypeError):
            raise UnknownVariable(f"Unknown variable: {ref!r}") from None

    def constraint(self, ref: ConstraintRef) -> Constraint:
        return self._registry.resolve(ref)

    def is_continuous(self) -> bool:
        """True for a pure LP: no integer variables and no SOS groups."""
        if self._sos:
            return False
        return not any(v.is_integer for v in self._variables.values())

    def pending_changes(self) -> Tuple[ModelChange, ...]:
        """Mutations applied since the last recorded solution, oldest first."""
        return tuple(self._pending)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_variable(
        self,
        lb: Optional[float] = 0.0,
        ub: Optional[float] = None,
        kind: VarKind = VarKind.CONTINUOUS,
        obj_coef: float = 0.0,
        constraints: Sequence[ConstraintRef] = (),
        coefficients: Sequence[float] = (),
        name: Optional[str] = None,
    ) -> Variable:
        """
        Create a variable and inject it into existing constraints.

        For each (constraint, coefficient) pair a term coefficient * var is
        appended to that constraint. A nonzero obj_coef appends
        obj_coef * var to the current objective. Either everything is linked
        or nothing is: all checks run before the model is touched.

        Args:
            lb: Lower bound (None for -inf)
            ub: Upper bound (None for +inf)
            kind: VarKind.CONTINUOUS or VarKind.INTEGER
            obj_coef: Objective coefficient
            constraints: Existing constraints (objects or names)
            coefficients: One coefficient per constraint
            name: Optional unique name; generated as x<N> when omitted

        Returns:
            The new Variable

        Raises:
            ArityMismatch: If constraints and coefficients differ in length
            UnknownConstraint: If a constraint is not registered
            DuplicateName: If the name is taken
            ValueError: If lb > ub or a constraint is listed twice
        """
        constraints = list(constraints)
        coefficients = [float(c) for c in coefficients]
        if len(constraints) != len(coefficients):
            raise ArityMismatch(
                f"{len(constraints)} constraints but {len(coefficients)} coefficients"
            )

        targets = self._registry.resolve_all(constraints)
        if len({id(c) for c in targets}) != len(targets):
            raise ValueError("A constraint is listed more than once")

        kind = VarKind(kind)
        lb, ub = _as_bound(lb), _as_bound(ub)
        self._check_bounds(lb, ub)
        obj_coef = float(obj_coef)

        if name is None:
            name = self._next_variable_name()
        elif name in self._variables:
            raise DuplicateName(f"Variable name already in use: {name}")

        # Commit
        var = Variable(name=name, lb=lb, ub=ub, kind=kind, index=len(self._variables))
        self._variables[name] = var

        links = tuple(zip(targets, coefficients))
        for con, coef in links:
            con._append_term(var, coef)

        if obj_coef != 0.0:
            self._objective = self._objective.with_term(var, obj_coef)
            var.obj_coef = obj_coef

        self._record(ModelChange(
            kind=ChangeKind.VARIABLE_ADDED,
            variable=var,
            lb=lb,
            ub=ub,
            links=links,
            obj_coef=obj_coef,
        ))
        return var

    def set_bounds(self, var: VariableRef, lb: Optional[float], ub: Optional[float]) -> None:
        """
        Change the bounds of a variable in place.

        The new bounds are visible to readers immediately; the solver sees
        them at the next solve.

        Raises:
            UnknownVariable: If var does not belong to this model
            ValueError: If lb > ub
        """
        var = self.variable(var)
        lb, ub = _as_bound(lb), _as_bound(ub)
        self._check_bounds(lb, ub)

        var.lb = lb
        var.ub = ub
        self._record(ModelChange(kind=ChangeKind.BOUNDS, variable=var, lb=lb, ub=ub))

    def remove_variable(self, var: VariableRef) -> None:
        """Tombstone a variable: same as set_bounds(var, 0, 0)."""
        self.set_bounds(var, 0.0, 0.0)

    def set_objective(self, sense: ObjectiveSense, terms: TermsLike) -> None:
        """
        Replace the objective (sense and expression) in one step.

        Duplicate variables in terms are summed, keeping first-occurrence
        order, so calling this twice with the same arguments leaves the
        model in the same state as calling it once.

        Raises:
            UnknownVariable: If a term references a foreign variable
        """
        objective = Objective(sense=ObjectiveSense(sense), terms=self._normalize_terms(terms))

        coefs = {id(v): c for v, c in objective.terms}
        for var in self._variables.values():
            var.obj_coef = coefs.get(id(var), 0.0)

        self._objective = objective
        self._record(ModelChange(kind=ChangeKind.OBJECTIVE, objective=objective))

    def add_constraint(
        self,
        sense: ConstraintSense,
        terms: TermsLike,
        rhs: float,
        name: Optional[str] = None,
    ) -> Constraint:
        """
        Create and register a constraint.

        Returns:
            The registered Constraint. Later calls may refer to it by the
            object or by its name.

        Raises:
            UnknownVariable: If a term references a foreign variable
            DuplicateName: If the name is taken
        """
        sense = ConstraintSense(sense)
        normalized = self._normalize_terms(terms)
        if name is None:
            name = self._registry.next_name()
        elif name in self._registry:
            raise DuplicateName(f"Constraint name already in use: {name}")

        con = Constraint(name=name, sense=sense, rhs=float(rhs), _terms=list(normalized))
        self._registry.register(con)
        self._record(ModelChange(
            kind=ChangeKind.CONSTRAINT_ADDED,
            constraint=con,
            rhs=con.rhs,
            terms=normalized,
        ))
        return con

    def set_constraint_rhs(self, constraint: ConstraintRef, rhs: float) -> None:
        """
        Change the right-hand side of an inequality constraint.

        Raises:
            UnknownConstraint: If the constraint is not registered
            UnsupportedMutation: If the constraint is an equality
        """
        con = self._registry.resolve(constraint)
        if con.sense == ConstraintSense.EQ:
            raise UnsupportedMutation(
                f"Cannot change the right-hand side of equality constraint {con.name}"
            )
        con.rhs = float(rhs)
        self._record(ModelChange(kind=ChangeKind.RHS, constraint=con, rhs=con.rhs))

    def set_coefficient(self, constraint: ConstraintRef, var: VariableRef, coef: float) -> None:
        """Coefficients are immutable once set; always raises UnsupportedMutation."""
        con = self._registry.resolve(constraint)
        raise UnsupportedMutation(
            f"Coefficients of constraint {con.name} cannot be changed; "
            f"add a new variable instead"
        )

    def add_sos(
        self,
        sos_type: int,
        variables: Sequence[VariableRef],
        weights: Optional[Sequence[float]] = None,
        name: Optional[str] = None,
    ) -> SOSGroup:
        """
        Declare a special ordered set of type 1 or 2.

        Members are ordered by ascending weight; weights default to 1..n in
        the given order.

        Raises:
            InvalidSOS: Bad type, no members, repeated members or weights
            ArityMismatch: If weights and variables differ in length
            UnknownVariable: If a member does not belong to this model
            DuplicateName: If the name is taken
        """
        if sos_type not in (1, 2):
            raise InvalidSOS(f"SOS type must be 1 or 2, got {sos_type}")

        members = [self.variable(v) for v in variables]
        if not members:
            raise InvalidSOS("An SOS group needs at least one member")
        if len({id(v) for v in members}) != len(members):
            raise InvalidSOS("A variable appears more than once in the SOS group")

        if weights is None:
            weights = [float(i + 1) for i in range(len(members))]
        weights = [float(w) for w in weights]
        if len(weights) != len(members):
            raise ArityMismatch(f"{len(members)} SOS members but {len(weights)} weights")
        if len(set(weights)) != len(weights):
            raise InvalidSOS("SOS weights must be distinct")

        if name is None:
            name = f"sos{len(self._sos)}"
        if name in self._sos:
            raise DuplicateName(f"SOS group name already in use: {name}")

        ordered = sorted(zip(weights, members), key=lambda wm: wm[0])
        group = SOSGroup(
            name=name,
            sos_type=sos_type,
            members=tuple(m for _, m in ordered),
            weights=tuple(w for w, _ in ordered),
        )
        self._sos[name] = group
        self._record(ModelChange(kind=ChangeKind.SOS_ADDED, sos=group))
        return group

    # ------------------------------------------------------------------
    # Solutions
    # ------------------------------------------------------------------

    @property
    def solution(self) -> Optional[Solution]:
        return self._solution

    def record_solution(self, solution: Solution) -> None:
        """
        Store a copy of the solver result and clear the change journal.

        Called by the ReSolveController after a successful solve.
        """
        self._solution = solution.copy()
        self._pending.clear()
        self.dirty = False
        self.journal_base = self.revision

    def solution_snapshot(self) -> Solution:
        """
        Independent copy of the last recorded solution.

        Raises:
            NotSolved: If no solution has been recorded
        """
        if self._solution is None:
            raise NotSolved(f"Model {self.name} has no recorded solution")
        return self._solution.copy()

    def value(self, var: VariableRef) -> float:
        """Value of var in the last recorded solution."""
        var = self.variable(var)
        if self._solution is None:
            raise NotSolved(f"Model {self.name} has no recorded solution")
        return self._solution.value(var.name)

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def copy(self, name: Optional[str] = None) -> "Model":
        """
        Structural deep copy: variables, constraints, objective, SOS groups.

        The copy shares no mutable state with this model, has no solution
        and an empty change journal.
        """
        target = Model(name=name or self.name, sense=self._objective.sense)
        self.copy_into(target)
        return target

    def copy_into(self, target: "Model", include_sos: bool = True) -> Dict[int, Variable]:
        """
        Copy this model's structure into an empty model.

        Args:
            target: Empty model to fill
            include_sos: Also copy SOS groups

        Returns:
            Mapping id(source variable) -> target variable
        """
        if target._variables or len(target._registry) or target._sos:
            raise ValueError(f"Target model {target.name} is not empty")

        var_map: Dict[int, Variable] = {}
        for var in self._variables.values():
            clone = Variable(
                name=var.name,
                lb=var.lb,
                ub=var.ub,
                kind=var.kind,
                obj_coef=var.obj_coef,
                index=var.index,
            )
            target._variables[clone.name] = clone
            var_map[id(var)] = clone

        for con in self._registry:
            target._registry.register(Constraint(
                name=con.name,
                sense=con.sense,
                rhs=con.rhs,
                _terms=[(var_map[id(v)], c) for v, c in con.terms],
            ))

        target._objective = Objective(
            sense=self._objective.sense,
            terms=tuple((var_map[id(v)], c) for v, c in self._objective.terms),
        )

        for group in (self._sos.values() if include_sos else ()):
            target._sos[group.name] = SOSGroup(
                name=group.name,
                sos_type=group.sos_type,
                members=tuple(var_map[id(v)] for v in group.members),
                weights=group.weights,
            )

        return var_map

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, change: ModelChange) -> None:
        self._pending.append(change)
        self.dirty = True
        self.revision += 1
        logger.debug("%s: %s (revision %d)", self.name, change.describe(), self.revision)

    def _next_variable_name(self) -> str:
        n = len(self._variables)
        while f"x{n}" in self._variables:
            n += 1
        return f"x{n}"

    @staticmethod
    def _check_bounds(lb: Optional[float], ub: Optional[float]) -> None:
        if lb is not None and ub is not None and lb > ub:
            raise ValueError(f"Lower bound {lb} exceeds upper bound {ub}")

    def _normalize_terms(self, terms: TermsLike) -> Tuple[Term, ...]:
        items = terms.items() if isinstance(terms, dict) else terms
        coefs: Dict[int, float] = {}
        order: List[Variable] = []
        for ref, coef in items:
            var = self.variable(ref)
            if id(var) not in coefs:
                coefs[id(var)] = 0.0
                order.append(var)
            coefs[id(var)] += float(coef)
        return tuple((v, coefs[id(v)]) for v in order)

    def summary(self) -> Dict[str, int]:
        return {
            "variables": len(self._variables),
            "removed_variables": sum(1 for v in self._variables.values() if v.removed),
            "integer_variables": sum(1 for v in self._variables.values() if v.is_integer),
            "constraints": len(self._registry),
            "sos_groups": len(self._sos),
            "pending_changes": len(self._pending),
        }

    def __repr__(self):
        return (
            f"Model({self.name!r}, variables={len(self._variables)}, "
            f"constraints={len(self._registry)}, sos={len(self._sos)}, dirty={self.dirty})"
        )
