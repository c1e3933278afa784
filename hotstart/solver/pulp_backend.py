"""
PuLP/CBC solver backend.

PulpSolver turns a Model into a pulp.LpProblem (PulpProblem) and solves it
with the CBC binary bundled with PuLP. It offers two ways to bring a problem
up to date with the model:

  - translate(model): build a fresh problem from the current model state
    (full re-submission)
  - apply_changes(problem, changes): replay the model's change journal on a
    problem translated earlier (incremental patch)

Both produce the same solver-visible problem; PulpProblem.signature() gives
a canonical form to compare them.

Special ordered sets are sent to CBC as binary-indicator constraints
because PuLP's MPS writer does not emit SOS sections:

  SOS1 over x_0..x_{n-1}:   x_k <= ub_k * z_k,              sum_k z_k <= 1
  SOS2 over x_0..x_{n-1}:   x_k <= ub_k * (w_{k-1} + w_k),  sum_j w_j <= 1

with z, w binary and one w per adjacent pair. Members must have finite,
non-negative bounds.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

import pulp

from hotstart.config import SolverConfig
from hotstart.errors import SolveError
from hotstart.model.changes import ChangeKind, ModelChange
from hotstart.model.store import Model
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
from hotstart.solver.base import Solution, SolverCapabilities


logger = logging.getLogger(__name__)

_CONSTRAINT_SENSES = {
    ConstraintSense.LE: pulp.LpConstraintLE,
    ConstraintSense.GE: pulp.LpConstraintGE,
    ConstraintSense.EQ: pulp.LpConstraintEQ,
}

_OBJECTIVE_SENSES = {
    ObjectiveSense.MINIMIZE: pulp.LpMinimize,
    ObjectiveSense.MAXIMIZE: pulp.LpMaximize,
}

_CATEGORIES = {
    VarKind.CONTINUOUS: pulp.LpContinuous,
    VarKind.INTEGER: pulp.LpInteger,
}


@dataclass
class PulpProblem:
    """
    Solver-side image of a Model.

    PuLP names are derived from creation indices (v<i>, c<i>) so model names
    never have to be valid LP identifiers.

    Attributes:
        prob: The pulp problem
        variables: Model variable name -> pulp variable
        constraints: Model constraint name -> pulp constraint
        indicators: Pulp name -> binary indicator variable of an SOS group
        sos_constraints: Pulp name -> linking/cardinality constraint of an SOS group
        sos_members: Names of model variables that belong to an SOS group
        sos_groups: Names of the SOS groups transmitted, in order
        revision: Model revision this problem reflects
    """
    prob: pulp.LpProblem
    variables: Dict[str, pulp.LpVariable] = field(default_factory=dict)
    constraints: Dict[str, pulp.LpConstraint] = field(default_factory=dict)
    indicators: Dict[str, pulp.LpVariable] = field(default_factory=dict)
    sos_constraints: Dict[str, pulp.LpConstraint] = field(default_factory=dict)
    sos_members: Set[str] = field(default_factory=set)
    sos_groups: List[str] = field(default_factory=list)
    revision: int = 0

    @property
    def is_mip(self) -> bool:
        if self.indicators:
            return True
        return any(v.cat == pulp.LpInteger for v in self.variables.values())

    def signature(self) -> Dict[str, Any]:
        """
        Canonical description of everything the solver will see.

        Two problems with equal signatures are submitted to CBC as the same
        problem, regardless of how they were built. Zero coefficients are
        left out since they carry no information for the solver.
        """
        def terms(expr) -> List[tuple]:
            return sorted((v.name, c) for v, c in expr.items() if c != 0)

        all_vars = list(self.variables.values()) + list(self.indicators.values())
        all_cons = list(self.constraints.values()) + list(self.sos_constraints.values())
        objective = self.prob.objective
        return {
            "sense": self.prob.sense,
            "objective": terms(objective) if objective is not None else [],
            "variables": sorted((v.name, v.lowBound, v.upBound, v.cat) for v in all_vars),
            "constraints": sorted(
                (c.name, c.sense, -c.constant, tuple(terms(c))) for c in all_cons
            ),
        }

    def counts(self) -> Dict[str, int]:
        return {
            "variables": len(self.variables) + len(self.indicators),
            "constraints": len(self.constraints) + len(self.sos_constraints),
        }


class PulpSolver:
    """
    Solver collaborator backed by PuLP and CBC.

    Example:
        >>> solver = PulpSolver(SolverConfig(msg=False))
        >>> solution = solver.solve(model)      # cold solve
        >>> solution.status
        'Optimal'
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def capabilities(self) -> SolverCapabilities:
        return SolverCapabilities(
            supports_incremental_modification=self.config.incremental,
            # CBC runs as a subprocess on an MPS file; no basis carries over
            supports_warm_start=False,
        )

    def supports_incremental_modification(self, model: Model, problem: Optional[PulpProblem]) -> bool:
        """
        True when problem can be patched with model's pending changes.

        New SOS groups and bound changes on SOS members alter the indicator
        constraints, so those always need a full re-submission.
        """
        if not self.config.incremental or problem is None:
            return False
        for change in model.pending_changes():
            if change.kind == ChangeKind.SOS_ADDED:
                return False
            if change.kind == ChangeKind.BOUNDS and change.variable.name in problem.sos_members:
                return False
        return True

    # ------------------------------------------------------------------
    # Full re-submission
    # ------------------------------------------------------------------

    def translate(self, model: Model) -> PulpProblem:
        """
        Build a pulp problem from the current state of model.

        Raises:
            SolveError: If an SOS member lacks finite non-negative bounds
        """
        prob = pulp.LpProblem(_problem_name(model.name), _OBJECTIVE_SENSES[model.objective.sense])
        problem = PulpProblem(prob=prob)

        for var in model.variables:
            self._add_variable(problem, var, var.lb, var.ub)
        for con in model.constraints:
            self._add_constraint(problem, con, con.rhs, con.terms)
        self._set_objective(problem, model.objective)
        for group in model.sos_groups:
            self._add_sos(problem, group)

        problem.revision = model.revision
        logger.debug("Translated %s: %s", model.name, problem.counts())
        return problem

    # ------------------------------------------------------------------
    # Incremental patch
    # ------------------------------------------------------------------

    def apply_changes(self, problem: PulpProblem, changes: Sequence[ModelChange]) -> None:
        """
        Replay journaled changes, oldest first, on a translated problem.

        Raises:
            ValueError: For a change that cannot be patched (SOS_ADDED);
                        callers check supports_incremental_modification first
        """
        for change in changes:
            if change.kind == ChangeKind.VARIABLE_ADDED:
                pv = self._add_variable(problem, change.variable, change.lb, change.ub)
                for con, coef in change.links:
                    pc = problem.constraints[con.name]
                    pc.expr.addterm(pv, coef)
                    pc.modified = True
                if change.obj_coef != 0.0:
                    problem.prob.objective.addterm(pv, change.obj_coef)

            elif change.kind == ChangeKind.BOUNDS:
                problem.variables[change.variable.name].bounds(change.lb, change.ub)

            elif change.kind == ChangeKind.OBJECTIVE:
                self._set_objective(problem, change.objective)

            elif change.kind == ChangeKind.CONSTRAINT_ADDED:
                self._add_constraint(problem, change.constraint, change.rhs, change.terms)

            elif change.kind == ChangeKind.RHS:
                problem.constraints[change.constraint.name].changeRHS(change.rhs)

            else:
                raise ValueError(f"Cannot patch change incrementally: {change.describe()}")

            logger.debug("Patched %s", change.describe())

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def run(self, problem: PulpProblem, model: Model, warm_start: bool = False) -> Solution:
        """
        Solve a translated problem with CBC.

        Args:
            problem: Problem from translate/apply_changes
            model: The model the problem reflects (names, previous solution)
            warm_start: Must be False; the CBC command line cannot resume
                        from a previous basis

        Returns:
            Solution keyed by model variable/constraint names

        Raises:
            SolveError: If CBC fails or the status is not "Optimal"
            ValueError: If warm_start is requested
        """
        if warm_start:
            raise ValueError("PulpSolver does not support warm start")

        cmd = pulp.PULP_CBC_CMD(
            mip=problem.is_mip,
            msg=self.config.msg,
            timeLimit=self.config.time_limit,
            threads=self.config.threads,
        )

        try:
            problem.prob.solve(cmd)
        except pulp.PulpSolverError as e:
            raise SolveError(f"CBC failed on {model.name}: {e}") from e

        status = pulp.LpStatus[problem.prob.status]
        if status != "Optimal":
            raise SolveError(
                f"Solver status: {status}. Model {model.name} may be infeasible or unbounded.",
                status=status,
            )

        values = {}
        reduced_costs = {}
        for name, pv in problem.variables.items():
            values[name] = pv.varValue if pv.varValue is not None else 0.0
            if pv.dj is not None:
                reduced_costs[name] = pv.dj

        duals = {name: pc.pi for name, pc in problem.constraints.items() if pc.pi is not None}

        objective = problem.prob.objective
        objective_value = pulp.value(objective) if objective is not None else None

        return Solution(
            status=status,
            objective_value=objective_value,
            values=values,
            duals=duals,
            reduced_costs=reduced_costs,
        )

    def solve(self, model: Model) -> Solution:
        """Cold solve of model. Does not record the solution on the model."""
        return self.run(self.translate(model), model, warm_start=False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _add_variable(
        problem: PulpProblem,
        var: Variable,
        lb: Optional[float],
        ub: Optional[float],
    ) -> pulp.LpVariable:
        pv = pulp.LpVariable(f"v{var.index}", lowBound=lb, upBound=ub, cat=_CATEGORIES[var.kind])
        # Registered explicitly so variables in no row (e.g. tombstoned) still reach CBC
        problem.prob.addVariable(pv)
        problem.variables[var.name] = pv
        return pv

    @staticmethod
    def _add_constraint(
        problem: PulpProblem,
        con: Constraint,
        rhs: float,
        terms: Sequence[Term],
    ) -> pulp.LpConstraint:
        expr = pulp.LpAffineExpression([(problem.variables[v.name], c) for v, c in terms])
        pc = pulp.LpConstraint(e=expr, sense=_CONSTRAINT_SENSES[con.sense], name=f"c{con.index}", rhs=rhs)
        problem.prob.addConstraint(pc)
        problem.constraints[con.name] = pc
        return pc

    @staticmethod
    def _set_objective(problem: PulpProblem, objective: Objective) -> None:
        problem.prob.sense = _OBJECTIVE_SENSES[objective.sense]
        problem.prob.setObjective(
            pulp.LpAffineExpression([(problem.variables[v.name], c) for v, c in objective.terms])
        )

    @staticmethod
    def _add_sos(problem: PulpProblem, group: SOSGroup) -> None:
        for var in group.members:
            if var.lb is None or var.lb < 0 or var.ub is None:
                raise SolveError(
                    f"SOS member {var.name} of {group.name} needs finite non-negative bounds, "
                    f"got [{var.lb}, {var.ub}]"
                )

        prefix = f"sos{len(problem.sos_groups)}"
        problem.sos_groups.append(group.name)
        members = [problem.variables[v.name] for v in group.members]
        n = len(members)

        if group.sos_type == 1:
            # one indicator per member
            binaries = [pulp.LpVariable(f"{prefix}_z{k}", cat=pulp.LpBinary) for k in range(n)]
            adjacent = [[binaries[k]] for k in range(n)]
        else:
            # one indicator per adjacent pair; member k touches pairs k-1 and k
            binaries = [pulp.LpVariable(f"{prefix}_w{j}", cat=pulp.LpBinary) for j in range(n - 1)]
            adjacent = [
                [binaries[j] for j in (k - 1, k) if 0 <= j < n - 1]
                for k in range(n)
            ]

        for b in binaries:
            problem.prob.addVariable(b)
            problem.indicators[b.name] = b

        for k, (var, pv) in enumerate(zip(group.members, members)):
            if not adjacent[k]:
                continue
            link = pulp.LpConstraint(
                e=pulp.LpAffineExpression([(pv, 1.0)] + [(b, -var.ub) for b in adjacent[k]]),
                sense=pulp.LpConstraintLE,
                name=f"{prefix}_link{k}",
                rhs=0.0,
            )
            problem.prob.addConstraint(link)
            problem.sos_constraints[link.name] = link

        if binaries:
            card = pulp.LpConstraint(
                e=pulp.lpSum(binaries),
                sense=pulp.LpConstraintLE,
                name=f"{prefix}_card",
                rhs=1.0,
            )
            problem.prob.addConstraint(card)
            problem.sos_constraints[card.name] = card

        problem.sos_members.update(v.name for v in group.members)


def _problem_name(name: str) -> str:
    return re.sub(r"\W", "_", name) or "model"
