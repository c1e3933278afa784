"""
Fixed-model derivation for dual recovery.

Given a solved MILP, derive_fixed_model builds an LP whose duals
approximate the sensitivity of the integer program:

  - Integer variables outside any SOS group are pinned to their optimal
    value (lb = ub = value) and become continuous.
  - For each SOS group, a few members around the optimal nonzero pattern are
    left free (original bounds, no integrality), all other members are pinned
    to 0. The group itself is dropped.

Freeing policy, with nz = indices of nonzero optimal values:

  SOS1:  free nz                         (nz empty: free nothing)
  SOS2:  |nz| >= 2  -> free nz
         |nz| == 1  -> free i and i+1, or i-1 and i when i is the last member
         |nz| == 0  -> free nothing

Each group is decided from its own values only.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from hotstart.config import DEFAULT_ZERO_TOLERANCE
from hotstart.errors import NotSolved
from hotstart.model.store import Model
from hotstart.model.types import ObjectiveSense, VarKind
from hotstart.solver.base import Solution, Solver


logger = logging.getLogger(__name__)


def nonzero_indices(values: Sequence[float], tolerance: float = DEFAULT_ZERO_TOLERANCE) -> np.ndarray:
    """Indices i with |values[i]| > tolerance, ascending."""
    return np.flatnonzero(np.abs(np.asarray(values, dtype=float)) > tolerance)


def sos1_free_indices(values: Sequence[float], tolerance: float = DEFAULT_ZERO_TOLERANCE) -> List[int]:
    """
    Members of an SOS1 group to leave free, given optimal values in weight order.

    Example:
        >>> sos1_free_indices([0, 0, 5, 0])
        [2]
    """
    return [int(i) for i in nonzero_indices(values, tolerance)]


def sos2_free_indices(values: Sequence[float], tolerance: float = DEFAULT_ZERO_TOLERANCE) -> List[int]:
    """
    Members of an SOS2 group to leave free, given optimal values in weight order.

    Example:
        >>> sos2_free_indices([0, 0, 3, 0])
        [2, 3]
        >>> sos2_free_indices([0, 0, 0, 4])
        [2, 3]
    """
    n = len(values)
    nz = nonzero_indices(values, tolerance)

    if len(nz) >= 2:
        if len(nz) > 2:
            logger.warning("SOS2 values have %d nonzero members; freeing all of them", len(nz))
        return [int(i) for i in nz]

    if len(nz) == 1:
        i = int(nz[0])
        if n == 1:
            return [i]
        if i < n - 1:
            return [i, i + 1]
        return [i - 1, i]

    return []


class FixedModel(Model):
    """
    LP derived from a solved model by derive_fixed_model.

    An independent Model: it shares no variables, constraints or solution
    with its source.

    Attributes:
        source_name: Name of the model it was derived from
        fixed: Names of variables pinned by the derivation
        freed: SOS group name -> names of members left free
        solver: Optional solver handle used by solve()
    """

    def __init__(
        self,
        name: str,
        sense: ObjectiveSense,
        source_name: str,
        solver: Optional[Solver] = None,
    ):
        super().__init__(name=name, sense=sense)
        self.source_name = source_name
        self.solver = solver
        self.fixed: List[str] = []
        self.freed: Dict[str, List[str]] = {}
        self._controller = None

    def controller(self):
        """ReSolveController for this model, created on first use."""
        if self._controller is None:
            from hotstart.resolve.controller import ReSolveController
            self._controller = ReSolveController(self, self.solver)
        return self._controller

    def solve(self) -> Solution:
        """Solve the fixed LP; the returned solution carries the duals."""
        return self.controller().solve()


def derive_fixed_model(
    model: Model,
    solver: Optional[Solver] = None,
    tolerance: float = DEFAULT_ZERO_TOLERANCE,
) -> FixedModel:
    """
    Derive the fixed LP of a solved model.

    The solution snapshot is taken before anything else, so later edits of
    the source model cannot leak into the derivation.

    Args:
        model: Model with a recorded solution
        solver: Optional solver handle for the LP solve of the fixed model;
                PulpSolver() is used when omitted
        tolerance: Values with absolute value at or below this count as zero

    Returns:
        FixedModel with no integer variables and no SOS groups

    Raises:
        NotSolved: If model has no recorded solution, or the solution has no
                   value for an integer variable or SOS member (one added
                   after the last solve)
    """
    solution = model.solution_snapshot()

    fixed_model = FixedModel(
        name=f"{model.name}_fixed",
        sense=model.objective.sense,
        source_name=model.name,
        solver=solver,
    )
    var_map = model.copy_into(fixed_model, include_sos=False)

    sos_member_ids = {id(v) for group in model.sos_groups for v in group.members}
    missing = [
        v.name for v in model.variables
        if (v.is_integer or id(v) in sos_member_ids) and v.name not in solution.values
    ]
    if missing:
        raise NotSolved(
            f"Recorded solution of {model.name} has no value for {missing}; "
            f"solve the model again before deriving its fixed model"
        )

    # Decide every group first; a member pinned by any group stays pinned
    pinned: Set[int] = set()
    free_by_group: Dict[str, List[int]] = {}
    for group in model.sos_groups:
        values = np.array([solution.value(v.name) for v in group.members], dtype=float)
        if group.sos_type == 1:
            free = sos1_free_indices(values, tolerance)
        else:
            free = sos2_free_indices(values, tolerance)
        free_by_group[group.name] = free
        pinned.update(id(v) for k, v in enumerate(group.members) if k not in free)

    for group in model.sos_groups:
        freed_names = []
        for k, member in enumerate(group.members):
            clone = var_map[id(member)]
            clone.kind = VarKind.CONTINUOUS
            if id(member) in pinned:
                clone.lb = 0.0
                clone.ub = 0.0
            elif k in free_by_group[group.name]:
                freed_names.append(clone.name)
        fixed_model.freed[group.name] = freed_names

    for var in model.variables:
        if id(var) in sos_member_ids:
            if id(var) in pinned:
                fixed_model.fixed.append(var.name)
            continue
        if not var.is_integer:
            continue
        raw = solution.value(var.name)
        value = float(np.round(raw))
        if abs(raw - value) > tolerance:
            logger.warning(
                "Integer variable %s has fractional value %g; pinning it to %g",
                var.name, raw, value,
            )
        clone = var_map[id(var)]
        clone.lb = value
        clone.ub = value
        clone.kind = VarKind.CONTINUOUS
        fixed_model.fixed.append(var.name)

    logger.info(
        "Derived %s from %s: %d pinned, %d SOS group(s) relaxed",
        fixed_model.name, model.name, len(fixed_model.fixed), len(fixed_model.freed),
    )
    return fixed_model
